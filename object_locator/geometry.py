from typing import Optional, Sequence, Tuple
import math

from .types import Location, Point, Region


def intersects(a: Region, b: Region) -> bool:
    if a.max_x < b.x or b.max_x < a.x:
        return False
    if a.max_y < b.y or b.max_y < a.y:
        return False
    return True


def sq_distance(p0: Point, p1: Point) -> float:
    dx = p0[0] - p1[0]
    dy = p0[1] - p1[1]
    return dx * dx + dy * dy


def distance(p0: Point, p1: Point) -> float:
    return math.sqrt(sq_distance(p0, p1))


def point_avg(p0: Point, p1: Point) -> Point:
    return ((p0[0] + p1[0]) / 2.0, (p0[1] + p1[1]) / 2.0)


def location_center(loc: Location) -> Point:
    """Center used for nearest-neighbour search: halfway to the bias when one exists."""
    if loc.bias is not None:
        return point_avg(loc.region.center, loc.bias.center)
    return loc.region.center


def pixels_to_degrees(value: float, image_width: int, viewing_width: float) -> float:
    return value * (viewing_width / float(image_width))


def image_center(dims: Tuple[int, int]) -> Point:
    w, h = dims
    return (w / 2.0, h / 2.0)


def bbox_to_region(bbox: Sequence[int], offset: Tuple[int, int] = (0, 0)) -> Optional[Region]:
    # bbox is cv2.boundingRect output relative to offset
    x, y, w, h = bbox
    if w <= 0 or h <= 0:
        return None
    return Region(int(x) + int(offset[0]), int(y) + int(offset[1]), int(w), int(h))
