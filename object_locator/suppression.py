"""Per-cycle suppression map: the sum of every region's inhibitory surround."""
from typing import Optional, Sequence, Tuple
import logging

import numpy as np

from .cache import KernelCache
from .geometry import distance, image_center
from .image import blank, stamp_add
from .types import Point, Region

log = logging.getLogger(__name__)


class SuppressionBuffers:
    """Two same-sized accumulators; one is written per cycle, the other keeps last cycle's map."""

    def __init__(self, dims: Tuple[int, int]):
        self.dims = (int(dims[0]), int(dims[1]))
        self.current = blank(self.dims)
        self.previous = blank(self.dims)

    def swap(self) -> None:
        self.current, self.previous = self.previous, self.current


def unique_regions(regions: Sequence[Region]) -> list:
    seen = set()
    out = []
    for r in regions:
        if r not in seen:
            seen.add(r)
            out.append(r)
    return out


def stamp_negative_kernels(mat: np.ndarray, regions: Sequence[Region], cache: KernelCache,
                           gaze: Point, big: bool) -> int:
    """Add each region's negative hat, picked by its distance from gaze. Returns how many landed."""
    stamped = 0
    for region in regions:
        center = region.center
        hat = cache.negative_kernel(region, distance(center, gaze), big)
        if stamp_add(mat, hat, center) is not None:
            stamped += 1
    return stamped


def compose(mat: np.ndarray,
            tracked: Sequence[Region],
            untracked: Sequence[Region],
            cache: KernelCache,
            gaze: Optional[Point] = None,
            target_cost: float = 0.0) -> np.ndarray:
    """
    Reset mat and draw the suppression map into it.

    The map starts at -target_cost per tracked region. Tracked regions get the
    big negative hat; untracked ones get the small one. Stamping is additive,
    so the order of regions does not change the result.
    """
    h, w = mat.shape[:2]
    gaze = image_center((w, h)) if gaze is None else gaze
    tracked = unique_regions(tracked)

    mat.fill(-target_cost * len(tracked))
    n_big = stamp_negative_kernels(mat, tracked, cache, gaze, big=True)
    n_small = stamp_negative_kernels(mat, untracked, cache, gaze, big=False)
    log.debug("Suppression map: %d/%d tracked, %d/%d untracked hats stamped",
              n_big, len(tracked), n_small, len(untracked))
    return mat
