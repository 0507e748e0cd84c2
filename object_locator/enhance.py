from typing import List, Optional, Tuple
import numpy as np

from .cache import KernelCache
from .geometry import bbox_to_region
from .image import clip_window, nonzero_bounds, positive_mask
from .types import EnhancedRegion, Location, Point


def _union_window(windows: List[Tuple[int, int, int, int, int, int]]) -> Tuple[int, int, int, int]:
    x0 = min(win[0] for win in windows)
    y0 = min(win[1] for win in windows)
    x1 = max(win[0] + win[4] for win in windows)
    y1 = max(win[1] + win[5] for win in windows)
    return x0, y0, x1, y1


def enhanced_region(location: Location, olmap: np.ndarray, cache: KernelCache) -> Optional[EnhancedRegion]:
    """
    Region where this target's positive hat outweighs the suppression in olmap.

    The positive hat (and the bias hat, if the location has one) is added to a
    copy of the map; the bounding box of the positive part inside the stamped
    windows is the enhanced region. Returns None when nothing stays positive.
    olmap itself is never modified.
    """
    region = location.region
    stamps: List[Tuple[np.ndarray, Point]] = [(cache.positive_kernel(region), region.center)]
    if location.bias is not None:
        stamps.append((cache.bias_kernel(region), location.bias.center))

    placed = []
    for hat, center in stamps:
        win = clip_window(hat.shape, center, olmap.shape)
        if win is not None:
            placed.append((hat, win))
    if not placed:
        return None

    x0, y0, x1, y1 = _union_window([win for _, win in placed])
    scratch = olmap[y0:y1, x0:x1].copy()
    inside = np.zeros(scratch.shape, dtype=bool)
    for hat, (ix, iy, kx, ky, w, h) in placed:
        sx, sy = ix - x0, iy - y0
        scratch[sy:sy + h, sx:sx + w] += hat[ky:ky + h, kx:kx + w]
        inside[sy:sy + h, sx:sx + w] = True

    mask = positive_mask(scratch)
    mask[~inside] = 0
    bounds = nonzero_bounds(mask)
    if bounds is None:
        return None
    return EnhancedRegion(
        region=bbox_to_region(bounds, offset=(x0, y0)),
        hat=scratch,
        mask=mask,
        origin=(x0, y0),
    )
