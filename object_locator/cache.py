"""
Kernel cache keyed by a coarse shape signature.

Regions whose widths, heights and aspect ratios are within tolerance share one
KernelSet. Lookups are a linear scan in insertion order; a run usually sees
tens of shape buckets at most.
"""
from collections import OrderedDict
from typing import Iterable, Optional, Tuple
import logging
import threading

import numpy as np

from .config import LocatorParams
from .kernels import bucket_for_distance, make_kernel_set
from .types import KernelSet, Region, ShapeIndex

log = logging.getLogger(__name__)


def shape_index(region: Region, params: LocatorParams) -> ShapeIndex:
    w, h = region.width, region.height
    lo, hi = min(w, h), max(w, h)
    ar = lo / hi
    orientation = None
    if (1.0 - ar) > params.ar_thresh:
        orientation = (1, 0) if w > h else (0, 1)
    return (lo, hi, ar, orientation)


def indices_compatible(a: ShapeIndex, b: ShapeIndex, params: LocatorParams) -> bool:
    lo0, hi0, ar0, dim0 = a
    lo1, hi1, ar1, dim1 = b
    if 1.0 - min(lo0, lo1) / max(lo0, lo1) > params.width_thresh:
        return False
    if 1.0 - min(hi0, hi1) / max(hi0, hi1) > params.width_thresh:
        return False
    if abs(ar0 - ar1) > params.ar_thresh:
        return False
    return dim0 == dim1


class KernelCache:
    """
    ShapeIndex -> KernelSet store owned by one tracker.

    Entries are never overwritten. Set max_entries to evict the least recently
    used set once the cache grows past it (useful for long-running processes).
    """

    def __init__(self, dims: Tuple[int, int], params: LocatorParams, max_entries: Optional[int] = None):
        if dims[0] <= 0 or dims[1] <= 0:
            raise ValueError(f"Image dims must be positive, got {dims}")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")
        self.dims = (int(dims[0]), int(dims[1]))
        self.params = params
        self.max_entries = max_entries
        self._entries: "OrderedDict[ShapeIndex, KernelSet]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, region: Region) -> bool:
        return self.find_key(shape_index(region, self.params)) is not None

    def keys(self):
        return list(self._entries)

    def find_key(self, index: ShapeIndex) -> Optional[ShapeIndex]:
        # snapshot: inserts and LRU moves may run concurrently
        for key in list(self._entries):
            if indices_compatible(key, index, self.params):
                return key
        return None

    def _insert(self, index: ShapeIndex) -> ShapeIndex:
        with self._lock:
            key = self.find_key(index)
            if key is not None:
                return key
            self._entries[index] = make_kernel_set(index, self.dims, self.params)
            log.debug("Built kernel set for shape %s (%d cached)", index, len(self._entries))
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    log.debug("Evicted kernel set for shape %s", evicted)
            return index

    def ensure_kernels(self, regions: Iterable[Region]) -> "KernelCache":
        for region in regions:
            index = shape_index(region, self.params)
            if self.find_key(index) is None:
                self._insert(index)
        return self

    def kernels_for(self, region: Region) -> KernelSet:
        """KernelSet for region, synthesizing one if no compatible entry exists."""
        index = shape_index(region, self.params)
        key = self.find_key(index)
        if key is None:
            key = self._insert(index)
        with self._lock:
            ks = self._entries.get(key)
            if ks is not None and self.max_entries is not None:
                self._entries.move_to_end(key)
        if ks is None:
            # evicted by another thread in between
            ks = make_kernel_set(index, self.dims, self.params)
        return ks

    def positive_kernel(self, region: Region) -> np.ndarray:
        return self.kernels_for(region).positive

    def negative_kernel(self, region: Region, dist: float, big: bool) -> np.ndarray:
        ks = self.kernels_for(region)
        hats = ks.big_negative if big else ks.small_negative
        return hats[bucket_for_distance(hats, dist)]

    def bias_kernel(self, region: Region) -> np.ndarray:
        return self.kernels_for(region).bias

    def copy(self) -> "KernelCache":
        """Independent cache holding the same kernel sets, e.g. to seed the next run."""
        other = KernelCache(self.dims, self.params, self.max_entries)
        other._entries = OrderedDict(self._entries)
        return other
