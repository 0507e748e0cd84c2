"""
Frame-to-frame tracking of the objects that currently hold a slot.

Each cycle the locator receives this cycle's candidate regions and the prior
location of every tracked slot, and returns where each slot is now (or None).
With suppression matching, every tracked region inhibits its surroundings
through a Mexican hat; a target keeps the candidates inside the area where its
own positive lobe still wins.
"""
from typing import Dict, Mapping, Optional, Sequence, Tuple
import logging

import numpy as np

from .cache import KernelCache
from .config import LocatorParams
from .enhance import enhanced_region
from .matching import match_by_suppression, match_nearest, match_one_to_one
from .suppression import SuppressionBuffers, compose, unique_regions
from .types import CycleResult, Location, Point, Region, Slot

log = logging.getLogger(__name__)


def _check_candidates(candidates: Optional[Sequence[Region]]) -> Tuple[Region, ...]:
    candidates = tuple(candidates or ())
    for c in candidates:
        if not isinstance(c, Region):
            raise TypeError(f"Candidates must be Region instances, got {type(c).__name__}")
    return candidates


def _check_locations(slot_to_location: Optional[Mapping[Slot, Location]]) -> Dict[Slot, Location]:
    out: Dict[Slot, Location] = {}
    for slot, loc in (slot_to_location or {}).items():
        if not isinstance(loc, Location):
            raise TypeError(f"Slot {slot!r} must map to a Location, got {type(loc).__name__}")
        out[slot] = loc
    return out


def untracked_regions(previous: Sequence[Region], tracked: Sequence[Region]) -> list:
    """Last cycle's candidates that no slot is tracking."""
    tracked = set(tracked)
    return [r for r in unique_regions(previous) if r not in tracked]


class ObjectLocator:
    """
    Long-lived tracker for one run. Owns the kernel cache, the two suppression
    buffers and the previous cycle's candidates. Not safe to run cycles
    concurrently on one instance.
    """

    def __init__(self,
                 dims: Tuple[int, int],
                 params: Optional[LocatorParams] = None,
                 cache: Optional[KernelCache] = None,
                 seed: Optional[int] = None):
        if len(dims) != 2 or dims[0] <= 0 or dims[1] <= 0:
            raise ValueError(f"dims must be a positive (width, height), got {dims}")
        self.dims = (int(dims[0]), int(dims[1]))
        self.params = params or LocatorParams()
        if cache is not None and cache.dims != self.dims:
            raise ValueError(f"Kernel cache built for {cache.dims}, locator uses {self.dims}")
        self.cache = cache if cache is not None else KernelCache(self.dims, self.params)
        self.buffers = SuppressionBuffers(self.dims)
        self.rng = np.random.default_rng(seed)
        self.previous_candidates: Tuple[Region, ...] = ()

    def run_cycle(self,
                  candidates: Sequence[Region],
                  slot_to_location: Mapping[Slot, Location],
                  gaze: Optional[Point] = None,
                  saccading: bool = False,
                  rng: Optional[np.random.Generator] = None) -> CycleResult:
        slot_to_location = _check_locations(slot_to_location)

        if saccading:
            # no reliable input: keep last known regions, leave all state alone
            log.debug("Saccade in progress; echoing %d prior locations", len(slot_to_location))
            return CycleResult({slot: loc.region for slot, loc in slot_to_location.items()})

        candidates = _check_candidates(candidates)
        rng = self.rng if rng is None else rng
        mode = self.params.matching

        if mode == "suppression":
            result = self._match_with_suppression(candidates, slot_to_location, gaze, rng)
        elif mode == "one_to_one":
            result = CycleResult(match_one_to_one(slot_to_location, candidates, self.params))
        else:
            result = CycleResult(match_nearest(slot_to_location, candidates, self.params))

        self.previous_candidates = candidates
        matched = sum(1 for r in result.slot_to_region.values() if r is not None)
        log.debug("Cycle (%s): %d/%d slots matched from %d candidates",
                  mode, matched, len(slot_to_location), len(candidates))
        return result

    def _match_with_suppression(self, candidates, slot_to_location, gaze, rng) -> CycleResult:
        tracked = unique_regions([loc.region for loc in slot_to_location.values()])
        untracked = untracked_regions(self.previous_candidates, tracked)
        self.cache.ensure_kernels(tracked + untracked)

        olmap = compose(self.buffers.current, tracked, untracked, self.cache,
                        gaze=gaze, target_cost=self.params.target_cost)

        eregions = {slot: enhanced_region(loc, olmap, self.cache)
                    for slot, loc in slot_to_location.items()}
        for slot, er in eregions.items():
            if er is None:
                log.debug("No enhanced region for slot %r; scoring against its prior region", slot)

        slot_to_region, scores = match_by_suppression(
            slot_to_location, candidates,
            {slot: (er.region if er is not None else None) for slot, er in eregions.items()},
            rng, self.dims[0], self.params,
        )
        self.buffers.swap()
        # olmap is a buffer that gets refilled two cycles from now
        return CycleResult(slot_to_region, olmap.copy(), eregions, scores)

    def reset(self, seed: Optional[int] = None) -> None:
        """Forget the previous cycle and clear both buffers. The kernel cache is kept."""
        self.buffers = SuppressionBuffers(self.dims)
        self.previous_candidates = ()
        self.rng = np.random.default_rng(seed)


def locate_objects(candidates: Sequence[Region],
                   slot_to_location: Mapping[Slot, Location],
                   dims: Tuple[int, int],
                   params: Optional[LocatorParams] = None,
                   gaze: Optional[Point] = None,
                   saccading: bool = False,
                   seed: Optional[int] = None) -> CycleResult:
    """One-shot cycle with a fresh locator (no previous-cycle candidates, empty cache)."""
    return ObjectLocator(dims, params, seed=seed).run_cycle(
        candidates, slot_to_location, gaze=gaze, saccading=saccading)
