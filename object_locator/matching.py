"""
Slot -> candidate correspondence.

Three interchangeable strategies:
  * suppression: score each (slot, candidate) pair against the slot's enhanced
    region, then greedily assign by score
  * one_to_one: nearest neighbour, greedily assigned with a preference for
    1-to-1 mappings
  * nearest: each slot independently takes its nearest candidate

Greedy assignment runs in two passes. Pass 1 gives each candidate to at most one
slot; pass 2 lets slots that are still unassigned reuse a taken candidate (two
targets may share one candidate, e.g. under occlusion). This is deliberately a
fast approximation and can return a non-maximum matching.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging
import math

import numpy as np

from .config import LocatorParams
from .geometry import distance, intersects, location_center, pixels_to_degrees, sq_distance
from .types import Location, Region, Score, Slot

log = logging.getLogger(__name__)

Pair = Tuple[Slot, int]                      # slot, candidate index


def score_greater(a: Score, b: Score) -> bool:
    (overlap_a, prio_a), (overlap_b, prio_b) = a, b
    return prio_a > prio_b or (prio_a == prio_b and overlap_a > overlap_b)


def score_positive(s: Score) -> bool:
    return s[1] > 0


def estimate_score(candidate: Region,
                   location: Location,
                   eregion: Region,
                   rng: np.random.Generator,
                   image_width: int,
                   params: LocatorParams) -> Score:
    """
    (overlap, priority) for one pairing. Priority 2 means the candidate overlaps
    the location's bias, 1 that it overlaps the enhanced region by more than a
    noisy cutoff, 0 otherwise. One Gaussian is drawn per intersecting pair.
    """
    if not intersects(candidate, eregion):
        return (0.0, 0)

    c_center, c_radius = candidate.center, candidate.radius
    max_dist = c_radius + eregion.radius
    overlap = pixels_to_degrees(max_dist - distance(c_center, eregion.center),
                                image_width, params.viewing_width)
    cutoff = params.noise_center + rng.standard_normal() * params.noise_width

    if location.bias is not None:
        bias_dist = distance(c_center, location.bias.center)
        max_bias_dist = c_radius + location.bias.radius
        if bias_dist < max_bias_dist:
            return (float(max_bias_dist - bias_dist), 2)

    if overlap > cutoff:
        return (float(overlap), 1)
    return (float(overlap), 0)


def assign_greedy(ordered: Iterable[Pair]) -> Dict[Slot, int]:
    """Two-pass greedy over pairs sorted best-first."""
    ordered = list(ordered)
    results: Dict[Slot, int] = {}
    used_candidates = set()

    for reuse in (False, True):
        for slot, idx in ordered:
            if slot in results:
                continue
            if not reuse and idx in used_candidates:
                continue
            results[slot] = idx
            used_candidates.add(idx)
    return results


def _empty_result(slots: Iterable[Slot]) -> Dict[Slot, Optional[Region]]:
    return {slot: None for slot in slots}


def _to_regions(slots: Iterable[Slot], assigned: Mapping[Slot, int],
                candidates: Sequence[Region]) -> Dict[Slot, Optional[Region]]:
    return {slot: (candidates[assigned[slot]] if slot in assigned else None) for slot in slots}


def score_pairs(slot_to_location: Mapping[Slot, Location],
                candidates: Sequence[Region],
                eregions: Mapping[Slot, Optional[Region]],
                rng: np.random.Generator,
                image_width: int,
                params: LocatorParams) -> List[Tuple[Pair, Score]]:
    """Scores in slot order, then candidate order. A slot without an enhanced region is scored against its prior region."""
    scored = []
    for slot, loc in slot_to_location.items():
        target = eregions.get(slot) or loc.region
        for idx, cand in enumerate(candidates):
            scored.append(((slot, idx), estimate_score(cand, loc, target, rng, image_width, params)))
    return scored


def rank_scores(scored: Sequence[Tuple[Pair, Score]]) -> List[Pair]:
    """Positive pairs, priority desc then overlap desc; ties keep scoring order."""
    positive = [(pair, s) for pair, s in scored if score_positive(s)]
    positive.sort(key=lambda item: (-item[1][1], -item[1][0]))
    return [pair for pair, _ in positive]


def match_by_suppression(slot_to_location: Mapping[Slot, Location],
                         candidates: Sequence[Region],
                         eregions: Mapping[Slot, Optional[Region]],
                         rng: np.random.Generator,
                         image_width: int,
                         params: LocatorParams) -> Tuple[Dict[Slot, Optional[Region]], Dict[Pair, Score]]:
    if not candidates or not slot_to_location:
        return _empty_result(slot_to_location), {}
    scored = score_pairs(slot_to_location, candidates, eregions, rng, image_width, params)
    ranked = rank_scores(scored)
    log.debug("%d of %d pairings scored positive", len(ranked), len(scored))
    assigned = assign_greedy(ranked)
    return _to_regions(slot_to_location, assigned, candidates), dict(scored)


def _within_caps(sq_dist: float, location: Location, params: LocatorParams) -> bool:
    dist = math.sqrt(sq_dist)
    if params.max_distance is not None and dist > params.max_distance:
        return False
    if params.max_normed_distance is not None:
        radius = location.region.radius
        normed = dist / radius if radius > 0 else (math.inf if dist > 0 else 0.0)
        if normed > params.max_normed_distance:
            return False
    return True


def _candidate_distances(loc: Location, candidates: Sequence[Region]) -> List[Tuple[int, float]]:
    center = location_center(loc)
    return [(idx, sq_distance(center, cand.center)) for idx, cand in enumerate(candidates)]


def match_one_to_one(slot_to_location: Mapping[Slot, Location],
                     candidates: Sequence[Region],
                     params: LocatorParams) -> Dict[Slot, Optional[Region]]:
    if not candidates or not slot_to_location:
        return _empty_result(slot_to_location)

    pairs = []
    for slot, loc in slot_to_location.items():
        for idx, sq in _candidate_distances(loc, candidates):
            if _within_caps(sq, loc, params):
                pairs.append(((slot, idx), sq))
    pairs.sort(key=lambda item: item[1])
    assigned = assign_greedy(pair for pair, _ in pairs)
    return _to_regions(slot_to_location, assigned, candidates)


def match_nearest(slot_to_location: Mapping[Slot, Location],
                  candidates: Sequence[Region],
                  params: LocatorParams) -> Dict[Slot, Optional[Region]]:
    if not candidates or not slot_to_location:
        return _empty_result(slot_to_location)

    assigned: Dict[Slot, int] = {}
    for slot, loc in slot_to_location.items():
        eligible = [(idx, sq) for idx, sq in _candidate_distances(loc, candidates)
                    if _within_caps(sq, loc, params)]
        if eligible:
            assigned[slot] = min(eligible, key=lambda item: item[1])[0]
    return _to_regions(slot_to_location, assigned, candidates)
