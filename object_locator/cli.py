import sys
import os
import json
import logging
import cv2
from .config import LocatorParams
from .core import ObjectLocator
from .types import Location, Region

log = logging.getLogger(__name__)


def _region(bbox):
    return None if bbox is None else Region.from_xywh(bbox)


def run_scenario(scenario: dict):
    """
    Play a scenario: {"dims": [w, h], "params": {...}, "seed": int,
    "slots": {name: [x, y, w, h]}, "cycles": [{"candidates": [...], "gaze": [x, y],
    "saccading": bool, "bias": {name: [x, y, w, h]}}]}.

    Matched regions become the next cycle's priors; unmatched slots keep their last region.
    Returns (per-cycle outputs, locator, last CycleResult, last priors).
    """
    dims = tuple(scenario["dims"])
    params = LocatorParams.from_dict(scenario.get("params"))
    locator = ObjectLocator(dims, params, seed=scenario.get("seed"))

    regions = {slot: _region(b) for slot, b in scenario.get("slots", {}).items()}
    outputs = []
    result, priors = None, {}
    for i, cyc in enumerate(scenario.get("cycles", [])):
        bias = cyc.get("bias") or {}
        priors = {slot: Location(slot, r, _region(bias.get(slot))) for slot, r in regions.items()}
        candidates = [Region.from_xywh(b) for b in cyc.get("candidates", [])]
        gaze = tuple(cyc["gaze"]) if cyc.get("gaze") is not None else None

        result = locator.run_cycle(candidates, priors, gaze=gaze, saccading=bool(cyc.get("saccading", False)))
        out = {}
        for slot, r in result.slot_to_region.items():
            out[slot] = list(r.as_xywh()) if r is not None else None
            if r is not None:
                regions[slot] = r
            else:
                log.info("cycle %d: slot %s unmatched", i, slot)
        outputs.append(out)
    return outputs, locator, result, priors


def main(argv=None):
    argv = sys.argv if argv is None else argv
    show = "--show" in argv[1:]
    argv = [a for a in argv if a != "--show"]
    if len(argv) < 2:
        print('Usage: python -m object_locator.cli "scenarios/your_scenario.json" [--show]')
        sys.exit(2)

    logging.basicConfig(level=logging.INFO)
    in_path = argv[1]
    if not os.path.exists(in_path):
        raise FileNotFoundError(f"Cannot read scenario: {in_path}")
    with open(in_path, "r", encoding="utf-8") as f:
        scenario = json.load(f)

    os.makedirs("outputs", exist_ok=True)
    base = os.path.splitext(os.path.basename(in_path))[0]
    json_path = os.path.join("outputs", f"{base}.json")
    vis_path = os.path.join("outputs", f"{base}.png")

    outputs, locator, result, priors = run_scenario(scenario)

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump({"params": locator.params.to_dict(), "cycles": outputs}, f, ensure_ascii=False, indent=2)
    print(f"[OK] Wrote JSON to: {json_path}")

    if result is None or result.suppression_map is None:
        print("[OK] No suppression map to draw (no cycles, saccade, or nearest-neighbour matching).")
        return

    from .visualize import draw_cycle
    vis = draw_cycle(result.suppression_map, priors, result.slot_to_region, result.enhanced_regions)
    ok = cv2.imwrite(vis_path, vis)
    if not ok:
        raise RuntimeError(f"Failed to write image: {vis_path}")
    print(f"[OK] Wrote visualization to: {vis_path}")

    if show:
        from .visualize import show_enhanced_regions, show_suppression_map
        show_suppression_map(result.suppression_map)
        show_enhanced_regions(result.enhanced_regions)


if __name__ == "__main__":
    main()
