from typing import Dict, Mapping, Optional
import matplotlib.pyplot as plt
import numpy as np
import cv2
from .types import EnhancedRegion, Location, Region, Slot


def map_to_bgr(olmap: np.ndarray) -> np.ndarray:
    """Suppression map as an 8-bit BGR image: 128 is zero, darker is suppressed."""
    scale = float(np.max(np.abs(olmap))) or 1.0
    gray = np.clip(128.0 + 127.0 * (olmap / scale), 0, 255).astype(np.uint8)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


def _rect(vis: np.ndarray, r: Region, color, thickness: int = 1) -> None:
    x, y = int(r.x), int(r.y)
    cv2.rectangle(vis, (x, y), (int(r.max_x), int(r.max_y)), color, thickness)


def draw_cycle(olmap: np.ndarray,
               slot_to_location: Mapping[Slot, Location],
               slot_to_region: Mapping[Slot, Optional[Region]],
               enhanced: Optional[Mapping[Slot, Optional[EnhancedRegion]]] = None) -> np.ndarray:
    vis = map_to_bgr(olmap)
    enhanced = enhanced or {}

    for slot, loc in slot_to_location.items():
        _rect(vis, loc.region, (255, 0, 0))
        if loc.bias is not None:
            _rect(vis, loc.bias, (255, 255, 0))
        er = enhanced.get(slot)
        if er is not None:
            _rect(vis, er.region, (0, 255, 255))
        new = slot_to_region.get(slot)
        if new is not None:
            _rect(vis, new, (0, 255, 0), 2)
            cv2.putText(vis, str(slot), (int(new.x), max(0, int(new.y) - 4)),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, (0, 255, 0), 1, cv2.LINE_AA)
    return vis


def show_suppression_map(olmap: np.ndarray, title: str = "Suppression map",
                         figsize: tuple = (10, 7)) -> None:
    plt.figure(figsize=figsize)
    lim = float(np.max(np.abs(olmap))) or 1.0
    plt.imshow(olmap, cmap="RdBu", vmin=-lim, vmax=lim)
    plt.colorbar()
    plt.title(title)
    plt.axis("off")
    plt.show()


def show_enhanced_regions(enhanced: Dict[Slot, Optional[EnhancedRegion]], cols: int = 3,
                          figsize: tuple = (12, 8)) -> None:
    items = [(slot, er) for slot, er in enhanced.items() if er is not None]
    if not items:
        return
    rows = (len(items) + cols - 1) // cols
    fig, axes = plt.subplots(rows, cols, figsize=figsize)
    axes = np.array(axes).reshape(-1)

    for ax in axes[len(items):]:
        ax.axis("off")

    for ax, (slot, er) in zip(axes, items):
        ax.imshow(er.mask, cmap="gray")
        ax.set_title(f"slot {slot}")
        ax.axis("off")

    fig.suptitle("Enhanced regions", fontsize=14)
    plt.tight_layout()
    plt.show()
