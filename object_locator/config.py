from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

MATCHING_MODES = ("suppression", "one_to_one", "nearest")

# Mexican hat amplitudes/baselines. "small" hats carry only a negative lobe
# and are stamped for untracked regions.
HAT_DEFAULTS: Dict[str, float] = {
    "hat_k": 1.0,
    "hat_l": 0.0,
    "hat_neg_k": 1.0,
    "hat_neg_l": 0.0,
    "small_hat_k": 0.0,
    "hat_pos_radius_multi": 1.5,
    "pos_bias_radius_multi": 1.0,
    "pos_bias_strength_multi": 2.5,
}

# kernel reuse tolerances + downscaling
CACHE_DEFAULTS: Dict[str, float] = {
    "width_thresh": 0.3,
    "ar_thresh": 0.2,
    "num_hats": 5,
    "max_divisor": 10,
    "min_w": 5,
}

# perceptual noise on the suppression score cutoff, in degrees
NOISE_DEFAULTS: Dict[str, float] = {
    "noise_center": 0.2,
    "noise_width": 0.15,
}

VIEWING_WIDTH_DEG = 15.375


@dataclass(frozen=True)
class LocatorParams:
    hat_k: float = HAT_DEFAULTS["hat_k"]
    hat_l: float = HAT_DEFAULTS["hat_l"]
    hat_neg_k: float = HAT_DEFAULTS["hat_neg_k"]
    hat_neg_l: float = HAT_DEFAULTS["hat_neg_l"]
    small_hat_k: float = HAT_DEFAULTS["small_hat_k"]
    hat_pos_radius_multi: float = HAT_DEFAULTS["hat_pos_radius_multi"]
    pos_bias_radius_multi: float = HAT_DEFAULTS["pos_bias_radius_multi"]
    pos_bias_strength_multi: float = HAT_DEFAULTS["pos_bias_strength_multi"]

    width_thresh: float = CACHE_DEFAULTS["width_thresh"]
    ar_thresh: float = CACHE_DEFAULTS["ar_thresh"]
    num_hats: int = int(CACHE_DEFAULTS["num_hats"])
    max_divisor: int = int(CACHE_DEFAULTS["max_divisor"])
    min_w: float = CACHE_DEFAULTS["min_w"]

    noise_center: float = NOISE_DEFAULTS["noise_center"]
    noise_width: float = NOISE_DEFAULTS["noise_width"]

    # fixed amount subtracted over the whole field per tracked target
    target_cost: float = 0.0

    matching: str = "suppression"
    max_distance: Optional[float] = None          # pixels, nearest-neighbour modes only
    max_normed_distance: Optional[float] = None   # distance / prior radius

    viewing_width: float = VIEWING_WIDTH_DEG      # degrees spanned by the image width

    def __post_init__(self):
        if self.matching not in MATCHING_MODES:
            raise ValueError(f"matching must be one of {MATCHING_MODES}, got {self.matching!r}")
        if self.num_hats < 1:
            raise ValueError("num_hats must be >= 1")
        if self.max_divisor < 2:
            raise ValueError("max_divisor must be >= 2")
        if self.width_thresh < 0 or self.ar_thresh < 0:
            raise ValueError("width_thresh and ar_thresh must be non-negative")
        if self.noise_width < 0:
            raise ValueError("noise_width must be non-negative")
        if self.viewing_width <= 0:
            raise ValueError("viewing_width must be positive")
        for name in ("max_distance", "max_normed_distance"):
            v = getattr(self, name)
            if v is not None and v < 0:
                raise ValueError(f"{name} must be non-negative or None")

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "LocatorParams":
        d = dict(d or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown locator parameters: {unknown}")
        return cls(**d)

    def with_overrides(self, **kw) -> "LocatorParams":
        return replace(self, **kw)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
