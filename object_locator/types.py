from dataclasses import dataclass, field
from numbers import Real
from typing import Dict, Hashable, Optional, Tuple
import math
import numpy as np


Slot = Hashable
Point = Tuple[float, float]                  # x,y
Score = Tuple[float, int]                    # overlap, priority
ShapeIndex = Tuple[float, float, float, Optional[Tuple[int, int]]]


@dataclass(frozen=True)
class Region:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        for name in ("x", "y", "width", "height"):
            v = getattr(self, name)
            if v is None or isinstance(v, bool) or not isinstance(v, Real):
                raise ValueError(f"Region.{name} must be a number, got {v!r}")
            if not math.isfinite(v):
                raise ValueError(f"Region.{name} must be finite, got {v!r}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Region needs positive width/height, got {self.width}x{self.height}")

    @classmethod
    def from_xywh(cls, bbox) -> "Region":
        x, y, w, h = bbox
        return cls(x, y, w, h)

    # pixel-inclusive extents
    @property
    def max_x(self) -> float:
        return self.x + self.width - 1

    @property
    def max_y(self) -> float:
        return self.y + self.height - 1

    @property
    def center(self) -> Point:
        return (self.x + (self.width - 1) / 2.0, self.y + (self.height - 1) / 2.0)

    @property
    def radius(self) -> float:
        return ((self.width - 1) / 2.0 + (self.height - 1) / 2.0) / 2.0

    @property
    def area(self) -> float:
        return float(self.width * self.height)

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class Location:
    slot: Slot
    region: Region
    bias: Optional[Region] = None            # extrapolated expected position

    def __post_init__(self):
        if not isinstance(self.region, Region):
            raise TypeError(f"Location.region must be a Region, got {type(self.region).__name__}")
        if self.bias is not None and not isinstance(self.bias, Region):
            raise TypeError(f"Location.bias must be a Region or None, got {type(self.bias).__name__}")


@dataclass
class KernelSet:
    enhance_radius: float
    positive: np.ndarray
    big_negative: Dict[int, np.ndarray]      # bucket lower bound -> kernel
    small_negative: Dict[int, np.ndarray]
    bias_radius: int
    bias: np.ndarray


@dataclass
class EnhancedRegion:
    region: Region
    hat: np.ndarray                          # map + stamped kernels, window only
    mask: np.ndarray                         # uint8, 255 where the target dominates
    origin: Tuple[int, int]                  # window top-left in image coords


@dataclass
class CycleResult:
    slot_to_region: Dict[Slot, Optional[Region]]
    suppression_map: Optional[np.ndarray] = None
    enhanced_regions: Dict[Slot, Optional[EnhancedRegion]] = field(default_factory=dict)
    scores: Dict[Tuple[Slot, int], Score] = field(default_factory=dict)
