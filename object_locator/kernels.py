"""
Center-surround ("Mexican hat") kernel synthesis.

A hat has a positive lobe of radius w around its center and a negative
surround whose width is set by w_neg. Large hats are computed at reduced
resolution and upscaled, which is much faster for little loss in accuracy.
"""
from typing import Dict, Tuple
import math

import numpy as np

from .config import LocatorParams
from .image import make_odd, resize_square
from .types import KernelSet, ShapeIndex

MEX_HAT_NORM = 2.0 / (math.sqrt(3.0) * math.pi ** 0.25)


def mex_hat(x):
    """1D Mexican hat wavelet (unit scale). Works on scalars and arrays."""
    x2 = np.square(x)
    return MEX_HAT_NORM * (1.0 - x2) * np.exp(-x2 / 2.0)


def hat_profile(i, w: float, w_neg: float):
    """Wavelet value at distance i: the positive lobe spans [0, w), the surround is stretched by w_neg."""
    i = np.asarray(i, dtype=np.float64)
    u = np.where(i < w, i / w, 1.0 + (i - w) / w_neg)
    return mex_hat(u)


def _distance_grid(radius: int) -> np.ndarray:
    ax = np.arange(-radius, radius + 1, dtype=np.float64)
    xx, yy = np.meshgrid(ax, ax)
    return np.sqrt(xx ** 2 + yy ** 2)


def _check_widths(w: float, w_neg: float) -> None:
    if w <= 0 or w_neg <= 0:
        raise ValueError(f"Hat widths must be positive, got w={w}, w_neg={w_neg}")


def make_mex_hat_image(radius: int, k: float, w: float, l: float,
                       k_neg: float, w_neg: float, l_neg: float) -> np.ndarray:
    """Full-resolution (2*radius+1)^2 hat: l + k*v on the positive lobe, l_neg + k_neg*v elsewhere."""
    _check_widths(w, w_neg)
    radius = max(0, int(radius))
    v = hat_profile(_distance_grid(radius), w, w_neg)
    img = np.where(v > 0, l + k * v, l_neg + k_neg * v)
    return img.astype(np.float32)


def mexhat_divisor(w: float, params: LocatorParams) -> int:
    """Largest divisor that keeps the downscaled positive radius above min_w."""
    for d in range(params.max_divisor - 1, 0, -1):
        if w / d > params.min_w:
            return d
    return 1


def make_mex_hat_image_set(radius: float, k: float, w: float, l: float,
                           k_neg: float, w_neg: float, l_neg: float,
                           k_neg2: float, l_neg2: float,
                           params: LocatorParams) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Three images sharing one geometry, computed at reduced resolution:
      1) the positive lobe only, cropped to 2*int(w)+1
      2) the negative surround scaled by k_neg/l_neg ("big" hat)
      3) the negative surround scaled by k_neg2/l_neg2 ("small" hat)
    """
    _check_widths(w, w_neg)
    div = mexhat_divisor(w, params)
    radius = int(radius / div)
    w = w / div
    w_neg = w_neg / div

    width = 2 * radius + 1
    pos_width = min(2 * int(w) + 1, width)
    pos_min = (width - pos_width) // 2

    v = hat_profile(_distance_grid(radius), w, w_neg)
    positive = np.where(v > 0, l + k * v, 0.0)[pos_min:pos_min + pos_width, pos_min:pos_min + pos_width]
    big_neg = np.where(v > 0, 0.0, l_neg + k_neg * v)
    small_neg = np.where(v > 0, 0.0, l_neg2 + k_neg2 * v)

    return (
        resize_square(positive.astype(np.float32), make_odd(int(pos_width * div))),
        resize_square(big_neg.astype(np.float32), make_odd(int(width * div))),
        resize_square(small_neg.astype(np.float32), make_odd(int(width * div))),
    )


def make_scaled_mex_hat_image(w: float, w_neg: float, params: LocatorParams):
    # the surround extends to 1.75*w_neg past the positive lobe
    return make_mex_hat_image_set(
        int(w + w_neg * 1.75), params.hat_k, w, params.hat_l,
        params.hat_neg_k, w_neg / 2.0, params.hat_neg_l,
        params.small_hat_k, 0.0, params,
    )


def make_bias_image(radius: int, value: float) -> np.ndarray:
    """Small positive-only hat placed at an extrapolated position."""
    radius = max(1, int(radius))
    return make_mex_hat_image(radius, value, radius, 0.0, 0.0, 1.0, 0.0)


def distance_buckets(dims: Tuple[int, int], num_hats: int) -> list:
    """Lower/upper bucket boundaries (pixels from gaze) spanning center to corner."""
    max_x, max_y = dims[0] / 2.0, dims[1] / 2.0
    return [int(math.hypot(max_x * i / num_hats, max_y * i / num_hats)) for i in range(num_hats + 1)]


def make_kernel_set(index: ShapeIndex, dims: Tuple[int, int], params: LocatorParams) -> KernelSet:
    small_diameter = index[0]
    half_width = small_diameter / 2.0
    radius = params.hat_pos_radius_multi * half_width

    bounds = distance_buckets(dims, params.num_hats)
    big: Dict[int, np.ndarray] = {}
    small: Dict[int, np.ndarray] = {}
    positive = None
    for i in range(params.num_hats):
        half_avg_dist = max(1.0, (bounds[i] + bounds[i + 1]) / 4.0)
        pos, neg, neg2 = make_scaled_mex_hat_image(radius, half_avg_dist, params)
        if positive is None:
            positive = pos
        big.setdefault(bounds[i], neg)
        small.setdefault(bounds[i], neg2)

    bias_radius = int(half_width * params.pos_bias_radius_multi)
    return KernelSet(
        enhance_radius=radius,
        positive=positive,
        big_negative=big,
        small_negative=small,
        bias_radius=bias_radius,
        bias=make_bias_image(bias_radius, params.pos_bias_strength_multi),
    )


def bucket_for_distance(buckets, dist: float):
    """Largest bucket lower bound <= dist (falls back to the first bucket)."""
    keys = sorted(buckets)
    chosen = keys[0]
    for b in keys:
        if dist >= b:
            chosen = b
    return chosen
