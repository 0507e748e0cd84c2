"""Pixel-level helpers.

Every image in the package is a single-channel float32 numpy array indexed
[row, col]. OpenCV is only called from here.
"""
from typing import Optional, Tuple
import cv2
import numpy as np


Window = Tuple[int, int, int, int, int, int]   # img x0,y0 | kernel x0,y0 | w,h


def blank(dims: Tuple[int, int], value: float = 0.0) -> np.ndarray:
    w, h = dims
    if w <= 0 or h <= 0:
        raise ValueError(f"Image dims must be positive, got {dims}")
    return np.full((int(h), int(w)), value, dtype=np.float32)


def make_odd(i: int) -> int:
    return i if i % 2 == 1 else i + 1


def resize_square(img: np.ndarray, side: int) -> np.ndarray:
    side = max(1, int(side))
    if img.shape[0] == side and img.shape[1] == side:
        return img
    return cv2.resize(img, (side, side), interpolation=cv2.INTER_LINEAR)


def clip_window(kernel_shape: Tuple[int, int], center: Tuple[float, float],
                image_shape: Tuple[int, int]) -> Optional[Window]:
    """
    Placement of an odd-sized kernel centred at `center` (x,y), clipped to the image.
    Returns None when the kernel does not overlap the image at all.
    """
    kh, kw = kernel_shape[:2]
    ih, iw = image_shape[:2]
    cx, cy = int(np.floor(center[0])), int(np.floor(center[1]))

    old_min_x = cx - (kw - 1) // 2
    old_min_y = cy - (kh - 1) // 2
    old_max_x = old_min_x + kw - 1
    old_max_y = old_min_y + kh - 1

    min_x, min_y = max(old_min_x, 0), max(old_min_y, 0)
    max_x, max_y = min(old_max_x, iw - 1), min(old_max_y, ih - 1)

    w = max_x - min_x + 1
    h = max_y - min_y + 1
    if w <= 0 or h <= 0:
        return None
    return (min_x, min_y, min_x - old_min_x, min_y - old_min_y, w, h)


def stamp_add(dst: np.ndarray, kernel: np.ndarray, center: Tuple[float, float]) -> Optional[Window]:
    """Add kernel into dst in place, centred at `center`. Returns the window used."""
    win = clip_window(kernel.shape, center, dst.shape)
    if win is None:
        return None
    x0, y0, kx, ky, w, h = win
    dst[y0:y0 + h, x0:x0 + w] += kernel[ky:ky + h, kx:kx + w]
    return win


def positive_mask(img: np.ndarray) -> np.ndarray:
    _, mask = cv2.threshold(img.astype(np.float32), 0, 255, cv2.THRESH_BINARY)
    return mask.astype(np.uint8)


def nonzero_bounds(mask: np.ndarray) -> Optional[Tuple[int, int, int, int]]:
    pts = cv2.findNonZero(mask)
    if pts is None:
        return None
    x, y, w, h = cv2.boundingRect(pts)
    return int(x), int(y), int(w), int(h)
