"""Top-level package interface for object_locator.

Expose the main API: ObjectLocator for per-run tracking, locate_objects for a
single cycle, and the data types they exchange.
"""
from .cache import KernelCache, shape_index  # re-export
from .config import LocatorParams
from .core import ObjectLocator, locate_objects
from .types import CycleResult, Location, Region

__all__ = [
    "CycleResult",
    "KernelCache",
    "Location",
    "LocatorParams",
    "ObjectLocator",
    "Region",
    "locate_objects",
    "shape_index",
]
