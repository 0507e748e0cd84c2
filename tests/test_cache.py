import threading

import pytest

from object_locator.cache import KernelCache, indices_compatible, shape_index
from object_locator.config import LocatorParams
from object_locator.types import Region

DIMS = (320, 240)


def test_shape_index_orientation():
    params = LocatorParams()
    assert shape_index(Region(0, 0, 100, 50), params) == (50, 100, 0.5, (1, 0))
    assert shape_index(Region(0, 0, 50, 100), params) == (50, 100, 0.5, (0, 1))
    assert shape_index(Region(0, 0, 40, 36), params) == (36, 40, 0.9, None)


def test_nearly_equal_widths_share_kernels():
    params = LocatorParams(width_thresh=0.01)
    cache = KernelCache(DIMS, params)
    a, b = Region(0, 0, 100, 50), Region(10, 10, 101, 50)
    cache.ensure_kernels([a, b])
    assert len(cache) == 1
    assert cache.kernels_for(a) is cache.kernels_for(b)


def test_double_width_never_shares_at_default_threshold():
    params = LocatorParams()
    assert params.width_thresh == 0.3
    cache = KernelCache(DIMS, params)
    cache.ensure_kernels([Region(0, 0, 100, 100), Region(0, 0, 200, 200)])
    assert len(cache) == 2
    assert not indices_compatible(
        shape_index(Region(0, 0, 100, 50), params), shape_index(Region(0, 0, 200, 50), params), params)


def test_orientation_must_match():
    params = LocatorParams()
    a = shape_index(Region(0, 0, 100, 50), params)
    b = shape_index(Region(0, 0, 50, 100), params)
    assert not indices_compatible(a, b, params)


def test_aspect_ratio_tolerance():
    params = LocatorParams(width_thresh=1.0, ar_thresh=0.2)
    a = shape_index(Region(0, 0, 40, 40), params)       # ar 1.0
    b = shape_index(Region(0, 0, 40, 34), params)       # ar 0.85, still square-ish
    c = shape_index(Region(0, 0, 40, 30), params)       # ar 0.75, now oriented
    assert indices_compatible(a, b, params)
    assert not indices_compatible(a, c, params)


def test_existing_entries_are_never_overwritten():
    cache = KernelCache(DIMS, LocatorParams())
    r = Region(5, 5, 20, 20)
    cache.ensure_kernels([r])
    first = cache.kernels_for(r)
    cache.ensure_kernels([r, Region(50, 50, 21, 20)])
    assert len(cache) == 1
    assert cache.kernels_for(r) is first


def test_lookup_synthesizes_missing_shapes():
    cache = KernelCache(DIMS, LocatorParams())
    r = Region(0, 0, 12, 12)
    assert r not in cache
    ks = cache.kernels_for(r)
    assert r in cache
    assert ks.enhance_radius == pytest.approx(9.0)


def test_negative_kernel_buckets_by_distance():
    cache = KernelCache(DIMS, LocatorParams())
    r = Region(0, 0, 20, 20)
    ks = cache.kernels_for(r)
    assert cache.negative_kernel(r, 0.0, big=True) is ks.big_negative[0]
    far = max(ks.big_negative)
    assert cache.negative_kernel(r, 10000.0, big=True) is ks.big_negative[far]
    assert cache.negative_kernel(r, 10000.0, big=False) is ks.small_negative[far]


def test_lru_eviction():
    cache = KernelCache(DIMS, LocatorParams(), max_entries=2)
    small, mid, big = Region(0, 0, 10, 10), Region(0, 0, 30, 30), Region(0, 0, 90, 90)
    cache.ensure_kernels([small, mid])
    cache.kernels_for(small)                 # small is now most recent
    cache.ensure_kernels([big])
    assert len(cache) == 2
    assert small in cache
    assert mid not in cache


def test_copy_is_isolated():
    cache = KernelCache(DIMS, LocatorParams())
    cache.ensure_kernels([Region(0, 0, 20, 20)])
    clone = cache.copy()
    clone.ensure_kernels([Region(0, 0, 80, 80)])
    assert len(cache) == 1
    assert len(clone) == 2
    assert clone.kernels_for(Region(0, 0, 20, 20)) is cache.kernels_for(Region(0, 0, 20, 20))


def test_bad_dims_rejected():
    with pytest.raises(ValueError):
        KernelCache((0, 240), LocatorParams())


def test_membership_and_keys():
    cache = KernelCache(DIMS, LocatorParams())
    r = Region(0, 0, 20, 20)
    assert r not in cache
    assert cache.keys() == []
    cache.ensure_kernels([r, Region(50, 50, 20, 20)])
    assert r in cache
    assert cache.keys() == [shape_index(r, LocatorParams())]


def test_concurrent_lookups_while_inserting():
    cache = KernelCache(DIMS, LocatorParams(), max_entries=4)
    regions = [Region(0, 0, 10 + 4 * i, 10 + 4 * i) for i in range(12)]
    errors = []

    def work(offset):
        try:
            for i in range(len(regions)):
                r = regions[(i + offset) % len(regions)]
                assert cache.kernels_for(r).positive.size > 0
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=work, args=(k,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert len(cache) <= 4
