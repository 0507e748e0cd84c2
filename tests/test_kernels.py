import numpy as np
import pytest

from object_locator.config import LocatorParams
from object_locator.kernels import (
    bucket_for_distance,
    distance_buckets,
    hat_profile,
    make_bias_image,
    make_kernel_set,
    make_mex_hat_image,
    mex_hat,
    mexhat_divisor,
)


def test_mex_hat_peak_and_zero_crossing():
    assert mex_hat(0.0) == pytest.approx(2 / (np.sqrt(3) * np.pi ** 0.25))
    assert mex_hat(1.0) == pytest.approx(0.0)
    assert mex_hat(1.5) < 0


def test_kernel_is_symmetric():
    img = make_mex_hat_image(20, 1.0, 8, 0.0, 1.0, 6, 0.0)
    assert img.shape == (41, 41)
    assert img.dtype == np.float32
    assert np.allclose(img, img.T)
    assert np.allclose(img, img[::-1, ::-1])


def test_profile_decreases_and_flips_sign_once():
    w, w_neg = 12.0, 7.0
    inside = hat_profile(np.arange(0, w), w, w_neg)
    assert np.all(np.diff(inside) < 0)
    assert np.all(inside > 0)

    full = hat_profile(np.arange(0, 5 * w), w, w_neg)
    positive = full > 0
    flips = np.count_nonzero(positive[1:] != positive[:-1])
    assert flips == 1
    assert not positive[int(w)]
    assert np.all(full[int(w) + 1:] < 0)


def test_kernel_pixels_use_separate_amplitudes():
    img = make_mex_hat_image(10, 2.0, 4, 0.5, 3.0, 4, -0.25)
    center = img[10, 10]
    assert center == pytest.approx(0.5 + 2.0 * mex_hat(0.0), rel=1e-5)
    # distance 6 from the center: u = 1 + 2/4
    assert img[10, 16] == pytest.approx(-0.25 + 3.0 * mex_hat(1.5), rel=1e-5)


def test_nonpositive_widths_are_rejected():
    with pytest.raises(ValueError):
        make_mex_hat_image(10, 1.0, 0, 0.0, 1.0, 4, 0.0)


def test_divisor_keeps_radius_above_minimum():
    params = LocatorParams()
    assert mexhat_divisor(15, params) == 2
    assert mexhat_divisor(100, params) == 9
    assert mexhat_divisor(4, params) == 1


def test_distance_buckets_span_center_to_corner():
    assert distance_buckets((640, 480), 5) == [0, 80, 160, 240, 320, 400]


def test_bucket_lookup_picks_largest_lower_bound():
    buckets = {0: "a", 80: "b", 160: "c"}
    assert bucket_for_distance(buckets, 0) == 0
    assert bucket_for_distance(buckets, 79.9) == 0
    assert bucket_for_distance(buckets, 80) == 80
    assert bucket_for_distance(buckets, 1000) == 160


def test_kernel_set_layout():
    params = LocatorParams()
    ks = make_kernel_set((20, 20, 1.0, None), (640, 480), params)

    assert ks.enhance_radius == pytest.approx(15.0)
    assert sorted(ks.big_negative) == [0, 80, 160, 240, 320]
    assert sorted(ks.small_negative) == sorted(ks.big_negative)

    for img in [ks.positive, ks.bias, *ks.big_negative.values(), *ks.small_negative.values()]:
        assert img.ndim == 2
        assert img.shape[0] == img.shape[1]
        assert img.shape[0] % 2 == 1

    assert np.all(ks.positive >= 0)
    assert ks.positive.max() > 0
    for neg in ks.big_negative.values():
        assert np.all(neg <= 0)
        assert neg.min() < 0
    # small hats are flat with the default zero amplitude
    for neg in ks.small_negative.values():
        assert np.allclose(neg, 0)

    # farther buckets have wider surrounds
    sizes = [ks.big_negative[b].shape[0] for b in sorted(ks.big_negative)]
    assert sizes == sorted(sizes)


def test_small_hats_follow_their_own_amplitude():
    params = LocatorParams(small_hat_k=0.5)
    ks = make_kernel_set((20, 20, 1.0, None), (640, 480), params)
    for b, small in ks.small_negative.items():
        big = ks.big_negative[b]
        assert small.shape == big.shape
        assert np.allclose(small, 0.5 * big, atol=1e-6)


def test_bias_image_is_positive_only():
    img = make_bias_image(10, 2.5)
    assert img.shape == (21, 21)
    assert np.all(img >= 0)
    assert img[10, 10] == pytest.approx(2.5 * mex_hat(0.0), rel=1e-5)
