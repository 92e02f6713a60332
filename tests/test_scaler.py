"""Tests for the histogram-equalization scaling pipeline."""

import warnings

import numpy as np
import pytest

from tonyscale import ResourceError, ValidationError, scale, scale_image
from tonyscale import scaler
from tonyscale.scaler import (
    BinningParameters,
    build_histogram,
    normalize_cdf,
    remap,
    scan_range,
)


@pytest.fixture
def normal_image():
    """256×256 image of normally distributed values around zero."""
    rng = np.random.default_rng(12345)
    return rng.normal(loc=0.0, scale=100.0, size=(256, 256))


class TestScanRange:
    def test_min_max(self):
        assert scan_range(np.array([3.0, -2.5, 7.25, 0.0])) == (-2.5, 7.25)

    def test_empty_raises(self):
        with pytest.raises(ValidationError):
            scan_range(np.array([], dtype=np.float64))


class TestBinningParameters:
    def test_positive_bounds(self):
        params = BinningParameters.from_range(0.0, 10.0, 10)
        assert (params.h_min, params.h_max) == (-1, 11)
        assert params.bin_size == pytest.approx(1.2)

    def test_negative_bounds_truncate_toward_zero(self):
        # floor(-3.5 - 1) would be -5; truncation gives -4
        params = BinningParameters.from_range(-3.5, -1.5, 4)
        assert params.h_min == -4
        assert params.h_max == 0

    def test_bounds_bracket_range(self):
        for v_min, v_max in [(-7.9, 3.1), (0.2, 0.3), (-0.5, -0.25), (1e6, 1e6 + 1)]:
            params = BinningParameters.from_range(v_min, v_max, 100)
            assert params.h_min <= v_min
            assert params.h_max > v_max

    def test_bucket_clamped_to_last_bin(self):
        params = BinningParameters(h_min=0, h_max=10, n_bins=10)
        idx = params.bucket(np.array([0.0, 9.99, 10.0, 12.0]))
        assert idx.dtype == np.int64
        assert idx.tolist() == [0, 9, 9, 9]


class TestHistogramAndCdf:
    def test_histogram_counts_every_element(self, normal_image):
        values = normal_image.ravel()
        params = BinningParameters.from_range(*scan_range(values), 1000)
        hist = build_histogram(values, params)
        assert hist.shape == (1000,)
        assert hist.dtype == np.int64
        assert hist.sum() == values.size

    def test_normalize_cdf_in_place(self):
        hist = np.array([1, 0, 2, 1], dtype=np.int64)
        lut = normalize_cdf(hist, n_elements=4, n_colors=5)
        assert lut is hist
        # cumulative [1, 1, 3, 4] scaled by 4 / 4
        assert lut.tolist() == [1, 1, 3, 4]

    def test_normalize_cdf_truncates(self):
        hist = np.array([1, 1, 1], dtype=np.int64)
        # cumulative [1, 2, 3] * 255 // 3
        assert normalize_cdf(hist, 3, 256).tolist() == [85, 170, 255]

    def test_lut_non_decreasing(self, normal_image):
        values = normal_image.ravel()
        params = BinningParameters.from_range(*scan_range(values), 5000)
        lut = normalize_cdf(build_histogram(values, params), values.size, 256)
        assert np.all(np.diff(lut) >= 0)
        assert lut[-1] == 255

    def test_remap_uses_lut(self):
        params = BinningParameters(h_min=0, h_max=4, n_bins=4)
        lut = np.array([0, 10, 20, 30], dtype=np.int64)
        out = remap(np.array([0.5, 3.5, 1.5]), params, lut)
        assert out.tolist() == [0, 30, 10]

    def test_allocation_failure_raises_resource_error(self, monkeypatch):
        def _fail(*args, **kwargs):
            raise MemoryError("no room")

        monkeypatch.setattr(scaler.np, "bincount", _fail)
        with pytest.raises(ResourceError):
            scale_image(np.ones((2, 2)), n_bins=10)


class TestScaleImage:
    def test_shape_preserved(self):
        rng = np.random.default_rng(1)
        for shape in [(7,), (5, 9), (3, 4, 5), (2, 1, 3, 2)]:
            img = rng.uniform(-50, 50, size=shape)
            out = scale_image(img, n_bins=100, n_colors=16)
            assert out.shape == shape
            assert out.dtype == np.int64

    def test_values_in_range(self, normal_image):
        out = scale_image(normal_image, n_colors=64)
        assert out.min() >= 0
        assert out.max() <= 63

    def test_monotonic(self, normal_image):
        out = scale_image(normal_image, n_bins=10_000, n_colors=256)
        order = np.argsort(normal_image, axis=None, kind="stable")
        assert np.all(np.diff(out.ravel()[order]) >= 0)

    def test_equalized_output(self, normal_image):
        # The top level is only reached where the CDF is complete, so the
        # mass spreads evenly over the lower n_colors - 1 levels.
        out = scale_image(normal_image, n_colors=4)
        counts = np.bincount(out.ravel(), minlength=4)
        expected = normal_image.size / 3
        assert np.all(np.abs(counts[:3] - expected) < 0.01 * normal_image.size)
        assert 1 <= counts[3] < 0.01 * normal_image.size

    def test_constant_image(self):
        out = scale_image(np.full((2, 2), 5.0), n_bins=4, n_colors=4)
        assert out.tolist() == [[3, 3], [3, 3]]

    def test_two_level(self):
        out = scale_image(np.array([[0.0, 10.0]]), n_bins=10, n_colors=2)
        assert out.tolist() == [[0, 1]]

    def test_single_bin(self, normal_image):
        out = scale_image(normal_image, n_bins=1, n_colors=32)
        assert np.all(out == 31)

    def test_single_color(self, normal_image):
        assert np.all(scale_image(normal_image, n_colors=1) == 0)

    def test_negative_image(self):
        img = np.array([[-9.5, -7.25], [-3.0, -0.5]])
        out = scale_image(img, n_bins=100, n_colors=4)
        assert out.tolist() == [[0, 1], [2, 3]]

    def test_deterministic(self, normal_image):
        a = scale_image(normal_image, n_bins=2048, n_colors=128)
        b = scale_image(normal_image, n_bins=2048, n_colors=128)
        np.testing.assert_array_equal(a, b)

    def test_input_not_modified(self, normal_image):
        before = normal_image.copy()
        scale_image(normal_image)
        np.testing.assert_array_equal(normal_image, before)

    def test_accepts_lists_and_integers(self):
        out = scale_image([[1, 2], [3, 4]], n_bins=8, n_colors=4)
        assert out.tolist() == [[0, 1], [2, 3]]

    def test_scalar_input(self):
        out = scale_image(2.5, n_bins=3, n_colors=8)
        assert out.shape == ()
        assert int(out) == 7

    def test_scale_alias(self):
        assert scale is scale_image


class TestValidation:
    @pytest.mark.parametrize("image", [[], np.zeros((0, 3)), [["a", "b"]], {"x": 1}])
    def test_bad_images(self, image):
        with pytest.raises(ValidationError):
            scale_image(image)

    @pytest.mark.parametrize("value", [np.nan, np.inf, -np.inf])
    def test_non_finite_values(self, value):
        with pytest.raises(ValidationError):
            scale_image(np.array([1.0, value, 3.0]))

    @pytest.mark.parametrize("kwargs", [
        {"n_bins": 0},
        {"n_bins": -5},
        {"n_colors": 0},
        {"n_bins": 2.5},
        {"n_colors": True},
        {"n_colors": "256"},
    ])
    def test_bad_parameters(self, kwargs):
        with pytest.raises(ValidationError):
            scale_image(np.ones((2, 2)), **kwargs)

    def test_numpy_integer_parameters(self):
        out = scale_image(np.arange(4.0), n_bins=np.int64(8), n_colors=np.int32(4))
        assert out.tolist() == [0, 1, 2, 3]

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            scale_image([])


class TestExtremeInputs:
    def test_many_colors_exact_lut(self):
        # (n_colors - 1) * n_elements does not fit in int64
        img = np.arange(1_000_000.0)
        n_colors = 10 ** 13
        out = scale_image(img, n_bins=1000, n_colors=n_colors)
        assert out.min() >= 0
        assert out.max() == n_colors - 1
        assert np.all(np.diff(out) >= 0)
        # first bucket holds 1000 elements: (10**13 - 1) * 1000 // 10**6
        assert out[0] == (n_colors - 1) * 1000 // 1_000_000

    def test_largest_int64_color_count(self):
        out = scale_image(np.arange(4.0), n_bins=8, n_colors=2 ** 63)
        top = 2 ** 63 - 1
        assert out.tolist() == [top // 4, top * 2 // 4, top * 3 // 4, top]

    @pytest.mark.parametrize("kwargs", [
        {"n_colors": 2 ** 63 + 1},
        {"n_colors": 2 ** 70},
        {"n_bins": 2 ** 70},
    ])
    def test_parameters_beyond_int64(self, kwargs):
        with pytest.raises(ValidationError):
            scale_image(np.arange(4.0), **kwargs)

    def test_constant_image_beyond_float_precision(self):
        # 1e17 - 1.0 == 1e17, so both bounds coincide
        params = BinningParameters.from_range(1e17, 1e17, 4)
        assert params.h_min == params.h_max
        out = scale_image(np.full((2, 2), 1e17), n_bins=4, n_colors=4)
        assert out.tolist() == [[3, 3], [3, 3]]

    def test_range_overflowing_float64(self):
        params = BinningParameters.from_range(-1e308, 1e308, 10)
        assert not np.isfinite(params.bin_size)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            out = scale_image([-1e308, 1e308], n_bins=10, n_colors=2)
        assert out.tolist() == [0, 1]

    def test_huge_values_keep_order(self):
        img = np.array([-1.5e308, -1e300, 0.0, 1e300, 1.5e308])
        out = scale_image(img, n_bins=1000, n_colors=8)
        assert np.all(np.diff(out) >= 0)
        assert out[-1] == 7
