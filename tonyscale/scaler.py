"""Histogram-equalization scaling of an image into integer color indices.

The transform runs as four stages over a flattened float64 view of the image:

1. :func:`scan_range`      -- min/max over all elements.
2. :func:`build_histogram` -- count elements into ``n_bins`` equal-width
   buckets over ``[h_min, h_max]``.
3. :func:`normalize_cdf`   -- turn the counts into a cumulative distribution
   rescaled to ``0 .. n_colors - 1``.
4. :func:`remap`           -- look every element's bucket up in that table.

Bounds are ``h_min = int(min - 1)`` and ``h_max = int(max + 1)``, truncated
toward zero, so negative images get a slightly tighter lower bound than a
floor would give.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .errors import ResourceError, ValidationError
from .utils import as_float_array, check_positive_int

logger = logging.getLogger(__name__)

DEFAULT_N_BINS = 100_000
DEFAULT_N_COLORS = 256

_INT64_MAX = int(np.iinfo(np.int64).max)
# Colors must fit in the int64 output, bins in a numpy array length
MAX_N_COLORS = _INT64_MAX + 1
MAX_N_BINS = int(np.iinfo(np.intp).max)


@dataclass(frozen=True)
class BinningParameters:
    """Equal-width bucket layout derived from the image range."""

    h_min: int
    h_max: int
    n_bins: int

    @classmethod
    def from_range(cls, v_min: float, v_max: float, n_bins: int) -> "BinningParameters":
        # int() truncates toward zero, which is not floor for negative bounds
        return cls(h_min=int(v_min - 1.0), h_max=int(v_max + 1.0), n_bins=n_bins)

    @property
    def bin_size(self) -> float:
        return (float(self.h_max) - float(self.h_min)) / float(self.n_bins)

    def bucket(self, values: np.ndarray) -> np.ndarray:
        """Return the int64 bucket index of every element of *values*.

        Indices are clamped to ``[0, n_bins - 1]``; rounding can otherwise
        push the maximum value into bucket ``n_bins``.

        When the bounds coincide (a constant image beyond 2**53, where
        ``v - 1.0 == v``) every element falls in bucket 0. When the bound
        span overflows float64 the offsets are computed in half units.
        """
        if self.h_min == self.h_max:
            return np.zeros(values.shape, dtype=np.int64)

        lo = float(self.h_min)
        bin_size = self.bin_size
        if np.isfinite(bin_size):
            offsets = values - lo
        else:
            bin_size = (float(self.h_max) / 2 - lo / 2) / float(self.n_bins)
            offsets = values / 2 - lo / 2

        indices = np.floor(offsets / bin_size)
        return np.clip(indices, 0, self.n_bins - 1).astype(np.int64)


def scan_range(values: np.ndarray) -> tuple[float, float]:
    """Return ``(min, max)`` of *values*."""
    if values.size == 0:
        raise ValidationError("Cannot scan the range of an empty image")
    return float(values.min()), float(values.max())


def build_histogram(values: np.ndarray, params: BinningParameters) -> np.ndarray:
    """Count *values* into ``params.n_bins`` buckets.

    Returns
    -------
    np.ndarray
        int64 array of length ``params.n_bins``.

    Raises
    ------
    ResourceError
        If the histogram buffer cannot be allocated.
    """
    indices = params.bucket(values)
    try:
        hist = np.bincount(indices, minlength=params.n_bins)
    except MemoryError as exc:
        raise ResourceError(
            f"Unable to allocate a histogram with {params.n_bins} bins"
        ) from exc
    return hist.astype(np.int64, copy=False)


def normalize_cdf(hist: np.ndarray, n_elements: int, n_colors: int) -> np.ndarray:
    """Convert *hist* in place into a bucket -> color lookup table.

    Each bucket becomes ``(n_colors - 1) * cdf // n_elements`` where ``cdf`` is
    the cumulative count up to and including that bucket. The table is
    non-decreasing and its last entry is ``n_colors - 1``.
    """
    n_elements, top = int(n_elements), int(n_colors) - 1
    np.cumsum(hist, out=hist)
    if top * n_elements <= _INT64_MAX:
        hist *= top
        hist //= n_elements
    else:
        # the product does not fit in int64; use exact Python integers
        hist[:] = hist.astype(object) * top // n_elements
    return hist


def remap(values: np.ndarray, params: BinningParameters, lut: np.ndarray) -> np.ndarray:
    """Return ``lut[bucket(v)]`` for every element of *values*."""
    return lut[params.bucket(values)]


def scale_image(
    image,
    n_bins: int = DEFAULT_N_BINS,
    n_colors: int = DEFAULT_N_COLORS,
) -> np.ndarray:
    """Scale *image* to ``n_colors`` levels by histogram equalization.

    Parameters
    ----------
    image:
        Array-like of any shape; coerced to float64. Must be non-empty and
        finite.
    n_bins:
        Number of histogram buckets used to build the CDF.
    n_colors:
        Number of output color levels.

    Returns
    -------
    np.ndarray
        int64 array with the shape of *image*, values in ``[0, n_colors - 1]``.
        Larger input values never map to smaller colors.

    Raises
    ------
    ValidationError
        If *image* is not a non-empty finite numeric array, or if either
        parameter is not a positive integer within
        ``MAX_N_BINS`` / ``MAX_N_COLORS``.
    ResourceError
        If the histogram cannot be allocated.
    """
    n_bins = check_positive_int(n_bins, "n_bins", MAX_N_BINS)
    n_colors = check_positive_int(n_colors, "n_colors", MAX_N_COLORS)
    arr = as_float_array(image)
    values = arr.ravel()

    v_min, v_max = scan_range(values)
    params = BinningParameters.from_range(v_min, v_max, n_bins)
    logger.debug(
        "range [%g, %g] -> buckets over [%d, %d], bin size %g",
        v_min, v_max, params.h_min, params.h_max, params.bin_size,
    )

    hist = build_histogram(values, params)
    lut = normalize_cdf(hist, values.size, n_colors)

    return remap(values, params, lut).reshape(arr.shape)


scale = scale_image
