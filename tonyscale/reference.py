"""Pure-numpy formulation of the scaling, built on ``np.histogram``.

Uses floor/ceil bounds instead of truncation, so results can differ from
:func:`tonyscale.scale_image` by one color level near bucket edges. Kept as
an independent cross-check of the staged implementation.
"""

from __future__ import annotations

import numpy as np

from .scaler import DEFAULT_N_BINS, DEFAULT_N_COLORS
from .utils import as_float_array, check_positive_int


def scale_image_reference(
    data,
    n_bins: int = DEFAULT_N_BINS,
    n_colors: int = DEFAULT_N_COLORS,
) -> np.ndarray:
    """Return the equalized int64 color indices of *data*."""
    n_bins = check_positive_int(n_bins, "n_bins")
    n_colors = check_positive_int(n_colors, "n_colors")
    data = as_float_array(data)
    flat_data = data.ravel()

    h_min = np.floor(flat_data.min()) - 1.0
    h_max = np.ceil(flat_data.max()) + 1.0

    hist, bin_edges = np.histogram(flat_data, bins=n_bins, range=(h_min, h_max))
    bin_size = bin_edges[1] - bin_edges[0]

    cmap = np.arange(n_colors, dtype=np.int64)
    cdf = cmap[np.floor((cmap.size - 1) * np.cumsum(hist) / flat_data.size).astype(np.int64)]

    bins = np.floor((flat_data - h_min) / bin_size).astype(np.int64)
    bins = np.clip(bins, 0, n_bins - 1)
    return cdf[bins].reshape(data.shape)
