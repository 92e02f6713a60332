"""tonyscale — histogram-equalization scaling of images to color indices.

Public API:
    scale_image            — scale an array to integer color levels
    scale_image_reference  — np.histogram-based cross-check
    load_image             — load image from file
    write_scaled           — write scaled array to .npy or an image file
    write_color_counts     — write per-color counts to CSV or JSON
"""

__version__ = "0.1.0"

from .errors import ResourceError, ValidationError
from .io.loaders import load_image
from .io.writers import color_counts, write_color_counts, write_scaled
from .reference import scale_image_reference
from .scaler import DEFAULT_N_BINS, DEFAULT_N_COLORS, scale, scale_image

__all__ = [
    "scale_image",
    "scale",
    "scale_image_reference",
    "load_image",
    "write_scaled",
    "color_counts",
    "write_color_counts",
    "ValidationError",
    "ResourceError",
    "DEFAULT_N_BINS",
    "DEFAULT_N_COLORS",
    "__version__",
]
