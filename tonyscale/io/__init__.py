from .loaders import load_image
from .writers import color_counts, write_color_counts, write_scaled

__all__ = ["load_image", "write_scaled", "color_counts", "write_color_counts"]
