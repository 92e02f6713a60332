"""Shared helpers: input coercion and parameter checks."""

from __future__ import annotations

import numbers

import numpy as np

from .errors import ValidationError


def as_float_array(image) -> np.ndarray:
    """Return *image* as a float64 numpy array, or raise ValidationError."""
    try:
        arr = np.asarray(image, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Image cannot be read as a numeric array: {exc}") from exc

    if arr.size == 0:
        raise ValidationError("Image is empty")
    if not np.all(np.isfinite(arr)):
        raise ValidationError("Image contains NaN or infinite values")
    return arr


def check_positive_int(value, name: str, maximum: int | None = None) -> int:
    """Raise if *value* is not an integer in ``[1, maximum]``; return it as a Python int."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ValidationError(f"{name} must be >= 1, got {value}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{name} must be <= {maximum}, got {value}")
    return int(value)


def check_2d(arr: np.ndarray) -> None:
    """Raise if *arr* cannot be written as a single-channel image."""
    if arr.ndim != 2:
        raise ValueError(
            f"Only 2-D arrays can be saved as images, got shape {arr.shape}"
        )
