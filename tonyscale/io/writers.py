"""Output writers: scaled arrays → .npy / image files, color counts → CSV / JSON."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np

from ..utils import check_2d

_IMAGE_SUFFIXES = {".png", ".tif", ".tiff", ".bmp"}


def write_scaled(scaled: np.ndarray, output_path: str | Path, n_colors: int = 256) -> None:
    """Write the color-index array *scaled* to *output_path*.

    The format is inferred from the file extension:
    - ``.npy`` → the int64 array as-is
    - ``.png`` / ``.tif`` / ``.tiff`` / ``.bmp`` → 2-D greyscale image,
      8-bit when ``n_colors <= 256``, 16-bit when ``n_colors <= 65536``
    """
    output_path = Path(output_path)
    suffix = output_path.suffix.lower()

    if suffix == ".npy":
        np.save(str(output_path), np.asarray(scaled, dtype=np.int64))
    elif suffix in _IMAGE_SUFFIXES:
        _write_image(np.asarray(scaled), output_path, n_colors)
    else:
        raise ValueError(
            f"Unsupported output format '{suffix}'. "
            f"Use .npy or one of {', '.join(sorted(_IMAGE_SUFFIXES))}."
        )


def color_counts(scaled: np.ndarray, n_colors: int = 256):
    """Return a DataFrame with the number of elements at each color level.

    Columns are ``color``, ``count`` and ``fraction``; one row per level in
    ``0 .. n_colors - 1``, including empty ones.
    """
    try:
        import pandas as pd
    except ImportError as exc:
        raise ImportError("pandas is required: pip install pandas") from exc

    flat = np.asarray(scaled, dtype=np.int64).ravel()
    if flat.size and (flat.min() < 0 or flat.max() >= n_colors):
        raise ValueError(
            f"Color indices must lie in [0, {n_colors - 1}], "
            f"got [{flat.min()}, {flat.max()}]"
        )
    counts = np.bincount(flat, minlength=n_colors)
    return pd.DataFrame({
        "color": np.arange(n_colors, dtype=np.int64),
        "count": counts,
        "fraction": counts / max(flat.size, 1),
    })


def write_color_counts(scaled: np.ndarray, output_path: str | Path, n_colors: int = 256) -> None:
    """Write :func:`color_counts` of *scaled* to *output_path* (.csv or .json)."""
    output_path = Path(output_path)
    suffix = output_path.suffix.lower()

    if suffix not in (".csv", ".json"):
        raise ValueError(
            f"Unsupported output format '{suffix}'. Use .csv or .json."
        )

    df = color_counts(scaled, n_colors)
    if suffix == ".csv":
        df.to_csv(output_path, index=False)
    else:
        _write_json(df, output_path)


def _write_image(scaled: np.ndarray, path: Path, n_colors: int) -> None:
    try:
        from PIL import Image
    except ImportError as exc:
        raise ImportError("Pillow is required for image output: pip install Pillow") from exc

    check_2d(scaled)
    if n_colors <= 256:
        dtype = np.uint8
    elif n_colors <= 65536:
        dtype = np.uint16
    else:
        raise ValueError(f"Cannot store {n_colors} colors in an image file; use .npy")

    Image.fromarray(scaled.astype(dtype)).save(str(path))


def _write_json(df, path: Path) -> None:
    # Convert numpy scalars to Python natives for JSON serialisation
    records = [
        {"color": int(c), "count": int(n), "fraction": float(f)}
        for c, n, f in zip(df["color"], df["count"], df["fraction"])
    ]
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(records, fh, indent=2)
