"""Image loaders.

Supported formats:
- Single DICOM file (.dcm)
- Directory of DICOM files → 3D volume (sorted by InstanceNumber)
- NumPy .npy files
- PNG / JPEG / TIFF / BMP via Pillow → 2D array
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

# Pillow modes that already hold a single channel and are read at full depth
_SINGLE_CHANNEL_MODES = {"I", "F", "I;16", "I;16B", "I;16L", "I;16N"}


def load_image(path: str | Path) -> np.ndarray:
    """Load an image from *path* and return a float64 numpy array.

    Dispatch rules (in order):
    1. If *path* is a directory → load as DICOM series (3-D).
    2. If *path* ends with .dcm → load single DICOM slice.
    3. If *path* ends with .npy → load numpy array directly.
    4. Otherwise → Pillow (PNG / JPEG / TIFF / BMP) → 2-D array.
    """
    path = Path(path)

    if path.is_dir():
        return _load_dicom_series(path)

    if not path.exists():
        raise FileNotFoundError(f"No such image: {path}")

    suffix = path.suffix.lower()

    if suffix == ".dcm":
        return _load_single_dicom(path)

    if suffix == ".npy":
        return np.load(str(path)).astype(np.float64)

    return _load_pillow(path)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _import_pydicom():
    try:
        import pydicom
    except ImportError as exc:
        raise ImportError("pydicom is required to load DICOM files: pip install pydicom") from exc
    return pydicom


def _rescaled_pixels(ds) -> np.ndarray:
    # Rescale slope/intercept map stored values to physical units
    arr = ds.pixel_array.astype(np.float64)
    slope = float(getattr(ds, "RescaleSlope", 1.0))
    intercept = float(getattr(ds, "RescaleIntercept", 0.0))
    return arr * slope + intercept


def _load_single_dicom(path: Path) -> np.ndarray:
    pydicom = _import_pydicom()
    return _rescaled_pixels(pydicom.dcmread(str(path)))


def _load_dicom_series(directory: Path) -> np.ndarray:
    pydicom = _import_pydicom()

    dcm_files = sorted(directory.glob("*.dcm"))
    if not dcm_files:
        raise FileNotFoundError(f"No .dcm files found in directory: {directory}")

    slices = [pydicom.dcmread(str(f)) for f in dcm_files]
    slices.sort(key=lambda ds: int(getattr(ds, "InstanceNumber", 0)))

    return np.stack([_rescaled_pixels(ds) for ds in slices], axis=0)


def _load_pillow(path: Path) -> np.ndarray:
    try:
        from PIL import Image
    except ImportError as exc:
        raise ImportError("Pillow is required for PNG/JPEG/TIFF loading: pip install Pillow") from exc

    with Image.open(str(path)) as img:
        if img.mode not in _SINGLE_CHANNEL_MODES:
            # Colour, palette and alpha images are reduced to luminance
            img = img.convert("L")
        return np.array(img, dtype=np.float64)
