"""End-to-end verification script for tonyscale.

Run after `pip install -e .`:
    python verify.py
"""

import subprocess
import sys
from pathlib import Path

import numpy as np

# ── 1. Imports ───────────────────────────────────────────────────────────────
print("1. Importing tonyscale …", end=" ")
from tonyscale import scale_image, scale_image_reference, __version__
print(f"OK  (v{__version__})")

# ── 2. Synthetic sky image ───────────────────────────────────────────────────
print("2. Building 1024×1024 noise image with a bright source …", end=" ")
rng = np.random.default_rng(42)
img = rng.normal(0.0, 10.0, size=(1024, 1024))
yy, xx = np.ogrid[:1024, :1024]
img += 5000.0 * np.exp(-((yy - 512) ** 2 + (xx - 512) ** 2) / (2 * 15.0 ** 2))
print("OK")

# ── 3. Scale ─────────────────────────────────────────────────────────────────
print("3. Scaling to 256 colors …", end=" ")
scaled = scale_image(img)
print(f"OK  (range {scaled.min()} … {scaled.max()})")

order = np.argsort(img, axis=None)
if np.all(np.diff(scaled.ravel()[order]) >= 0):
    print("   Mapping is monotonic ✓")
else:
    print("   WARNING — mapping is not monotonic")

reference = scale_image_reference(img)
max_diff = int(np.abs(scaled - reference).max())
print(f"   Max difference from np.histogram reference: {max_diff}")

# ── 4. Save input and run CLI end-to-end ─────────────────────────────────────
print("4. Saving input array …", end=" ")
fixtures = Path("tests/fixtures")
fixtures.mkdir(parents=True, exist_ok=True)
input_path = fixtures / "sky.npy"
np.save(input_path, img)
print(f"OK  ({input_path})")

print("5. Running CLI (tonyscale scale) …")
result = subprocess.run(
    [sys.executable, "-m", "tonyscale.cli", "scale",
     "--image", str(input_path.resolve()),
     "--output", str(Path("out.png").resolve()),
     "--counts", str(Path("out.csv").resolve())],
    capture_output=True, text=True,
    cwd=str(Path(__file__).parent),
)
if result.returncode != 0:
    print(f"   CLI FAILED (exit {result.returncode}):")
    print(f"   stdout: {result.stdout.strip()}")
    print(f"   stderr: {result.stderr.strip()}")
else:
    print(f"   {result.stdout.strip()}")
    import pandas as pd
    df = pd.read_csv("out.csv")
    print(f"   Counts CSV has {len(df)} colors, {int(df['count'].sum())} pixels")

print("\nVerification complete.")
