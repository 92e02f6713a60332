"""FastAPI web server for the tonyscale UI.

Start with:
    tonyscale serve              (via CLI)
    python -m tonyscale.web      (direct)
"""

from __future__ import annotations

import io
import tempfile
from pathlib import Path

import numpy as np

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse

from . import __version__
from .io.loaders import load_image
from .io.writers import color_counts
from .scaler import DEFAULT_N_BINS, DEFAULT_N_COLORS, scale_image

app = FastAPI(title="tonyscale", version=__version__, docs_url="/api/docs")

# Largest palette the endpoints accept: 8-bit for PNG output, 16-bit for counts
MAX_PNG_COLORS = 256
MAX_COUNT_COLORS = 65536

_INDEX_HTML = """<!doctype html>
<html>
<head><title>tonyscale</title></head>
<body>
  <h1>tonyscale</h1>
  <form action="/scale" method="post" enctype="multipart/form-data">
    <p><input type="file" name="image" required></p>
    <p><label>Bins <input type="number" name="n_bins" value="{n_bins}" min="1"></label></p>
    <p><label>Colors <input type="number" name="n_colors" value="{n_colors}" min="1" max="256"></label></p>
    <p><button type="submit">Scale</button></p>
  </form>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _scale_upload(image: UploadFile, n_bins: int, n_colors: int) -> np.ndarray:
    """Save *image* to a temporary file, load it and scale it."""
    with tempfile.TemporaryDirectory() as tmp:
        fname = Path(image.filename).name if image.filename else "upload"
        p = Path(tmp) / fname
        p.write_bytes(await image.read())

        try:
            data = load_image(p)
        except Exception as exc:
            raise HTTPException(status_code=422, detail=f"Cannot decode image: {exc}")

    try:
        return scale_image(data, n_bins=n_bins, n_colors=n_colors)
    except (ValueError, MemoryError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@app.get("/", response_class=HTMLResponse)
async def root():
    return _INDEX_HTML.format(n_bins=DEFAULT_N_BINS, n_colors=DEFAULT_N_COLORS)


@app.post("/scale")
async def scale(
    image: UploadFile = File(...),
    n_bins: int = Form(DEFAULT_N_BINS),
    n_colors: int = Form(DEFAULT_N_COLORS),
):
    """Return the scaled image as an 8-bit PNG.

    For 3-D volumes the middle slice along the first axis is returned.
    """
    from PIL import Image as PILImage

    if n_colors > MAX_PNG_COLORS:
        raise HTTPException(
            status_code=422, detail=f"PNG output supports at most {MAX_PNG_COLORS} colors."
        )

    scaled = await _scale_upload(image, n_bins, n_colors)
    if scaled.ndim == 3:
        scaled = scaled[scaled.shape[0] // 2]
    if scaled.ndim != 2:
        raise HTTPException(status_code=422, detail=f"Cannot render array of shape {scaled.shape}.")

    buf = io.BytesIO()
    PILImage.fromarray(scaled.astype(np.uint8)).save(buf, format="PNG")
    buf.seek(0)
    return StreamingResponse(buf, media_type="image/png")


@app.post("/counts")
async def counts(
    image: UploadFile = File(...),
    n_bins: int = Form(DEFAULT_N_BINS),
    n_colors: int = Form(DEFAULT_N_COLORS),
):
    """Return the number of elements at each color level as JSON."""
    if n_colors > MAX_COUNT_COLORS:
        raise HTTPException(
            status_code=422, detail=f"Counts support at most {MAX_COUNT_COLORS} colors."
        )
    scaled = await _scale_upload(image, n_bins, n_colors)
    df = color_counts(scaled, n_colors)
    return JSONResponse(content={
        "shape": list(scaled.shape),
        "counts": [int(n) for n in df["count"]],
    })


# ---------------------------------------------------------------------------
# Run directly
# ---------------------------------------------------------------------------

def main(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    try:
        import uvicorn
    except ImportError as exc:
        raise SystemExit(
            "uvicorn is required to run the web server: pip install uvicorn"
        ) from exc
    uvicorn.run(
        "tonyscale.web:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
