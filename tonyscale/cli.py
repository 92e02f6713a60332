"""Click-based CLI for tonyscale.

Usage:
    tonyscale scale --image <path> --output <file> [options]
    tonyscale serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import logging
import sys

import click

from .io.loaders import load_image
from .io.writers import write_color_counts, write_scaled
from .scaler import DEFAULT_N_BINS, DEFAULT_N_COLORS, scale_image


@click.group()
def cli() -> None:
    """tonyscale — histogram-equalization scaling of images."""


@cli.command("scale")
@click.option(
    "--image", "-i", required=True,
    type=click.Path(exists=True),
    help="Path to image file, .npy array or DICOM directory.",
)
@click.option(
    "--output", "-o", required=True,
    type=click.Path(),
    help="Output file path (.npy, .png, .tif, .tiff or .bmp).",
)
@click.option(
    "--bins", default=DEFAULT_N_BINS, show_default=True,
    type=int,
    help="Number of histogram bins used to build the CDF.",
)
@click.option(
    "--colors", default=DEFAULT_N_COLORS, show_default=True,
    type=int,
    help="Number of output color levels.",
)
@click.option(
    "--counts", default=None,
    type=click.Path(),
    help="Also write per-color counts to this file (.csv or .json).",
)
@click.option(
    "--verbose", "-v", is_flag=True, default=False,
    help="Log scaling diagnostics to stderr.",
)
def scale_cmd(
    image: str,
    output: str,
    bins: int,
    colors: int,
    counts: str | None,
    verbose: bool,
) -> None:
    """Scale IMAGE to COLORS levels and write the result to OUTPUT."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    click.echo(f"Loading image: {image}")

    try:
        data = load_image(image)
        scaled = scale_image(data, n_bins=bins, n_colors=colors)
    except Exception as exc:
        click.echo(f"Error during scaling: {exc}", err=True)
        sys.exit(1)

    shape = "x".join(str(n) for n in scaled.shape)
    click.echo(f"Scaled {shape} image to {colors} colors.")

    try:
        write_scaled(scaled, output, n_colors=colors)
        click.echo(f"Result written to: {output}")
        if counts:
            write_color_counts(scaled, counts, n_colors=colors)
            click.echo(f"Color counts written to: {counts}")
    except Exception as exc:
        click.echo(f"Error writing output: {exc}", err=True)
        sys.exit(1)


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Host to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on.")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload (dev mode).")
def serve_cmd(host: str, port: int, reload: bool) -> None:
    """Launch the web UI."""
    from .web import main as _serve
    click.echo(f"Starting tonyscale UI at http://{host}:{port}")
    _serve(host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
