import sys
import logging
import click
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler

from .constants import (
    DEFAULT_SIZE, MIN_SIZE, MAX_SIZE,
    DEFAULT_ANGLE, MIN_ANGLE, MAX_ANGLE,
    DEFAULT_SATURATION, MIN_SATURATION, MAX_SATURATION,
    DEFAULT_CONTRAST, MIN_CONTRAST, MAX_CONTRAST,
)
from .core.pipeline import halftone_image
from .core.raster import HalftoneOptions
from .errors import HalftoneError

logger = logging.getLogger('retro_halftones')

console = Console(stderr=True)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Route package logging through a Rich handler.

    Args:
        verbose: Enable DEBUG logging
        quiet: Only show errors
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=False,
        markup=False,
        rich_tracebacks=True
    )
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False


@click.command(context_settings={'auto_envvar_prefix': 'RETRO_HALFTONES'})
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--size',
    type=click.FloatRange(MIN_SIZE, MAX_SIZE),
    default=DEFAULT_SIZE,
    show_default=True,
    help='Dot size / screen spacing in pixels.'
)
@click.option(
    '--angle',
    type=click.FloatRange(MIN_ANGLE, MAX_ANGLE, max_open=True),
    default=DEFAULT_ANGLE,
    show_default=True,
    help='Screen angle in degrees, added to each ink channel\'s own angle.'
)
@click.option(
    '--saturation',
    type=click.FloatRange(MIN_SATURATION, MAX_SATURATION),
    default=DEFAULT_SATURATION,
    show_default=True,
    help='Saturation factor applied before colour separation.'
)
@click.option(
    '--contrast',
    type=click.FloatRange(MIN_CONTRAST, MAX_CONTRAST),
    default=DEFAULT_CONTRAST,
    show_default=True,
    help='Contrast factor around mid grey.'
)
@click.option(
    '--seed',
    type=int,
    default=None,
    help='Random seed for reproducible dot jitter.'
)
@click.option(
    '--output', '-o',
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help='Output PNG path. Defaults to <image>-halftone.png.'
)
@click.option('--verbose', '-v', is_flag=True, help='Show debug output.')
@click.option('--quiet', '-q', is_flag=True, help='Only show errors.')
def main(
    image: str,
    size: float,
    angle: float,
    saturation: float,
    contrast: float,
    seed: Optional[int],
    output: Optional[str],
    verbose: bool,
    quiet: bool
) -> None:
    """Apply a CMYK halftone dot screen to an image.

    IMAGE is the path to the input image file (PNG or JPG). The result is
    always written as PNG.

    Each ink (cyan, magenta, yellow, black) is drawn as its own rotated grid
    of dots whose size and opacity follow the ink amount, and the four grids
    are multiplied onto white paper.

    Every option can also be set through an environment variable, e.g.
    RETRO_HALFTONES_SIZE=8.
    """
    setup_logging(verbose=verbose, quiet=quiet)

    options = HalftoneOptions(size=size, angle=angle, saturation=saturation, contrast=contrast)
    logger.info(
        "Halftoning %s (size=%g, angle=%g, saturation=%g, contrast=%g)",
        image, size, angle, saturation, contrast
    )

    try:
        output_path = halftone_image(image, options, seed=seed, output_path=output)
    except (HalftoneError, OSError) as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)

    if not quiet:
        click.secho(f"✓ Halftone image saved to: {output_path}", fg='green')
