import logging
import numpy as np
import numpy.typing as npt

from ...constants import CMYKChannel, CHANNEL_ORDER, CHANNEL_ANGLES, CHANNEL_COLORS
from ..composite import create_canvas, multiply_layer, canvas_to_rgba

from .separation import correct_and_separate, channel_value, separate
from .lattice import lattice_points, sample_positions
from .dots import quantize_opacity, dot_diameter, jitter_dots, stamp_dots

logger = logging.getLogger(__name__)

__all__ = [
    'render_halftone',
    'render_channel_layer',
    'correct_and_separate',
    'channel_value',
    'separate',
    'quantize_opacity',
    'dot_diameter',
]


def render_channel_layer(
    channel: CMYKChannel,
    corrected: npt.NDArray[np.uint8],
    size: float,
    angle: float,
    rng: np.random.Generator
) -> npt.NDArray[np.float64]:
    """
    Draw the dot screen of one ink channel into an isolated alpha layer.

    Args:
        channel: Ink channel to draw.
        corrected: Colour-corrected RGBA array (height, width, 4).
        size: Lattice spacing and nominal dot diameter.
        angle: User screen angle in degrees; the channel offset is added here.
        rng: Random source for dot jitter.

    Returns:
        Float alpha layer (height, width) in [0, 1].
    """
    height, width = corrected.shape[:2]
    _, ink_alpha = CHANNEL_COLORS[channel]

    xs, ys = lattice_points(width, height, size, angle + CHANNEL_ANGLES[channel])
    xs, ys, pixel_x, pixel_y = sample_positions(xs, ys, width, height)

    t = channel_value(channel, corrected[pixel_y, pixel_x]) / 255.0
    diameters = dot_diameter(t, size)
    opacities = quantize_opacity(t)

    xs, ys, diameters = jitter_dots(xs, ys, diameters, size, rng)

    logger.debug("Channel %s: %d dots", channel, xs.shape[0])
    return stamp_dots(width, height, xs, ys, diameters, opacities * ink_alpha)


def render_halftone(
    corrected: npt.NDArray[np.uint8],
    size: float,
    angle: float,
    rng: np.random.Generator
) -> npt.NDArray[np.uint8]:
    """
    Render the four-channel dot screen of a colour-corrected image.

    Channels are drawn and multiplied onto a white canvas in the order c, m, y, k.

    Returns:
        Opaque RGBA uint8 array with the same width and height as the input.
    """
    height, width = corrected.shape[:2]
    canvas = create_canvas(width, height)

    for channel in CHANNEL_ORDER:
        layer = render_channel_layer(channel, corrected, size, angle, rng)
        ink, _ = CHANNEL_COLORS[channel]
        multiply_layer(canvas, layer, ink)

    return canvas_to_rgba(canvas)
