import numpy as np
import numpy.typing as npt
from typing import Tuple

from ..constants import WHITE


def create_canvas(width: int, height: int, color: Tuple[int, int, int] = WHITE) -> npt.NDArray[np.float64]:
    """Create an opaque float RGB canvas filled with `color`."""
    canvas = np.empty((height, width, 3), dtype=np.float64)
    canvas[:, :] = color
    return canvas


def multiply_layer(
    canvas: npt.NDArray[np.float64],
    layer_alpha: npt.NDArray[np.float64],
    ink: Tuple[int, int, int]
) -> npt.NDArray[np.float64]:
    """
    Composite a single-colour layer onto an opaque canvas with multiply blending.

    Over an opaque backdrop, multiply reduces to
        result = canvas * (1 - a * (1 - ink / 255))
    per RGB channel, where a is the layer alpha.

    Args:
        canvas: Float RGB canvas (height, width, 3), values 0-255. Modified in-place.
        layer_alpha: Layer alpha (height, width), values 0-1.
        ink: Layer colour as 8-bit RGB.

    Returns:
        The canvas, for chaining.
    """
    ink_norm = np.asarray(ink, dtype=np.float64) / 255.0
    canvas *= 1.0 - layer_alpha[:, :, np.newaxis] * (1.0 - ink_norm)
    return canvas


def canvas_to_rgba(canvas: npt.NDArray[np.float64]) -> npt.NDArray[np.uint8]:
    """Round a float RGB canvas to an opaque RGBA uint8 array."""
    height, width = canvas.shape[:2]
    rgba = np.full((height, width, 4), 255, dtype=np.uint8)
    rgba[:, :, :3] = np.clip(np.rint(canvas), 0, 255).astype(np.uint8)
    return rgba
