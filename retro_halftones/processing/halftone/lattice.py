import math
import numpy as np
import numpy.typing as npt
from typing import Tuple

from ...constants import LATTICE_PADDING_STEPS


def lattice_extent(width: int, height: int, size: float) -> int:
    """Number of lattice steps from the centre needed to cover the canvas diagonal."""
    diagonal = math.sqrt(width * width + height * height)
    return math.ceil(diagonal / size) + LATTICE_PADDING_STEPS


def lattice_points(
    width: int,
    height: int,
    size: float,
    angle: float
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Generate the points of a rotated square lattice centred on the canvas.

    Point (i, j) maps to
        x = cx + i * step_x - j * step_y
        y = cy + i * step_y + j * step_x
    with step_x = size * cos(angle) and step_y = size * sin(angle). Points
    further than 2 * size outside the canvas are dropped.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        size: Lattice spacing in pixels
        angle: Lattice rotation in degrees

    Returns:
        Tuple (xs, ys) of float coordinate arrays, ordered by i then j.
    """
    angle_rad = math.radians(angle)
    step_x = size * math.cos(angle_rad)
    step_y = size * math.sin(angle_rad)

    num_steps = lattice_extent(width, height, size)
    center_x = width / 2
    center_y = height / 2
    margin = size * 2

    j = np.arange(-num_steps, num_steps + 1, dtype=np.float64)

    # One lattice row at a time keeps memory proportional to the row length
    xs_rows = []
    ys_rows = []
    for i in range(-num_steps, num_steps + 1):
        xs = center_x + (i * step_x - j * step_y)
        ys = center_y + (i * step_y + j * step_x)

        inside = (xs >= -margin) & (xs <= width + margin) & (ys >= -margin) & (ys <= height + margin)
        if inside.any():
            xs_rows.append(xs[inside])
            ys_rows.append(ys[inside])

    if not xs_rows:
        empty = np.zeros(0, dtype=np.float64)
        return empty, empty.copy()

    return np.concatenate(xs_rows), np.concatenate(ys_rows)


def sample_positions(
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    width: int,
    height: int
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.intp], npt.NDArray[np.intp]]:
    """
    Keep the lattice points whose containing pixel lies on the canvas.

    Returns:
        Tuple (xs, ys, pixel_x, pixel_y) restricted to drawable points.
    """
    pixel_x = np.floor(xs).astype(np.intp)
    pixel_y = np.floor(ys).astype(np.intp)
    on_canvas = (pixel_x >= 0) & (pixel_x < width) & (pixel_y >= 0) & (pixel_y < height)
    return xs[on_canvas], ys[on_canvas], pixel_x[on_canvas], pixel_y[on_canvas]
