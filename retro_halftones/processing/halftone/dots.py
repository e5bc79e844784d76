import numpy as np
import numpy.typing as npt
from numba import jit
from typing import Tuple, Union

from ...constants import (
    OPACITY_STEPS, JITTER_SIZE_MIN, JITTER_SIZE_RANGE, JITTER_POSITION
)

FloatOrArray = Union[float, npt.NDArray[np.float64]]


def quantize_opacity(t: FloatOrArray, steps: int = OPACITY_STEPS) -> FloatOrArray:
    """
    Map a normalized intensity to one of `steps` discrete opacity levels.

    The intensity is first mapped to 0.1 + 0.9 * t, then snapped (half up) to the
    nearest multiple of 0.9 / (steps - 1). With the default 5 steps the levels are
    0, 0.225, 0.45, 0.675 and 0.9.
    """
    mapped = 0.1 + np.asarray(t, dtype=np.float64) * 0.9
    step = 0.9 / (steps - 1)
    result = np.floor(mapped / step + 0.5) * step
    if result.ndim == 0:
        return float(result)
    return result


def dot_diameter(t: FloatOrArray, size: float) -> FloatOrArray:
    """Dot diameter for intensity t; never smaller than 0.32 * size."""
    t_arr = np.asarray(t, dtype=np.float64)
    result = size * (0.8 * np.maximum(0.4, t_arr) + t_arr * 0.2)
    if result.ndim == 0:
        return float(result)
    return result


def jitter_dots(
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    diameters: npt.NDArray[np.float64],
    size: float,
    rng: np.random.Generator
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Randomly vary dot size and position to break up the mechanical grid.

    Each diameter is scaled by a factor in [0.9, 1.1). Each dot is shifted by a
    single offset in [-size * 0.175, size * 0.175) applied to both x and y.

    Returns:
        Tuple (xs, ys, diameters) with jitter applied.
    """
    count = xs.shape[0]
    size_factors = rng.random(count) * JITTER_SIZE_RANGE + JITTER_SIZE_MIN
    offsets = (rng.random(count) - 0.5) * (size * JITTER_POSITION)
    return xs + offsets, ys + offsets, diameters * size_factors


@jit(nopython=True)
def _stamp_dots_jit(
    layer: npt.NDArray[np.float64],
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    radii: npt.NDArray[np.float64],
    alphas: npt.NDArray[np.float64]
) -> None:
    """
    Rasterize filled circles into an alpha layer in-place.

    Coverage of a pixel is approximated from the distance between the pixel
    centre and the circle centre, which gives a one pixel anti-aliased edge.
    Dots accumulate with source-over: a = src + a * (1 - src).
    """
    height, width = layer.shape

    for n in range(xs.shape[0]):
        cx = xs[n]
        cy = ys[n]
        r = radii[n]
        alpha = alphas[n]
        if r <= 0.0 or alpha <= 0.0:
            continue

        x0 = max(int(np.floor(cx - r - 1.0)), 0)
        x1 = min(int(np.ceil(cx + r + 1.0)), width - 1)
        y0 = max(int(np.floor(cy - r - 1.0)), 0)
        y1 = min(int(np.ceil(cy + r + 1.0)), height - 1)

        for py in range(y0, y1 + 1):
            dy = py + 0.5 - cy
            for px in range(x0, x1 + 1):
                dx = px + 0.5 - cx
                coverage = r + 0.5 - np.sqrt(dx * dx + dy * dy)
                if coverage <= 0.0:
                    continue
                if coverage > 1.0:
                    coverage = 1.0
                src = alpha * coverage
                layer[py, px] = src + layer[py, px] * (1.0 - src)


def stamp_dots(
    width: int,
    height: int,
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    diameters: npt.NDArray[np.float64],
    alphas: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Draw dots into a fresh, fully transparent layer.

    Args:
        width: Layer width in pixels
        height: Layer height in pixels
        xs: Dot centre x coordinates
        ys: Dot centre y coordinates
        diameters: Dot diameters
        alphas: Per-dot alpha (0.0 to 1.0)

    Returns:
        Float alpha layer of shape (height, width) with values in [0, 1].
    """
    layer = np.zeros((height, width), dtype=np.float64)
    _stamp_dots_jit(
        layer,
        np.ascontiguousarray(xs, dtype=np.float64),
        np.ascontiguousarray(ys, dtype=np.float64),
        np.ascontiguousarray(diameters, dtype=np.float64) / 2.0,
        np.ascontiguousarray(alphas, dtype=np.float64),
    )
    return layer
