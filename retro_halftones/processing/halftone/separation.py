import numpy as np
import numpy.typing as npt
from typing import Dict

from ...constants import (
    CMYKChannel, CHANNEL_ORDER, CHANNEL_MIN_VALUES, CHANNEL_BOOST, CONTRAST_PIVOT
)


def _store_clamped(values: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    # Same as writing into an 8-bit clamped pixel buffer: round half to even, clamp to 0-255
    return np.clip(np.rint(values), 0.0, 255.0)


def correct_and_separate(
    pixels: npt.NDArray[np.uint8],
    saturation: float,
    contrast: float
) -> npt.NDArray[np.uint8]:
    """
    Apply saturation and contrast correction to an RGBA buffer.

    Luminance is the unweighted mean of R, G and B. Each colour channel is first
    pushed away from (or pulled towards) the luminance by the saturation factor,
    then scaled around mid grey (128) by the contrast factor. Both intermediate
    results are rounded and clamped to 0-255 as they are stored.

    Args:
        pixels: RGBA uint8 array of shape (height, width, 4). Not modified.
        saturation: Saturation factor (1.0 = unchanged).
        contrast: Contrast factor (1.0 = unchanged).

    Returns:
        New RGBA uint8 array with corrected colour and untouched alpha.
    """
    rgb = pixels[:, :, :3].astype(np.float64)
    luminance = rgb.mean(axis=2, keepdims=True)

    saturated = _store_clamped(luminance + (rgb - luminance) * saturation)
    contrasted = _store_clamped((saturated - CONTRAST_PIVOT) * contrast + CONTRAST_PIVOT)

    corrected = pixels.copy()
    corrected[:, :, :3] = contrasted.astype(np.uint8)
    return corrected


def channel_value(
    channel: CMYKChannel,
    pixels: npt.NDArray[np.integer]
) -> npt.NDArray[np.float64]:
    """
    Compute the ink intensity of one channel for every pixel.

    Cyan, magenta and yellow are the inverted red, green and blue values; black
    is the inverted brightest component. The raw value is boosted by 1.15 and
    clamped between the channel's minimum value and 255.

    Args:
        channel: One of 'c', 'm', 'y', 'k'.
        pixels: Array of shape (..., 3) or (..., 4); only RGB is read.

    Returns:
        Float array of channel values in [min_value, 255].
    """
    rgb = np.asarray(pixels)[..., :3].astype(np.float64)

    match channel:
        case 'c':
            raw = 255.0 - rgb[..., 0]
        case 'm':
            raw = 255.0 - rgb[..., 1]
        case 'y':
            raw = 255.0 - rgb[..., 2]
        case 'k':
            raw = 255.0 - rgb.max(axis=-1)
        case _:
            raise ValueError(f"Unknown ink channel: {channel}")

    return np.minimum(255.0, np.maximum(CHANNEL_MIN_VALUES[channel], raw * CHANNEL_BOOST))


def separate(pixels: npt.NDArray[np.integer]) -> Dict[str, npt.NDArray[np.float64]]:
    """Return the intensity field of every ink channel, keyed by channel name."""
    return {channel: channel_value(channel, pixels) for channel in CHANNEL_ORDER}
