import io
import math
from dataclasses import dataclass
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError
import numpy as np
import numpy.typing as npt

from ..constants import (
    DEFAULT_SIZE, MIN_SIZE, MAX_SIZE,
    DEFAULT_ANGLE, MAX_ANGLE,
    DEFAULT_SATURATION, MIN_SATURATION, MAX_SATURATION,
    DEFAULT_CONTRAST, MIN_CONTRAST, MAX_CONTRAST,
)
from ..errors import DecodeError, EncodeError, InvalidDimensionsError


@dataclass(frozen=True)
class HalftoneOptions:
    """
    Halftone parameters.

    Attributes:
        size: Lattice spacing and nominal dot diameter in pixels (2 to 32).
        angle: Screen rotation in degrees (0 to 360), added to each channel's offset.
        saturation: Saturation factor applied before separation (0.5 to 3).
        contrast: Contrast factor around mid grey (0.5 to 2).
    """
    size: float = DEFAULT_SIZE
    angle: float = DEFAULT_ANGLE
    saturation: float = DEFAULT_SATURATION
    contrast: float = DEFAULT_CONTRAST

    def clamped(self) -> "HalftoneOptions":
        """Return a copy with every value brought into its valid range."""
        angle = math.fmod(self.angle, MAX_ANGLE)
        if angle < 0:
            angle += MAX_ANGLE
        return HalftoneOptions(
            size=min(MAX_SIZE, max(MIN_SIZE, self.size)),
            angle=angle,
            saturation=min(MAX_SATURATION, max(MIN_SATURATION, self.saturation)),
            contrast=min(MAX_CONTRAST, max(MIN_CONTRAST, self.contrast)),
        )


class RasterImage:
    """
    Owned RGBA pixel buffer.

    The buffer is a uint8 array of shape (height, width, 4), so its flat length
    is always width * height * 4.
    """

    def __init__(self, pixels: npt.NDArray[np.uint8]):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected an (height, width, 4) RGBA array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(width, height)
        self.pixels = np.array(pixels, dtype=np.uint8, copy=True)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "RasterImage":
        return RasterImage(self.pixels.copy())

    @classmethod
    def from_pil(cls, img: Image.Image) -> "RasterImage":
        if img.mode != 'RGBA':
            img = img.convert('RGBA')
        return cls(np.array(img, dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)


def check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(width, height)


def decode_image(data: bytes, size: Optional[Tuple[int, int]] = None) -> RasterImage:
    """
    Decode encoded bitmap bytes into a RasterImage.

    Args:
        data: Encoded image bytes (PNG, or anything Pillow can read).
        size: Optional (width, height). When the decoded bitmap has a different
              size it is scaled to fit, the way an exported 2x selection is drawn
              back at the shape's size.

    Returns:
        Decoded RGBA raster

    Raises:
        InvalidDimensionsError: If the requested or decoded size is degenerate.
        DecodeError: If the bytes are not a readable image.
    """
    if size is not None:
        check_dimensions(*size)

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = img.convert('RGBA')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Failed to decode image: {e}") from e

    check_dimensions(*rgba.size)

    if size is not None and rgba.size != size:
        rgba = rgba.resize(size, Image.Resampling.BILINEAR)

    return RasterImage.from_pil(rgba)


def encode_png(image: RasterImage) -> bytes:
    """Serialize a RasterImage as PNG bytes."""
    buffer = io.BytesIO()
    try:
        image.to_pil().save(buffer, 'PNG')
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode image: {e}") from e
    return buffer.getvalue()
