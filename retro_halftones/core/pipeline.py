import logging
import time
from pathlib import Path
from typing import Optional, Union
from PIL import Image
import numpy as np

from ..errors import DecodeError
from ..processing.halftone import correct_and_separate, render_halftone
from .raster import HalftoneOptions, RasterImage, decode_image, encode_png, check_dimensions
from .utils import get_output_filename

logger = logging.getLogger(__name__)


def _resolve_rng(seed: Optional[int], rng: Optional[np.random.Generator]) -> np.random.Generator:
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def halftone_raster(
    image: RasterImage,
    options: HalftoneOptions,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None
) -> RasterImage:
    """
    Apply the CMYK halftone effect to a raster.

    The source raster is never modified; correction works on a copy.

    Args:
        image: Source RGBA raster.
        options: Halftone parameters. Values are used as given.
        seed: Seed for the dot jitter. Ignored when `rng` is given.
        rng: Random generator for the dot jitter.

    Returns:
        New opaque RGBA raster of the same size.
    """
    started = time.perf_counter()
    corrected = correct_and_separate(image.pixels, options.saturation, options.contrast)
    result = render_halftone(corrected, options.size, options.angle, _resolve_rng(seed, rng))
    logger.debug(
        "Rendered %dx%d halftone (size=%s, angle=%s) in %.2fs",
        image.width, image.height, options.size, options.angle, time.perf_counter() - started
    )
    return RasterImage(result)


def apply_halftone(
    img: Image.Image,
    options: Optional[HalftoneOptions] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None
) -> Image.Image:
    """
    Apply the CMYK halftone effect to a PIL Image.
    """
    if options is None:
        options = HalftoneOptions()

    check_dimensions(*img.size)
    result = halftone_raster(RasterImage.from_pil(img), options, seed=seed, rng=rng)
    return result.to_pil()


def render(
    data: bytes,
    width: int,
    height: int,
    options: HalftoneOptions,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None
) -> bytes:
    """
    Halftone encoded image bytes.

    Args:
        data: Encoded source bitmap (PNG).
        width: Target width in pixels. The decoded bitmap is scaled to it if needed.
        height: Target height in pixels.
        options: Halftone parameters. Callers clamp them beforehand (size >= 2).
        seed: Seed for the dot jitter.
        rng: Random generator for the dot jitter; takes precedence over `seed`.

    Returns:
        PNG bytes of the stylized image, width x height.

    Raises:
        InvalidDimensionsError: If width or height is not positive.
        DecodeError: If the source cannot be decoded.
        EncodeError: If the result cannot be encoded.
    """
    check_dimensions(width, height)
    source = decode_image(data, (width, height))
    result = halftone_raster(source, options, seed=seed, rng=rng)
    return encode_png(result)


def halftone_image(
    input_path: Union[str, Path],
    options: Optional[HalftoneOptions] = None,
    seed: Optional[int] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Path:
    """
    Apply the halftone effect to an image file and save the result as PNG.

    Args:
        input_path: Path to input image file
        options: Halftone parameters (defaults if None)
        seed: Random seed for reproducible results.
        output_path: Optional path for output file. If None, generated from input filename.

    Returns:
        Path to output file
    """
    if options is None:
        options = HalftoneOptions()

    input_path = Path(input_path)
    try:
        data = input_path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Failed to read image: {e}") from e

    source = decode_image(data)
    logger.info("Image size: %dx%d", source.width, source.height)
    png = encode_png(halftone_raster(source, options, seed=seed))

    final_output_path: Path
    if output_path is None:
        final_output_path = get_output_filename(input_path)
    else:
        final_output_path = Path(output_path)

    final_output_path.write_bytes(png)
    return final_output_path

