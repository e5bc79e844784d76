class HalftoneError(ValueError):
    """Base class for failures of a single halftone invocation."""


class DecodeError(HalftoneError):
    """The source bytes could not be decoded into an image."""


class InvalidDimensionsError(HalftoneError):
    """Width or height is zero or negative."""

    def __init__(self, width: int, height: int):
        super().__init__(f"Invalid image dimensions: {width}x{height}")
        self.width = width
        self.height = height


class EncodeError(HalftoneError):
    """The rendered image could not be serialized."""


class NoSelectionError(HalftoneError):
    """A render was requested before any source image was selected."""
