from typing import Literal, Tuple, Dict

# Ink channels, in compositing order
CMYKChannel = Literal['c', 'm', 'y', 'k']
CHANNEL_ORDER: Tuple[CMYKChannel, ...] = ('c', 'm', 'y', 'k')

# Screen angle offsets (degrees), added to the user angle per channel
CHANNEL_ANGLES: Dict[str, float] = {
    'c': 15.0,
    'm': 75.0,
    'y': 0.0,
    'k': 45.0,
}

# Ink colours as (rgb, alpha)
CHANNEL_COLORS: Dict[str, Tuple[Tuple[int, int, int], float]] = {
    'c': ((0, 255, 255), 0.95),
    'm': ((255, 0, 255), 0.95),
    'y': ((255, 255, 0), 0.9),
    'k': ((0, 0, 0), 0.95),
}

# Minimum channel values so highlights still print a faint dot
CHANNEL_MIN_VALUES: Dict[str, float] = {
    'c': 35.0,
    'm': 30.0,
    'y': 40.0,
    'k': 10.0,
}

# Boost applied to raw ink values before the floor/ceiling clamp
CHANNEL_BOOST: float = 1.15

# Contrast pivot (mid grey)
CONTRAST_PIVOT: float = 128.0

# Number of opacity levels
OPACITY_STEPS: int = 5

# Lattice padding in steps beyond the image diagonal
LATTICE_PADDING_STEPS: int = 4

# Dot jitter
JITTER_SIZE_MIN: float = 0.9
JITTER_SIZE_RANGE: float = 0.2
JITTER_POSITION: float = 0.35

# Option defaults and ranges
DEFAULT_SIZE: float = 5.0
MIN_SIZE: float = 2.0
MAX_SIZE: float = 32.0

DEFAULT_ANGLE: float = 34.0
MIN_ANGLE: float = 0.0
MAX_ANGLE: float = 360.0

DEFAULT_SATURATION: float = 1.3
MIN_SATURATION: float = 0.5
MAX_SATURATION: float = 3.0

DEFAULT_CONTRAST: float = 1.0
MIN_CONTRAST: float = 0.5
MAX_CONTRAST: float = 2.0

# Background colour of the output canvas
WHITE: Tuple[int, int, int] = (255, 255, 255)
