import sys
from pathlib import Path

# Add project root to path so we can import the package
sys.path.append(str(Path(__file__).parent.parent))

import numpy as np
import pytest
from retro_halftones.constants import CHANNEL_MIN_VALUES, CHANNEL_ORDER
from retro_halftones.processing.halftone.separation import correct_and_separate, channel_value, separate


def _pixel(r, g, b, a=255):
    return np.array([[[r, g, b, a]]], dtype=np.uint8)


def test_correct_does_not_modify_input():
    """The corrected buffer is a new array; the source stays untouched."""
    img = np.random.default_rng(0).integers(0, 256, (20, 30, 4), dtype=np.uint8)
    original = img.copy()

    corrected = correct_and_separate(img, 2.0, 1.5)

    assert np.array_equal(img, original)
    assert corrected is not img
    assert corrected.shape == img.shape


def test_correct_identity():
    """Saturation 1 and contrast 1 leave colours unchanged."""
    img = np.random.default_rng(1).integers(0, 256, (10, 10, 4), dtype=np.uint8)
    assert np.array_equal(correct_and_separate(img, 1.0, 1.0), img)


def test_correct_preserves_alpha():
    img = np.random.default_rng(2).integers(0, 256, (10, 10, 4), dtype=np.uint8)
    corrected = correct_and_separate(img, 3.0, 2.0)
    assert np.array_equal(corrected[:, :, 3], img[:, :, 3])


def test_saturation_leaves_grey_alone():
    corrected = correct_and_separate(_pixel(90, 90, 90), 3.0, 1.0)
    assert corrected[0, 0, :3].tolist() == [90, 90, 90]


def test_saturation_clamps_to_byte_range():
    """(200, 100, 0) has luminance 100; doubling saturation overflows both ways."""
    corrected = correct_and_separate(_pixel(200, 100, 0), 2.0, 1.0)
    assert corrected[0, 0, :3].tolist() == [255, 100, 0]


def test_contrast_around_mid_grey():
    corrected = correct_and_separate(_pixel(100, 128, 200), 1.0, 2.0)
    # 100 -> 72, 128 stays, 200 -> 272 clamped
    assert corrected[0, 0, :3].tolist() == [72, 128, 255]


def test_saturation_result_is_clamped_before_contrast():
    """Contrast works on the stored (clamped) saturation result."""
    corrected = correct_and_separate(_pixel(200, 100, 0), 2.0, 0.5)
    # saturation gives 255, 100, 0; contrast 0.5 gives 191.5, 114, 64
    assert corrected[0, 0, :3].tolist() == [192, 114, 64]


def test_channel_value_inverts_components():
    pixel = _pixel(155, 205, 235)
    assert channel_value('c', pixel)[0, 0] == pytest.approx(100 * 1.15)
    assert channel_value('m', pixel)[0, 0] == pytest.approx(50 * 1.15)
    assert channel_value('y', pixel)[0, 0] == pytest.approx(CHANNEL_MIN_VALUES['y'])
    # k uses the brightest component: 255 - 235 = 20 -> 23
    assert channel_value('k', pixel)[0, 0] == pytest.approx(20 * 1.15)


def test_channel_value_ceiling():
    """Black saturates every channel at 255."""
    for channel in CHANNEL_ORDER:
        assert channel_value(channel, _pixel(0, 0, 0))[0, 0] == 255.0


def test_channel_value_floor():
    """No channel ever drops below its configured minimum."""
    pixels = np.random.default_rng(3).integers(0, 256, (50, 50, 4), dtype=np.uint8)
    pixels[0, 0] = [255, 255, 255, 255]

    for channel in CHANNEL_ORDER:
        values = channel_value(channel, pixels)
        assert values.min() >= CHANNEL_MIN_VALUES[channel]
        assert values.max() <= 255.0
        assert values[0, 0] == CHANNEL_MIN_VALUES[channel]


def test_channel_value_unknown_channel():
    with pytest.raises(ValueError):
        channel_value('x', _pixel(0, 0, 0))  # type: ignore[arg-type]


def test_separate_returns_all_channels():
    fields = separate(np.zeros((4, 6, 4), dtype=np.uint8))
    assert list(fields) == list(CHANNEL_ORDER)
    assert all(field.shape == (4, 6) for field in fields.values())
