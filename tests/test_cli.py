import sys
from pathlib import Path

# Add project root to path so we can import the package
sys.path.append(str(Path(__file__).parent.parent))

import pytest
from click.testing import CliRunner
from PIL import Image
from retro_halftones.cli import main


@pytest.fixture
def image_path(tmp_path):
    path = tmp_path / "input.png"
    Image.new('RGB', (24, 18), (180, 90, 30)).save(path)
    return path


def test_cli_writes_output(image_path, tmp_path):
    output = tmp_path / "out.png"
    result = CliRunner().invoke(main, [str(image_path), '--size', '4', '--seed', '1', '-o', str(output)])

    assert result.exit_code == 0, result.output
    assert "saved to" in result.output
    assert Image.open(output).size == (24, 18)


def test_cli_default_output_name(image_path):
    result = CliRunner().invoke(main, [str(image_path), '--seed', '1', '-q'])

    assert result.exit_code == 0, result.output
    assert (image_path.parent / "input-halftone.png").exists()


def test_cli_rejects_out_of_range_size(image_path):
    result = CliRunner().invoke(main, [str(image_path), '--size', '64'])
    assert result.exit_code == 2


def test_cli_reads_env_defaults(image_path):
    result = CliRunner().invoke(main, [str(image_path)], env={'RETRO_HALFTONES_SIZE': '1'})
    assert result.exit_code == 2


def test_cli_reports_undecodable_image(tmp_path):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"not an image")

    result = CliRunner().invoke(main, [str(bad)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_cli_reports_oversized_image(image_path, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    result = CliRunner().invoke(main, [str(image_path)])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert not (image_path.parent / "input-halftone.png").exists()
