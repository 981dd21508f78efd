import io
import logging

import pytest
from click.testing import CliRunner
from PIL import Image

from fractals import __version__
from fractals.cli.main import main

SMALL_VIEW = ["-l", "-2", "-b", "-1.5", "-W", "3", "-H", "3", "-t", "4", "-i", "20", "-w", "30", "-j", "1"]


@pytest.fixture
def runner():
    return CliRunner()


def read_png(data):
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def test_gen_writes_png_to_stdout(runner):
    result = runner.invoke(main, ["gen", "mandelbrot", *SMALL_VIEW, "-c", "greyscale"])
    assert result.exit_code == 0, result.output
    assert result.stdout_bytes.startswith(b"\x89PNG")

    image = read_png(result.stdout_bytes)
    assert image.size == (30, 30)
    assert image.mode == "RGBA"


def test_gen_julia_with_bold_mode(runner):
    result = runner.invoke(main, ["gen", "julia", *SMALL_VIEW, "-t", "2", "-p", "-0.8+0.156i",
                                  "-c", "red-to-green", "-bm"])
    assert result.exit_code == 0, result.output
    assert read_png(result.stdout_bytes).size == (30, 30)


def test_gen_julia_preset(runner):
    result = runner.invoke(main, ["gen", "julia", *SMALL_VIEW, "-p", "rabbit"])
    assert result.exit_code == 0, result.output


def test_gen_to_file(runner, tmp_path):
    output = tmp_path / "out.png"
    result = runner.invoke(main, ["gen", "mandelbrot", *SMALL_VIEW, "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert result.stdout_bytes == b""
    assert read_png(output.read_bytes()).size == (30, 30)


def test_gen_reads_options_from_environment(runner):
    result = runner.invoke(main, ["gen", "mandelbrot", *SMALL_VIEW[:-4], "-j", "1"],
                           env={"FRACTALS_GEN_IMAGE_WIDTH": "12"})
    assert result.exit_code == 0, result.output
    assert read_png(result.stdout_bytes).size == (12, 12)


def test_unknown_fractal_is_usage_error(runner):
    result = runner.invoke(main, ["gen", "newton"])
    assert result.exit_code == 2
    assert "Usage:" in result.output


def test_unknown_colors_is_usage_error(runner):
    result = runner.invoke(main, ["gen", "mandelbrot", "-c", "rainbow"])
    assert result.exit_code == 2
    assert "Usage:" in result.output


def test_malformed_param_is_usage_error(runner):
    result = runner.invoke(main, ["gen", "julia", "-p", "1.5,2"])
    assert result.exit_code == 2
    assert "Invalid complex format" in result.output


@pytest.mark.parametrize("args", [
    ["-i", "0"],
    ["-w", "0"],
    ["-W", "-1"],
    ["-W", "inf", "-w", "10"],
    ["-W", "1", "-H", "0.0001", "-w", "100"],
])
def test_invalid_numbers_are_usage_errors(runner, args):
    result = runner.invoke(main, ["gen", "mandelbrot", *args])
    assert result.exit_code == 2
    assert "Usage:" in result.output


def test_encoding_failure_is_reported(runner, tmp_path):
    output = tmp_path / "missing" / "out.png"
    result = runner.invoke(main, ["gen", "mandelbrot", *SMALL_VIEW, "-o", str(output)])
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_failed_stdout_encode_emits_no_image_bytes(runner, failing_png_encoder):
    result = runner.invoke(main, ["gen", "mandelbrot", *SMALL_VIEW])
    assert result.exit_code == 1
    assert "Error: disk full" in result.output
    assert b"\x89PNG" not in result.stdout_bytes


def test_list_fractals(runner):
    result = runner.invoke(main, ["list-fractals"])
    assert result.exit_code == 0
    assert "mandelbrot" in result.output
    assert "julia" in result.output
    assert "rabbit: c = -0.123+0.745i" in result.output


def test_list_colors(runner):
    result = runner.invoke(main, ["list-colors"])
    assert result.exit_code == 0
    for name in ("greyscale", "blue-to-yellow", "red-to-green"):
        assert name in result.output


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert f"fractals v{__version__}" in result.output


def test_no_command_shows_help(runner):
    result = runner.invoke(main, [])
    assert result.exit_code == 0
    assert "gen" in result.output


def test_stdout_output_uses_no_deprecated_click_api(runner, recwarn):
    result = runner.invoke(main, ["gen", "mandelbrot", *SMALL_VIEW])
    assert result.exit_code == 0, result.output
    assert not [w for w in recwarn if "Click 9" in str(w.message)]


@pytest.mark.parametrize("flags, level", [
    ([], logging.WARNING),
    (["-q"], logging.ERROR),
    (["-v"], logging.DEBUG),
])
def test_logging_levels(runner, monkeypatch, flags, level):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    result = runner.invoke(main, [*flags, "list-colors"])
    assert result.exit_code == 0
    assert calls[0]["level"] == level
