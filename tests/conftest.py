import pytest
from PIL import Image

from fractals.core.math_functions import Rect


@pytest.fixture
def mandelbrot_rect():
    """The classic full view of the Mandelbrot set."""
    return Rect.from_bounds(-2.0, -1.5, 3.0, 3.0)


@pytest.fixture
def failing_png_encoder(monkeypatch):
    """Make Pillow fail after it has written the PNG signature."""
    def save(image, fp, *args, **kwargs):
        fp.write(b"\x89PNG\r\n\x1a\n")
        raise OSError("disk full")

    monkeypatch.setattr(Image.Image, "save", save)
