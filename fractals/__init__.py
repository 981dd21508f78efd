"""
Escape-time fractal rendering library.

This library renders Mandelbrot and Julia sets over a rectangle of the complex
plane into color-mapped RGBA images, spreading the work over a pool of worker
processes, and encodes the result as PNG.

Key Features:
- Mandelbrot and Julia sets with a configurable escape threshold
- Greyscale and hue-gradient color schemes, with a bold mode
- Row-partitioned parallel rendering across all CPU cores
- PNG output to a stream or file, with embedded render metadata

Example usage:
    >>> from fractals import FractalRenderer, RenderConfig
    >>> config = RenderConfig(left=-2, bottom=-1.5, width=3, height=3,
    ...                       threshold=4, iterations=50, image_width=300,
    ...                       color_scheme='greyscale')
    >>> buffer = FractalRenderer(config).render()
"""

__version__ = "1.0.0"

from fractals.core.math_functions import Point, Rect, ComplexPlane, EscapeResult, IterationResult
from fractals.core.fractal_types import (
    FractalType,
    MandelbrotSet,
    JuliaSet,
    FractalRegistry,
    RenderRequest,
    parse_complex,
)
from fractals.rendering.coloring import (
    ColorModel,
    GreyscaleColorModel,
    HueColorModel,
    HueRange,
    BLUE_TO_YELLOW,
    RED_TO_GREEN,
    ColorSchemeRegistry,
)
from fractals.rendering.image_output import PixelBuffer, ImageExporter, RenderMetadata
from fractals.acceleration.multiprocessing import MultiprocessingAccelerator, render_parallel

# Main API classes
from fractals.api import FractalRenderer, RenderConfig

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "Point",
    "Rect",
    "ComplexPlane",
    "EscapeResult",
    "IterationResult",
    "FractalType",
    "MandelbrotSet",
    "JuliaSet",
    "FractalRegistry",
    "RenderRequest",
    "parse_complex",
    "ColorModel",
    "GreyscaleColorModel",
    "HueColorModel",
    "HueRange",
    "BLUE_TO_YELLOW",
    "RED_TO_GREEN",
    "ColorSchemeRegistry",
    "PixelBuffer",
    "ImageExporter",
    "RenderMetadata",
    "MultiprocessingAccelerator",
    "render_parallel",
]
