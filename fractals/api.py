"""
Main API classes for fractal generation.

This module provides the high-level interface: a RenderConfig built once at
the boundary (command line or library caller), and a FractalRenderer that
turns it into a render request, renders it and encodes the result.
"""

from typing import Optional, Union, BinaryIO, Tuple
import cmath
import math
from dataclasses import dataclass
from pathlib import Path
import logging
import time

from .core.fractal_types import FractalType, FractalRegistry, RenderRequest
from .core.math_functions import ComplexPlane, Rect
from .rendering.coloring import ColorModel, ColorSchemeRegistry
from .rendering.image_output import ImageExporter, PixelBuffer, RenderMetadata
from .acceleration.multiprocessing import MultiprocessingAccelerator, get_worker_count

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for fractal rendering."""

    # Fractal parameters
    fractal_type: str = 'mandelbrot'
    threshold: float = 1000.0
    param: complex = 0j

    # Viewport in fractal space
    left: float = 0.0
    bottom: float = 0.0
    width: float = 1.0
    height: float = 1.0

    # Image parameters
    iterations: int = 100
    image_width: int = 1000

    # Coloring
    color_scheme: str = 'blue-to-yellow'
    bold_mode: bool = False

    # Performance
    num_processes: Optional[int] = None

    # Output
    save_metadata: bool = True

    @property
    def bounds(self) -> Rect:
        return Rect.from_bounds(self.left, self.bottom, self.width, self.height)

    def validate(self):
        """Validate configuration parameters."""
        FractalRegistry.get(self.fractal_type)

        for name in ('left', 'bottom', 'width', 'height', 'threshold'):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number")

        if not cmath.isfinite(self.param):
            raise ValueError("param must be a finite complex number")

        if self.color_scheme.lower() not in ColorSchemeRegistry.names():
            available = ', '.join(ColorSchemeRegistry.names())
            raise ValueError(f"Unknown colors '{self.color_scheme}'. Available: {available}")

        if self.iterations <= 0:
            raise ValueError("iterations must be positive")

        if self.image_width <= 0:
            raise ValueError("image_width must be positive")

        bounds = self.bounds
        bounds.validate()
        if not (math.isfinite(bounds.width) and math.isfinite(bounds.height)):
            raise ValueError("Invalid bounds: viewport extent overflows")

        if ComplexPlane(bounds, self.image_width).height < 1:
            raise ValueError(f"Invalid bounds: height {self.height:g} is less than one pixel "
                             f"at image_width {self.image_width}")

    def create_fractal(self) -> FractalType:
        return FractalRegistry.create_fractal(self.fractal_type, self.threshold, self.param)

    def create_color_model(self) -> ColorModel:
        return ColorSchemeRegistry.create(self.color_scheme, self.iterations, self.bold_mode)

    def to_request(self) -> RenderRequest:
        """Build the immutable render request for this configuration."""
        return RenderRequest(
            fractal=self.create_fractal(),
            color_model=self.create_color_model(),
            bounds=self.bounds,
            iterations=self.iterations,
            image_width=self.image_width
        )


class FractalRenderer:
    """Main fractal rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.accelerator = MultiprocessingAccelerator(self.config.num_processes)
        self.image_exporter = ImageExporter()
        self.last_render_time = 0.0

        logger.info(f"FractalRenderer initialized: {self.config.fractal_type}, "
                    f"{self.config.image_width}px wide, {self.config.iterations} iterations")

    def render(self) -> PixelBuffer:
        """
        Render the configured fractal.

        Returns:
            Finished RGBA pixel buffer
        """
        start_time = time.time()
        request = self.config.to_request()

        logger.info(f"Starting render: {request.fractal!r} with {request.color_model!r}")
        buffer = self.accelerator.render(request)

        self.last_render_time = time.time() - start_time
        return buffer

    def metadata(self, buffer: PixelBuffer) -> RenderMetadata:
        """Describe a finished render."""
        fractal = self.config.create_fractal()
        params = {}
        if hasattr(fractal, 'param'):
            params['param'] = [fractal.param.real, fractal.param.imag]

        return RenderMetadata(
            fractal_type=fractal.name,
            bounds=(self.config.left, self.config.bottom, self.config.width, self.config.height),
            resolution=(buffer.width, buffer.height),
            max_iterations=self.config.iterations,
            threshold=self.config.threshold,
            color_scheme=self.config.color_scheme,
            bold_mode=self.config.bold_mode,
            render_time_seconds=self.last_render_time,
            workers=get_worker_count(self.config.num_processes),
            fractal_parameters=params
        )

    def encode(self, buffer: PixelBuffer, stream: BinaryIO) -> None:
        """Encode a finished buffer as a PNG to a binary stream."""
        metadata = self.metadata(buffer) if self.config.save_metadata else None
        self.image_exporter.write_png(buffer, stream, metadata)

    def save(self, buffer: PixelBuffer, output_path: Union[str, Path]) -> Path:
        """Save a finished buffer as a PNG file; returns the path written."""
        metadata = self.metadata(buffer) if self.config.save_metadata else None
        return self.image_exporter.save_image(buffer, output_path, metadata)

    def render_to_stream(self, stream: BinaryIO) -> PixelBuffer:
        """Render and write a single PNG image to a binary stream."""
        buffer = self.render()
        self.encode(buffer, stream)
        return buffer

    def render_to_file(self, output_path: Union[str, Path]) -> Tuple[PixelBuffer, Path]:
        """Render and save a single PNG image to a file."""
        buffer = self.render()
        return buffer, self.save(buffer, output_path)
