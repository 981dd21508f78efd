"""
Fractal type definitions and parameter management.

This module defines the closed set of escape-time fractals the renderer
supports (Mandelbrot and Julia), the registry that maps user-facing names to
them, and the RenderRequest that bundles everything a render needs.
"""

import re
from typing import Dict, Tuple, Optional, TYPE_CHECKING
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from .math_functions import FractalIterator, IterationResult, EscapeResult, ComplexPlane, Rect

if TYPE_CHECKING:
    from ..rendering.coloring import ColorModel

logger = logging.getLogger(__name__)

# "<real><sign><imag>i", e.g. "-0.8+0.156i" or "1e-3-2.5i"
_FLOAT = r'(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?'
_COMPLEX_RE = re.compile(rf'^\s*([+-]?{_FLOAT})\s*([+-])\s*({_FLOAT})\s*i\s*$')


def parse_complex(text: str) -> complex:
    """
    Parse a complex number written as ``<real><sign><imag>i``.

    Args:
        text: String such as "-0.8+0.156i"

    Returns:
        The parsed complex number
    """
    match = _COMPLEX_RE.match(text)
    if match is None:
        raise ValueError(f"Invalid complex format '{text}': expected e.g. '-0.8+0.156i'")
    real, sign, imag = match.groups()
    imag_value = float(imag) if sign == '+' else -float(imag)
    return complex(float(real), imag_value)


def format_complex(value: complex) -> str:
    """Format a complex number in the ``<real><sign><imag>i`` form."""
    sign = '-' if value.imag < 0 else '+'
    return f"{value.real:g}{sign}{abs(value.imag):g}i"


class FractalType(ABC):
    """Abstract base class for escape-time fractals."""

    name = "fractal"

    def __init__(self, threshold: float):
        """
        Args:
            threshold: Escape radius; an orbit escapes once |w|^2 > threshold^2
        """
        self.threshold = float(threshold)

    @abstractmethod
    def constant(self, c: complex) -> complex:
        """Value added after each squaring for the orbit started at c."""

    def evaluate(self, c: complex, budget: int, threshold: Optional[float] = None) -> EscapeResult:
        """
        Evaluate a single plane coordinate.

        Args:
            c: Plane coordinate of the pixel
            budget: Iteration budget
            threshold: Overrides the fractal's own threshold when given

        Returns:
            EscapeResult for the coordinate
        """
        iterator = FractalIterator(budget, self.threshold if threshold is None else threshold)
        return iterator.escape_time(c, self.constant(c))

    @abstractmethod
    def compute(self, plane: ComplexPlane, budget: int,
                row_start: int = 0, row_end: Optional[int] = None) -> IterationResult:
        """
        Evaluate a contiguous block of rows of the plane.

        Args:
            plane: Pixel grid
            budget: Iteration budget
            row_start: First row of the block
            row_end: One past the last row (defaults to the full height)

        Returns:
            IterationResult for the block
        """

    @abstractmethod
    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        """Get recommended viewing bounds (left, bottom, width, height)."""

    def get_description(self) -> str:
        """Get a description of this fractal type."""
        return f"{self.name} fractal"

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash((type(self), tuple(self.__dict__.items())))

    def __repr__(self) -> str:
        params = ', '.join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{type(self).__name__}({params})"


class MandelbrotSet(FractalType):
    """Mandelbrot set: the pixel coordinate is the iterated constant."""

    name = "mandelbrot"

    def constant(self, c: complex) -> complex:
        return c

    def compute(self, plane: ComplexPlane, budget: int,
                row_start: int = 0, row_end: Optional[int] = None) -> IterationResult:
        """Compute Mandelbrot set iterations."""
        c = plane.create_complex_array(row_start, row_end)
        # z_0 = 0 always passes the first test, so the orbit starts at z_1 = c
        return FractalIterator(budget, self.threshold).iterate(c, c)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.5, -1.25, 3.5, 2.5)

    def get_description(self) -> str:
        return "Mandelbrot set: z_{n+1} = z_n^2 + c, where c is the complex coordinate and z_0 = 0"


class JuliaSet(FractalType):
    """Julia set: the pixel coordinate is the starting value."""

    name = "julia"

    def __init__(self, threshold: float, param: complex = 0j):
        """
        Args:
            threshold: Escape radius
            param: Julia constant added after each squaring
        """
        super().__init__(threshold)
        self.param = complex(param)

    def constant(self, c: complex) -> complex:
        return self.param

    def compute(self, plane: ComplexPlane, budget: int,
                row_start: int = 0, row_end: Optional[int] = None) -> IterationResult:
        """Compute Julia set iterations."""
        z = plane.create_complex_array(row_start, row_end)
        return FractalIterator(budget, self.threshold).iterate(z, self.param)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.0, -2.0, 4.0, 4.0)

    def get_description(self) -> str:
        return (f"Julia set: z_{{n+1}} = z_n^2 + c, where c = {format_complex(self.param)} "
                f"and z_0 is the complex coordinate")


class FractalRegistry:
    """Registry of the supported fractal types."""

    _fractals: Dict[str, type] = {
        'mandelbrot': MandelbrotSet,
        'julia': JuliaSet,
    }

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(cls._fractals)

    @classmethod
    def get(cls, name: str) -> type:
        """
        Get a fractal class by name.

        Args:
            name: Fractal identifier

        Returns:
            Fractal class
        """
        fractal_class = cls._fractals.get(name.lower())
        if fractal_class is None:
            available = ', '.join(cls._fractals.keys())
            raise ValueError(f"Unknown fractal type '{name}'. Available: {available}")
        return fractal_class

    @classmethod
    def create_fractal(cls, name: str, threshold: float, param: complex = 0j) -> FractalType:
        """
        Create a fractal instance.

        Args:
            name: Fractal type name
            threshold: Escape radius
            param: Julia constant (ignored by the Mandelbrot set)

        Returns:
            Configured fractal instance
        """
        fractal_class = cls.get(name)
        if fractal_class is JuliaSet:
            return JuliaSet(threshold, param)
        return fractal_class(threshold)

    @classmethod
    def list_fractals(cls) -> Dict[str, str]:
        """Get a dictionary of available fractals and their descriptions."""
        return {name: cls.create_fractal(name, 2.0).get_description() for name in cls._fractals}


# Predefined interesting Julia set constants
JULIA_PRESETS: Dict[str, complex] = {
    'dragon': complex(-0.75, 0.1),
    'spiral': complex(-0.4, 0.6),
    'dendrite': complex(0.0, 1.0),
    'lightning': complex(-0.8, 0.156),
    'rabbit': complex(-0.123, 0.745),
    'airplane': complex(-1.755, 0.0),
    'san_marco': complex(-0.75, 0.0),
    'siegel_disk': complex(-0.391, -0.587),
}


def resolve_julia_param(text: str) -> complex:
    """Resolve a Julia parameter given either as a preset name or in complex form."""
    preset = JULIA_PRESETS.get(text.strip().lower())
    if preset is not None:
        logger.debug(f"Using Julia preset '{text}': {preset}")
        return preset
    return parse_complex(text)


@dataclass(frozen=True)
class RenderRequest:
    """Immutable description of a single render."""
    fractal: FractalType
    color_model: 'ColorModel'
    bounds: Rect
    iterations: int
    image_width: int

    @property
    def pixel_size(self) -> float:
        return self.plane().pixel_size

    def plane(self) -> ComplexPlane:
        """Pixel grid for this request."""
        return ComplexPlane(self.bounds, self.image_width)
