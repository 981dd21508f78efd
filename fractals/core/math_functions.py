"""
Core mathematical functions for escape-time fractal iteration.

This module provides the plane geometry (points, viewport rectangles and the
pixel-to-plane mapping) together with the escape-time iteration loops. Every
loop exists in two forms: a scalar one evaluating a single coordinate, and a
vectorised NumPy one evaluating a block of pixels. Both perform the same
floating point operations in the same order, so they agree bit for bit.
"""

import math
import numpy as np
from typing import Optional, Tuple, Union
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    """A point (x, y) in fractal space."""
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned viewport in fractal space."""
    bottom_left: Point
    top_right: Point

    @classmethod
    def from_bounds(cls, left: float, bottom: float, width: float, height: float) -> 'Rect':
        """Build a rectangle from its bottom-left corner and its extent."""
        return cls(Point(left, bottom), Point(left + width, bottom + height))

    @property
    def width(self) -> float:
        return self.top_right.x - self.bottom_left.x

    @property
    def height(self) -> float:
        return self.top_right.y - self.bottom_left.y

    def validate(self) -> None:
        """Raise ValueError unless the rectangle has a positive extent."""
        if not self.top_right.x > self.bottom_left.x:
            raise ValueError("Invalid bounds: width must be positive")
        if not self.top_right.y > self.bottom_left.y:
            raise ValueError("Invalid bounds: height must be positive")


class ComplexPlane:
    """Pixel grid laid over a viewport, with coordinate mapping utilities."""

    def __init__(self, rect: Rect, image_width: int):
        """
        Derive the pixel grid for a viewport.

        The pixel size is uniform in both axes and comes from the viewport
        width; the image height follows from the viewport height. Column 0
        is the left edge and row 0 is the top edge of the viewport.

        Args:
            rect: Viewport in fractal space
            image_width: Requested image width in pixels
        """
        self.rect = rect
        self.width = max(int(image_width), 0)
        self.left = rect.bottom_left.x
        self.top = rect.top_right.y

        if self.width > 0 and rect.width > 0:
            self.pixel_size = rect.width / self.width
            self.height = max(int(math.floor(rect.height / self.pixel_size + 0.5)), 0)
        else:
            # Degenerate viewport: nothing to render
            self.width = 0
            self.pixel_size = 0.0
            self.height = 0

        logger.debug(f"Plane {self.width}x{self.height}, pixel size {self.pixel_size:g}")

    @property
    def shape(self) -> Tuple[int, int]:
        """Grid shape as (height, width)."""
        return (self.height, self.width)

    def pixel_to_complex(self, row: int, col: int) -> complex:
        """Convert a pixel index to its fractal-space coordinate."""
        real = self.left + col * self.pixel_size
        imag = self.top - row * self.pixel_size
        return complex(real, imag)

    def complex_to_pixel(self, c: complex) -> Tuple[int, int]:
        """Convert a fractal-space coordinate to the nearest (row, col)."""
        row = int(round((self.top - c.imag) / self.pixel_size))
        col = int(round((c.real - self.left) / self.pixel_size))
        return row, col

    def create_coordinate_arrays(self, row_start: int = 0,
                                 row_end: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Create real and imaginary coordinate arrays for a block of rows.

        Args:
            row_start: First row of the block
            row_end: One past the last row (defaults to the full height)

        Returns:
            Tuple of (real, imag) float64 arrays of shape (rows, width)
        """
        if row_end is None:
            row_end = self.height
        cols = np.arange(self.width, dtype=np.float64)
        rows = np.arange(row_start, row_end, dtype=np.float64)
        real = self.left + cols * self.pixel_size
        imag = self.top - rows * self.pixel_size
        return np.meshgrid(real, imag)

    def create_complex_array(self, row_start: int = 0, row_end: Optional[int] = None) -> np.ndarray:
        """Create a complex128 coordinate array for a block of rows."""
        real, imag = self.create_coordinate_arrays(row_start, row_end)
        c = np.empty(real.shape, dtype=np.complex128)
        c.real = real
        c.imag = imag
        return c


@dataclass(frozen=True)
class EscapeResult:
    """
    Outcome of iterating a single coordinate.

    ``iteration`` holds the index k at which the orbit first left the
    threshold circle, or None when the budget ran out first ("bounded").
    """
    iteration: Optional[int] = None

    @classmethod
    def escaped_at(cls, k: int) -> 'EscapeResult':
        return cls(int(k))

    @classmethod
    def bounded(cls) -> 'EscapeResult':
        return cls(None)

    @property
    def escaped(self) -> bool:
        return self.iteration is not None

    def __str__(self) -> str:
        if self.escaped:
            return f"escaped at {self.iteration}"
        return "bounded"


class IterationResult:
    """Container for escape-time results over a block of pixels."""

    def __init__(self, iterations: np.ndarray, escaped: np.ndarray):
        """
        Initialize iteration result.

        Args:
            iterations: Escape iteration per pixel (0 where bounded)
            escaped: Boolean array indicating which points escaped
        """
        self.iterations = iterations
        self.escaped = escaped
        self.shape = iterations.shape

    def result_at(self, row: int, col: int) -> EscapeResult:
        """Get the per-pixel EscapeResult."""
        if self.escaped[row, col]:
            return EscapeResult.escaped_at(self.iterations[row, col])
        return EscapeResult.bounded()

    @classmethod
    def from_results(cls, results) -> 'IterationResult':
        """Pack a 2D list of EscapeResult values into arrays."""
        escaped = np.array([[r.escaped for r in row] for row in results], dtype=bool)
        iterations = np.array([[r.iteration if r.escaped else 0 for r in row] for row in results],
                              dtype=np.int32)
        return cls(iterations.reshape(escaped.shape), escaped)


class FractalIterator:
    """Escape-time iteration of w -> w^2 + k against a threshold."""

    def __init__(self, max_iter: int, threshold: float):
        """
        Initialize fractal iterator.

        Args:
            max_iter: Iteration budget (number of escape tests)
            threshold: Escape radius; compared through its square
        """
        self.max_iter = int(max_iter)
        self.threshold = float(threshold)
        self.threshold_sq = self.threshold * self.threshold

    def escape_time(self, start: complex, constant: complex) -> EscapeResult:
        """
        Iterate a single orbit.

        Args:
            start: First orbit value w_0
            constant: Value added after each squaring

        Returns:
            "escaped at n" for the first n with |w_n|^2 > threshold^2,
            otherwise "bounded"
        """
        zr = float(start.real)
        zi = float(start.imag)
        kr = float(constant.real)
        ki = float(constant.imag)

        for n in range(self.max_iter):
            zr_sq = zr * zr
            zi_sq = zi * zi

            if zr_sq + zi_sq > self.threshold_sq:
                return EscapeResult.escaped_at(n)

            # w = w^2 + k
            zi = 2.0 * zr * zi + ki
            zr = zr_sq - zi_sq + kr

        return EscapeResult.bounded()

    def iterate(self, start: np.ndarray, constant: Union[complex, np.ndarray]) -> IterationResult:
        """
        Iterate a block of orbits.

        Args:
            start: Complex array of first orbit values
            constant: Scalar or array (same shape as start) added after squaring

        Returns:
            IterationResult with escape iterations and escape mask
        """
        start = np.asarray(start, dtype=np.complex128)
        shape = start.shape

        zr = start.real.astype(np.float64)
        zi = start.imag.astype(np.float64)
        constant = np.asarray(constant, dtype=np.complex128)
        kr = np.broadcast_to(constant.real, shape)
        ki = np.broadcast_to(constant.imag, shape)

        iterations = np.zeros(shape, dtype=np.int32)
        escaped = np.zeros(shape, dtype=bool)
        active = np.ones(shape, dtype=bool)

        for n in range(self.max_iter):
            if not np.any(active):
                break

            zr_a = zr[active]
            zi_a = zi[active]
            zr_sq = zr_a * zr_a
            zi_sq = zi_a * zi_a

            # Check escape condition on the still-active orbits
            out = zr_sq + zi_sq > self.threshold_sq
            if np.any(out):
                idx = np.flatnonzero(active)[out]
                iterations.flat[idx] = n
                escaped.flat[idx] = True

            keep = ~out
            zr_a, zi_a = zr_a[keep], zi_a[keep]
            zr_sq, zi_sq = zr_sq[keep], zi_sq[keep]
            active[active] = keep

            # w = w^2 + k
            zi[active] = 2.0 * zr_a * zi_a + ki[active]
            zr[active] = zr_sq - zi_sq + kr[active]

        return IterationResult(iterations, escaped)
