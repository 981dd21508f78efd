"""
Color models for escape-time fractal rendering.

A color model turns escape-time results into RGBA pixels. Two models are
provided: a linear greyscale ramp and a hue gradient with an optional bold
mode. Every model is a pure function of the escape result, the iteration
budget and its own fixed parameters.
"""

import numpy as np
from typing import Dict, Optional, Tuple
from dataclasses import dataclass
from abc import ABC, abstractmethod
import logging

import matplotlib.colors as mcolors

from ..core.math_functions import EscapeResult, IterationResult

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]

INSIDE_COLOR: RGBA = (0, 0, 0, 255)


@dataclass(frozen=True)
class HueRange:
    """A sweep of hues in degrees, from ``start`` to ``end``."""
    start: float
    end: float
    name: str = "custom"

    def hue_at(self, t: np.ndarray) -> np.ndarray:
        """Hue in [0, 1) at position t (0-1) along the sweep."""
        degrees = self.start + t * (self.end - self.start)
        return np.mod(degrees, 360.0) / 360.0


BLUE_TO_YELLOW = HueRange(240.0, 60.0, name="blue-to-yellow")
RED_TO_GREEN = HueRange(0.0, 120.0, name="red-to-green")


class ColorModel(ABC):
    """Abstract base class for color models."""

    name = "color model"

    def __init__(self, iterations: int):
        """
        Args:
            iterations: Iteration budget used to normalise escape times
        """
        self.iterations = int(iterations)

    def _positions(self, result: IterationResult, budget: Optional[int]) -> np.ndarray:
        """Normalised escape times k / budget."""
        budget = self.iterations if budget is None else int(budget)
        if budget <= 0:
            return np.zeros(result.shape, dtype=np.float64)
        return result.iterations.astype(np.float64) / budget

    @abstractmethod
    def _colorize(self, t: np.ndarray) -> np.ndarray:
        """
        Color escaped pixels.

        Args:
            t: Normalised escape times

        Returns:
            RGB array (..., 3) with values 0-1
        """

    def apply(self, result: IterationResult, budget: Optional[int] = None) -> np.ndarray:
        """
        Color a block of escape-time results.

        Args:
            result: Iteration result for the block
            budget: Iteration budget (defaults to the model's own)

        Returns:
            RGBA image array (height, width, 4) of uint8
        """
        t = self._positions(result, budget)
        rgb = np.rint(np.clip(self._colorize(t), 0.0, 1.0) * 255.0).astype(np.uint8)

        rgba = np.empty((*result.shape, 4), dtype=np.uint8)
        rgba[..., :3] = rgb
        rgba[..., 3] = 255

        # Points that never escaped are drawn in the inside color
        rgba[~result.escaped] = INSIDE_COLOR
        return rgba

    def map(self, result: EscapeResult, budget: Optional[int] = None) -> RGBA:
        """Color a single escape-time result."""
        block = self.apply(IterationResult.from_results([[result]]), budget)
        r, g, b, a = block[0, 0]
        return (int(r), int(g), int(b), int(a))

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash((type(self), tuple(self.__dict__.items())))

    def __repr__(self) -> str:
        params = ', '.join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{type(self).__name__}({params})"


class GreyscaleColorModel(ColorModel):
    """Linear grey ramp: brightness grows with the escape time."""

    name = "greyscale"

    def _colorize(self, t: np.ndarray) -> np.ndarray:
        return np.repeat(t[..., np.newaxis], 3, axis=-1)


class HueColorModel(ColorModel):
    """
    Hue gradient coloring.

    The escape time moves linearly through the hue range. Saturation is fixed
    and value rises with the escape time, so later escapes are brighter.
    Bold mode pushes early escapes further along the range with a square
    root curve and uses full saturation with a higher value floor, which
    makes the escape bands stand out.
    """

    name = "hue"

    SATURATION = 0.75
    VALUE_FLOOR = 0.35
    BOLD_SATURATION = 1.0
    BOLD_VALUE_FLOOR = 0.6

    def __init__(self, iterations: int, hue_range: HueRange = BLUE_TO_YELLOW, bold_mode: bool = False):
        """
        Args:
            iterations: Iteration budget used to normalise escape times
            hue_range: Hue sweep to map escape times onto
            bold_mode: Sharpen escape bands
        """
        super().__init__(iterations)
        self.hue_range = hue_range
        self.bold_mode = bool(bold_mode)

    def _colorize(self, t: np.ndarray) -> np.ndarray:
        t = np.clip(t, 0.0, 1.0)
        if self.bold_mode:
            t = np.sqrt(t)
            saturation, floor = self.BOLD_SATURATION, self.BOLD_VALUE_FLOOR
        else:
            saturation, floor = self.SATURATION, self.VALUE_FLOOR

        hsv = np.empty((*t.shape, 3), dtype=np.float64)
        hsv[..., 0] = self.hue_range.hue_at(t)
        hsv[..., 1] = saturation
        hsv[..., 2] = floor + (1.0 - floor) * t
        return mcolors.hsv_to_rgb(hsv)


class ColorSchemeRegistry:
    """Registry of the user-selectable color schemes."""

    _hue_ranges: Dict[str, HueRange] = {
        BLUE_TO_YELLOW.name: BLUE_TO_YELLOW,
        RED_TO_GREEN.name: RED_TO_GREEN,
    }

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return (GreyscaleColorModel.name, *cls._hue_ranges)

    @classmethod
    def create(cls, name: str, iterations: int, bold_mode: bool = False) -> ColorModel:
        """
        Create the color model for a scheme name.

        Args:
            name: Scheme name (greyscale, blue-to-yellow, red-to-green)
            iterations: Iteration budget
            bold_mode: Bold mode for hue schemes; ignored by greyscale

        Returns:
            Configured color model
        """
        key = name.lower()
        if key == GreyscaleColorModel.name:
            if bold_mode:
                logger.info("Bold mode has no effect on the greyscale scheme")
            return GreyscaleColorModel(iterations)

        hue_range = cls._hue_ranges.get(key)
        if hue_range is None:
            available = ', '.join(cls.names())
            raise ValueError(f"Unknown colors '{name}'. Available: {available}")
        return HueColorModel(iterations, hue_range, bold_mode)
