import pytest

from fractals.core.fractal_types import (
    FractalRegistry,
    JULIA_PRESETS,
    JuliaSet,
    MandelbrotSet,
    RenderRequest,
    format_complex,
    parse_complex,
    resolve_julia_param,
)
from fractals.core.math_functions import ComplexPlane, EscapeResult, Rect
from fractals.rendering.coloring import GreyscaleColorModel


def reference_escape(start, constant, budget, threshold):
    """Orbit by plain complex arithmetic, returning the first index outside."""
    w = start
    for n in range(budget):
        if abs(w) ** 2 > threshold ** 2:
            return n
        w = w * w + constant
    return None


@pytest.mark.parametrize("threshold", [2.0, 4.0, 1000.0])
@pytest.mark.parametrize("budget", [1, 10, 500])
def test_mandelbrot_origin_is_bounded(threshold, budget):
    assert MandelbrotSet(threshold).evaluate(0j, budget) == EscapeResult.bounded()


def test_mandelbrot_far_point_escapes_immediately():
    assert MandelbrotSet(2.0).evaluate(3 + 0j, 50) == EscapeResult.escaped_at(0)


def test_threshold_override():
    fractal = MandelbrotSet(1000.0)
    assert fractal.evaluate(3 + 0j, 50) != EscapeResult.escaped_at(0)
    assert fractal.evaluate(3 + 0j, 50, threshold=2.0) == EscapeResult.escaped_at(0)


@pytest.mark.parametrize("c", [
    -0.75 + 0.1j, 0.3 + 0.5j, -1.5 + 0.0j, 0.26 + 0.0j, -0.1 + 0.9j, 1.0 + 1.0j, -2.1 + 0.3j,
])
def test_mandelbrot_matches_reference_orbit(c):
    result = MandelbrotSet(2.0).evaluate(c, 20)
    assert result.iteration == reference_escape(c, c, 20, 2.0)


@pytest.mark.parametrize("c", [0j, 0.5 + 0.5j, -0.3 - 0.4j, 1.2 + 0.1j, 0.1 - 1.1j])
def test_julia_matches_reference_orbit(c):
    param = -0.8 + 0.156j
    result = JuliaSet(2.0, param).evaluate(c, 20)
    assert result.iteration == reference_escape(c, param, 20, 2.0)


def test_julia_starts_at_pixel():
    julia = JuliaSet(2.0, 0j)
    assert julia.evaluate(1.5 + 0j, 10) == EscapeResult.escaped_at(1)
    assert julia.evaluate(0.5 + 0j, 10) == EscapeResult.bounded()


def test_julia_is_pure():
    julia = JuliaSet(2.0, -0.4 + 0.6j)
    first = julia.evaluate(0.1 + 0.2j, 200)
    second = julia.evaluate(0.1 + 0.2j, 200)
    assert first == second
    assert JuliaSet(2.0, -0.4 + 0.6j).evaluate(0.1 + 0.2j, 200) == first


@pytest.mark.parametrize("fractal", [MandelbrotSet(2.0), JuliaSet(2.0, -0.8 + 0.156j)])
def test_compute_matches_evaluate(fractal):
    plane = ComplexPlane(Rect.from_bounds(-2.0, -1.5, 3.0, 3.0), 24)
    result = fractal.compute(plane, 40, 4, 12)
    assert result.shape == (8, 24)
    for row in range(4, 12):
        for col in range(plane.width):
            expected = fractal.evaluate(plane.pixel_to_complex(row, col), 40)
            assert result.result_at(row - 4, col) == expected


@pytest.mark.parametrize("text, expected", [
    ("0+0i", 0j),
    ("-0.8+0.156i", complex(-0.8, 0.156)),
    ("0.285-0.01i", complex(0.285, -0.01)),
    ("+1.5-2i", complex(1.5, -2.0)),
    ("1e-3+2E-1i", complex(0.001, 0.2)),
    (".5+.25i", complex(0.5, 0.25)),
])
def test_parse_complex(text, expected):
    assert parse_complex(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1.5", "2i", "1+2", "1+2j", "1++2i", "1+2i3"])
def test_parse_complex_rejects_malformed(text):
    with pytest.raises(ValueError, match="Invalid complex format"):
        parse_complex(text)


def test_format_complex_round_trips():
    for value in (0j, complex(-0.8, 0.156), complex(0.285, -0.01)):
        assert parse_complex(format_complex(value)) == value


def test_resolve_julia_param():
    assert resolve_julia_param("rabbit") == JULIA_PRESETS["rabbit"]
    assert resolve_julia_param("Rabbit") == JULIA_PRESETS["rabbit"]
    assert resolve_julia_param("1-1i") == complex(1, -1)
    with pytest.raises(ValueError):
        resolve_julia_param("no-such-preset")


def test_registry_creates_fractals():
    assert FractalRegistry.create_fractal("mandelbrot", 4.0) == MandelbrotSet(4.0)
    julia = FractalRegistry.create_fractal("JULIA", 2.0, 1j)
    assert isinstance(julia, JuliaSet)
    assert julia.param == 1j
    assert FractalRegistry.names() == ("mandelbrot", "julia")


def test_registry_rejects_unknown_fractal():
    with pytest.raises(ValueError, match="Unknown fractal type"):
        FractalRegistry.create_fractal("burning_ship", 2.0)


def test_list_fractals_describes_each_type():
    descriptions = FractalRegistry.list_fractals()
    assert set(descriptions) == {"mandelbrot", "julia"}
    assert "z_0 = 0" in descriptions["mandelbrot"]


def test_render_request_plane():
    rect = Rect.from_bounds(-2.0, -1.5, 3.0, 3.0)
    request = RenderRequest(MandelbrotSet(4.0), GreyscaleColorModel(50), rect, 50, 300)
    assert request.pixel_size == pytest.approx(0.01)
    assert request.plane().shape == (300, 300)


def test_fractals_are_hashable():
    assert hash(JuliaSet(2.0, complex(-0.8, 0.156))) == hash(JuliaSet(2.0, complex(-0.8, 0.156)))
    assert len({MandelbrotSet(2.0), MandelbrotSet(2.0), JuliaSet(2.0, 0j)}) == 2


def test_render_request_is_hashable():
    rect = Rect.from_bounds(-2.0, -1.5, 3.0, 3.0)
    first = RenderRequest(MandelbrotSet(4.0), GreyscaleColorModel(50), rect, 50, 300)
    second = RenderRequest(MandelbrotSet(4.0), GreyscaleColorModel(50), rect, 50, 300)
    assert first == second
    assert hash(first) == hash(second)
