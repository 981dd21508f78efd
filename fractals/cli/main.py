"""
Command-line interface for fractal generation.

``fractals gen`` renders one fractal and writes it as a PNG image to standard
output (or to a file with ``--output``). Every option can also be supplied
through an environment variable with the ``FRACTALS_`` prefix, for example
``FRACTALS_GEN_ITERS=500``.
"""

import click
import sys
from pathlib import Path
import logging

from .. import __version__
from ..api import FractalRenderer, RenderConfig
from ..core.fractal_types import FractalRegistry, JULIA_PRESETS, format_complex, resolve_julia_param
from ..rendering.coloring import ColorSchemeRegistry

logger = logging.getLogger(__name__)

_defaults = RenderConfig()


def _parse_param(ctx, param, value):
    """Turn the --param string into a complex number."""
    try:
        return resolve_julia_param(value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)


@click.group(invoke_without_command=True, context_settings={'auto_envvar_prefix': 'FRACTALS'})
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    Fractals - escape-time fractal image generator.

    Render Mandelbrot and Julia sets as PNG images using every CPU core.
    """
    # Logging goes to stderr; stdout is reserved for image data
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"fractals v{__version__}")
        click.echo(f"Python: {sys.version}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument('fractal_type', metavar='FRACTAL',
                type=click.Choice(FractalRegistry.names(), case_sensitive=False))
@click.option('-l', '--left', type=float, default=_defaults.left, show_default=True,
              help='Left bound of image in fractal')
@click.option('-b', '--bottom', type=float, default=_defaults.bottom, show_default=True,
              help='Bottom bound of image in fractal')
@click.option('-W', '--width', type=float, default=_defaults.width, show_default=True,
              help='Width of image in fractal')
@click.option('-H', '--height', type=float, default=_defaults.height, show_default=True,
              help='Height of image in fractal')
@click.option('-t', '--threshold', type=float, default=_defaults.threshold, show_default=True,
              help='Fractal computation threshold')
@click.option('-p', '--param', default=format_complex(_defaults.param), show_default=True,
              callback=_parse_param,
              help='Complex parameter for Julia fractal, e.g. "-0.8+0.156i", or a preset name')
@click.option('-i', '--iters', type=int, default=_defaults.iterations, show_default=True,
              help='Number of fractal iterations')
@click.option('-w', '--image-width', type=int, default=_defaults.image_width, show_default=True,
              help='Width of image (pixels)')
@click.option('-c', '--colors', type=click.Choice(ColorSchemeRegistry.names(), case_sensitive=False),
              default=_defaults.color_scheme, show_default=True, help='Color scheme')
@click.option('-bm', '--bold-mode', is_flag=True, help='Enable bold mode!')
@click.option('-j', '--workers', type=int, default=None,
              help='Number of worker processes  [default: CPU count]')
@click.option('-o', '--output', type=click.Path(dir_okay=False, path_type=Path),
              help='Write the PNG to this file instead of standard output')
@click.option('--metadata/--no-metadata', default=_defaults.save_metadata, show_default=True,
              help='Embed render parameters in PNG text chunks')
@click.pass_context
def gen(ctx, fractal_type, left, bottom, width, height, threshold, param, iters,
        image_width, colors, bold_mode, workers, output, metadata):
    """
    Generate a fractal from the command line.

    FRACTAL: Type of fractal (mandelbrot or julia)
    """
    config = RenderConfig(
        fractal_type=fractal_type.lower(),
        threshold=threshold,
        param=param,
        left=left,
        bottom=bottom,
        width=width,
        height=height,
        iterations=iters,
        image_width=image_width,
        color_scheme=colors.lower(),
        bold_mode=bold_mode,
        num_processes=workers,
        save_metadata=metadata
    )

    try:
        renderer = FractalRenderer(config)
    except ValueError as e:
        raise click.UsageError(str(e), ctx=ctx)

    buffer = renderer.render()

    try:
        if output is not None:
            renderer.save(buffer, output)
        else:
            renderer.encode(buffer, sys.stdout.buffer)
    except (OSError, ValueError) as e:
        logger.error(f"Encoding failed: {e}")
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@main.command('list-fractals')
def list_fractals():
    """List available fractal types and Julia presets."""
    click.echo("Available fractal types:")
    for name, description in FractalRegistry.list_fractals().items():
        click.echo(f"  {name}")
        click.echo(f"    {description}")

    click.echo("\nJulia set presets:")
    for name, c in JULIA_PRESETS.items():
        click.echo(f"  {name}: c = {format_complex(c)}")


@main.command('list-colors')
def list_colors():
    """List available color schemes."""
    click.echo("Available color schemes:")
    for name in ColorSchemeRegistry.names():
        click.echo(f"  {name}")


if __name__ == '__main__':
    main()
