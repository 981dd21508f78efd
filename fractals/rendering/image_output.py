"""
Pixel buffers and PNG export for fractal rendering.

This module holds the RGBA pixel buffer the renderer fills in, and the
exporter that encodes a finished buffer as a PNG image (with optional
render metadata in text chunks) to a file or a binary stream.
"""

import numpy as np
from typing import Any, BinaryIO, Dict, Optional, Tuple, Union
from pathlib import Path
from dataclasses import dataclass, asdict, field
import io
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from .. import __version__

logger = logging.getLogger(__name__)


class PixelBuffer:
    """
    Row-major RGBA pixel grid written once per row by the renderer.

    A fresh buffer is all zeros; an alpha of 0 marks a pixel that has not been
    written yet. Rows are handed out in disjoint blocks and each row may be
    written exactly once.
    """

    def __init__(self, width: int, height: int):
        self.width = max(int(width), 0)
        self.height = max(int(height), 0)
        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self._rows_written = np.zeros(self.height, dtype=bool)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def write_rows(self, row_start: int, block: np.ndarray) -> None:
        """
        Store a block of rows.

        Args:
            row_start: Row the block starts at
            block: RGBA array of shape (rows, width, 4)
        """
        row_end = row_start + block.shape[0]
        if row_start < 0 or row_end > self.height:
            raise ValueError(f"Rows {row_start}:{row_end} outside buffer of height {self.height}")
        if block.shape[1:] != (self.width, 4):
            raise ValueError(f"Expected block of shape (rows, {self.width}, 4), got {block.shape}")
        if np.any(self._rows_written[row_start:row_end]):
            raise ValueError(f"Rows {row_start}:{row_end} overlap rows already written")

        self.pixels[row_start:row_end] = block
        self._rows_written[row_start:row_end] = True

    def is_complete(self) -> bool:
        """True once every row has been written."""
        return bool(np.all(self._rows_written))

    def freeze(self) -> None:
        """Make the pixel array read-only."""
        self.pixels.flags.writeable = False

    def pixel(self, row: int, col: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self.pixels[row, col]
        return (int(r), int(g), int(b), int(a))

    def to_image(self) -> Image.Image:
        """Convert to a Pillow RGBA image."""
        return Image.fromarray(np.ascontiguousarray(self.pixels))


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    fractal_type: str
    bounds: Tuple[float, float, float, float]  # left, bottom, width, height
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    threshold: float
    color_scheme: str
    bold_mode: bool = False

    render_time_seconds: float = 0.0
    workers: int = 1

    timestamp: str = ""
    software_version: str = __version__

    fractal_parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        data = dict(data)
        data['bounds'] = tuple(data['bounds'])
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """PNG export with metadata support."""

    def __init__(self, compress_level: int = 6):
        """
        Args:
            compress_level: zlib level, 0 (no compression) to 9 (max compression)
        """
        self.compress_level = compress_level

    def _pnginfo(self, metadata: Optional[RenderMetadata]) -> PngImagePlugin.PngInfo:
        pnginfo = PngImagePlugin.PngInfo()
        if metadata:
            pnginfo.add_text("Title", f"Fractal: {metadata.fractal_type}")
            pnginfo.add_text("Software", f"fractals v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())
        return pnginfo

    def write_png(self, buffer: PixelBuffer, stream: BinaryIO,
                  metadata: Optional[RenderMetadata] = None) -> None:
        """
        Encode a finished buffer as a PNG to a binary stream.

        The image is encoded in memory first, so the stream receives either
        the complete PNG or nothing at all.

        Args:
            buffer: Completed pixel buffer
            stream: Writable binary stream
            metadata: Render metadata to embed
        """
        image = buffer.to_image()
        encoded = io.BytesIO()
        image.save(encoded, "PNG", pnginfo=self._pnginfo(metadata), compress_level=self.compress_level)
        stream.write(encoded.getvalue())
        stream.flush()
        logger.info(f"Encoded PNG image ({buffer.width}x{buffer.height})")

    def save_image(self, buffer: PixelBuffer, filepath: Union[str, Path],
                   metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save a finished buffer as a PNG file.

        Args:
            buffer: Completed pixel buffer
            filepath: Output file path; a missing suffix becomes .png
            metadata: Render metadata to embed

        Returns:
            Path written
        """
        filepath = Path(filepath)
        if not filepath.suffix:
            filepath = filepath.with_suffix('.png')
        elif filepath.suffix.lower() != '.png':
            raise ValueError(f"Unsupported format '{filepath.suffix}'. Supported: .png")

        try:
            with open(filepath, 'wb') as f:
                self.write_png(buffer, f, metadata)
        except (OSError, ValueError):
            if filepath.exists():
                filepath.unlink()
            raise

        logger.info(f"Saved image: {filepath}")
        return filepath

    def extract_metadata_from_image(self, filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """Read back the metadata embedded by ``write_png``, if any."""
        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if 'FractalMetadata' in text:
                return RenderMetadata.from_json(text['FractalMetadata'])
        return None
