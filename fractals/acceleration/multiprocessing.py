"""
Multiprocessing backend for parallel fractal rendering.

The pixel grid is split into contiguous blocks of rows, one per worker. Each
block is mapped to the plane, iterated and colored independently, and the
resulting RGBA block is written into its own slice of a preallocated pixel
buffer. Blocks never overlap, so no locking is needed; the executor shutdown
is the single point where the caller waits for every worker.
"""

import numpy as np
from typing import List, Optional
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.fractal_types import RenderRequest
from ..rendering.image_output import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowChunk:
    """A contiguous block of image rows assigned to one worker."""
    chunk_id: int
    row_start: int
    row_end: int

    @property
    def rows(self) -> int:
        return self.row_end - self.row_start


@dataclass
class ChunkResult:
    """Result from processing a single row chunk."""
    chunk_id: int
    row_start: int
    pixels: np.ndarray
    processing_time: float


def get_worker_count(hint: Optional[int] = None) -> int:
    """
    Resolve a worker-count hint.

    None means one worker per CPU; zero or negative hints fall back to 1.
    """
    if hint is None:
        return mp.cpu_count()
    return max(1, int(hint))


def create_row_chunks(height: int, num_chunks: int) -> List[RowChunk]:
    """
    Partition rows into disjoint contiguous chunks.

    Chunk sizes differ by at most one row and no chunk is empty, so fewer
    than ``num_chunks`` chunks come back when there are fewer rows.

    Args:
        height: Total number of rows
        num_chunks: Desired number of chunks

    Returns:
        List of RowChunk objects covering every row exactly once
    """
    height = max(int(height), 0)
    num_chunks = max(1, min(int(num_chunks), height))
    base, extra = divmod(height, num_chunks)

    chunks = []
    row = 0
    for chunk_id in range(num_chunks if height else 0):
        size = base + (1 if chunk_id < extra else 0)
        chunks.append(RowChunk(chunk_id, row, row + size))
        row += size

    logger.debug(f"Created {len(chunks)} row chunks for {height} rows")
    return chunks


def process_row_chunk(request: RenderRequest, chunk: RowChunk) -> ChunkResult:
    """
    Compute and color one block of rows.

    Runs in a worker process, so everything it needs comes in through its
    (picklable) arguments.

    Args:
        request: Render request
        chunk: Rows to compute

    Returns:
        ChunkResult holding the RGBA block
    """
    start_time = time.time()

    plane = request.plane()
    result = request.fractal.compute(plane, request.iterations, chunk.row_start, chunk.row_end)
    pixels = request.color_model.apply(result, request.iterations)

    return ChunkResult(
        chunk_id=chunk.chunk_id,
        row_start=chunk.row_start,
        pixels=pixels,
        processing_time=time.time() - start_time
    )


class MultiprocessingAccelerator:
    """Process-pool renderer over row chunks."""

    def __init__(self, num_processes: Optional[int] = None):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Number of worker processes (None for CPU count)
        """
        self.num_processes = get_worker_count(num_processes)
        logger.debug(f"Multiprocessing accelerator: {self.num_processes} processes")

    def render(self, request: RenderRequest) -> PixelBuffer:
        """
        Render a request into a complete pixel buffer.

        Args:
            request: Render request

        Returns:
            Finished, read-only pixel buffer
        """
        start_time = time.time()

        plane = request.plane()
        buffer = PixelBuffer(plane.width, plane.height)
        chunks = create_row_chunks(plane.height, self.num_processes)

        logger.info(f"Rendering {plane.width}x{plane.height} pixels in {len(chunks)} chunks "
                    f"with {self.num_processes} processes")

        if len(chunks) <= 1:
            for chunk in chunks:
                self._store(buffer, process_row_chunk(request, chunk))
        else:
            with ProcessPoolExecutor(max_workers=min(self.num_processes, len(chunks))) as executor:
                futures = [executor.submit(process_row_chunk, request, chunk) for chunk in chunks]

                completed = 0
                for future in as_completed(futures):
                    self._store(buffer, future.result())
                    completed += 1
                    logger.debug(f"Completed {completed}/{len(chunks)} chunks")

        if not buffer.is_complete():
            raise RuntimeError("Render finished with unwritten rows")
        buffer.freeze()

        total_time = time.time() - start_time
        logger.info(f"Render complete: {total_time:.2f}s")
        return buffer

    def _store(self, buffer: PixelBuffer, result: ChunkResult) -> None:
        buffer.write_rows(result.row_start, result.pixels)
        logger.debug(f"Chunk {result.chunk_id}: {result.pixels.shape[0]} rows "
                     f"in {result.processing_time:.2f}s")


def render_parallel(request: RenderRequest, num_processes: Optional[int] = None) -> PixelBuffer:
    """Render a request with a worker-count hint."""
    return MultiprocessingAccelerator(num_processes).render(request)
