"""Splitting payloads into bounded-size chunks and joining them back."""

from typing import Iterable

from app.errors import CorruptObjectError
from app.models import Chunk


def split(data: bytes, max_chunk_size: int) -> list[bytes]:
    """Slice ``data`` into pieces of ``max_chunk_size``; the last one holds the remainder.

    Empty input gives no chunks at all.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")
    return [data[start : start + max_chunk_size] for start in range(0, len(data), max_chunk_size)]


def build_chunks(parent_id: str, pieces: list[bytes]) -> list[Chunk]:
    """Tag split pieces with their owner and 1-based position."""
    return [
        Chunk(parent_id=parent_id, index=index, data=piece)
        for index, piece in enumerate(pieces, start=1)
    ]


def join(chunks: Iterable[Chunk]) -> bytes:
    """Concatenate chunk payloads in ascending index order.

    Gaps and duplicate indices are not detected here; see ``check_contiguous``.
    """
    ordered = sorted(chunks, key=lambda chunk: chunk.index)
    return b"".join(chunk.data for chunk in ordered)


def check_contiguous(chunks: list[Chunk], *, total_chunks: int, content_length: int) -> None:
    indices = sorted(chunk.index for chunk in chunks)
    if indices != list(range(1, total_chunks + 1)):
        raise CorruptObjectError(
            f"expected chunk indices 1..{total_chunks}, got {len(indices)} chunks"
        )
    size = sum(len(chunk.data) for chunk in chunks)
    if size != content_length:
        raise CorruptObjectError(f"expected {content_length} bytes, got {size}")
