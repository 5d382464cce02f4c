"""Chunked ranges and rounding helpers used by the blocked multiply loops."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class RangeChunk:
    """Splits ``n`` items into chunks of ``chunk``; the last one may be shorter.

    Iterating yields ``(index, size)`` pairs, with ``index`` starting at ``i``.
    """

    i: int
    n: int
    chunk: int

    def __post_init__(self) -> None:
        if self.chunk <= 0:
            raise ValueError(f"chunk size must be positive, got {self.chunk}")
        if self.n < 0:
            raise ValueError(f"length must not be negative, got {self.n}")
        if self.i < 0:
            raise ValueError(f"start index must not be negative, got {self.i}")

    def __iter__(self) -> Iterator[tuple[int, int]]:
        index, remaining = self.i, self.n
        while remaining:
            size = min(remaining, self.chunk)
            yield index, size
            index += 1
            remaining -= size

    def part(self, index: int, total: int) -> RangeChunk:
        """Split the chunks into ``total`` parts and return the ``index``-th part."""
        if total <= 0:
            raise ValueError(f"number of parts must be positive, got {total}")
        if index < 0:
            raise ValueError(f"part index must not be negative, got {index}")
        if self.i != 0:
            raise ValueError("only an unstarted range can be split")
        n, chunk = self.n, self.chunk
        nchunks = -(-n // chunk)
        chunks_per = -(-nchunks // total)
        start = chunks_per * index
        length = max(0, min(n, (start + chunks_per) * chunk) - start * chunk)
        return RangeChunk(start, length, chunk)


def range_chunk(n: int, chunk: int) -> RangeChunk:
    """Return a range that splits ``n`` into chunks of size ``chunk``."""
    return RangeChunk(0, n, chunk)


def round_up_to(x: int, multiple_of: int) -> int:
    """Round ``x`` up to the nearest multiple of ``multiple_of``."""
    if multiple_of <= 0:
        raise ValueError(f"multiple must be positive, got {multiple_of}")
    quotient, remainder = divmod(x, multiple_of)
    if remainder:
        quotient += 1
    return quotient * multiple_of