"""Microkernel definitions: element precision, kernel parameters and the portable kernel."""

from __future__ import annotations

import enum
import math
import struct
from dataclasses import dataclass, field
from typing import MutableSequence, Sequence

from .packing import pack

DEFAULT_NC = 1024
"""Default number of columns of B handled per outer block."""

DEFAULT_KC = 256
"""Default depth of the packed panels."""

DEFAULT_MC = 64
"""Default number of rows of A handled per block."""

MAX_NC = 65536

KERNEL_MAX_ROWS = 8
KERNEL_MAX_COLS = 8
KERNEL_MAX_BYTES = 8 * 8 * 4
KERNEL_MAX_ALIGN = 32

_SINGLE = struct.Struct("f")


class Precision(enum.Enum):
    """Floating point element type of a multiplication."""

    SINGLE = "f32"
    DOUBLE = "f64"

    @property
    def itemsize(self) -> int:
        """Size of one element in bytes."""
        return 4 if self is Precision.SINGLE else 8

    def round(self, value: float) -> float:
        """Round ``value`` to the nearest number of this precision."""
        value = float(value)
        if self is Precision.DOUBLE:
            return value
        try:
            return _SINGLE.unpack(_SINGLE.pack(value))[0]
        except OverflowError:
            return math.copysign(math.inf, value)


def _panel(data: Sequence[float], start: int, length: int) -> Sequence[float]:
    if start < 0 or start + length > len(data):
        raise IndexError(f"packed panel at {start} of length {length} lies outside the data")
    return data[start:start + length]


def _c_index(c: Sequence[float], index: int) -> int:
    if index < 0 or index >= len(c):
        raise IndexError(f"output index {index} lies outside the matrix data")
    return index


@dataclass(frozen=True)
class GemmKernel:
    """A microkernel computing an ``mr`` by ``nr`` block of C ← α A B + β C.

    A is read from packed micropanels of ``mr`` entries per step and B from
    packed micropanels of ``nr`` entries per step. ``nc``, ``kc`` and ``mc`` are
    the block sizes the blocked loops use with this kernel.
    """

    mr: int
    nr: int
    precision: Precision = Precision.DOUBLE
    align_to: int = 0
    always_masked: bool = False
    nc: int = DEFAULT_NC
    kc: int = DEFAULT_KC
    mc: int = DEFAULT_MC

    def pack_mr(
        self,
        kc: int,
        mc: int,
        buf: MutableSequence[float],
        a: Sequence[float],
        offset: int,
        rsa: int,
        csa: int,
    ) -> int:
        """Pack an ``mc`` by ``kc`` block of A into ``mr``-row micropanels."""
        return pack(self.mr, kc, mc, buf, a, offset, rsa, csa)

    def pack_nr(
        self,
        kc: int,
        nc: int,
        buf: MutableSequence[float],
        b: Sequence[float],
        offset: int,
        rsb: int,
        csb: int,
    ) -> int:
        """Pack a ``kc`` by ``nc`` block of B into ``nr``-column micropanels.

        ``rsb`` and ``csb`` are the row and column strides of B itself.
        """
        return pack(self.nr, kc, nc, buf, b, offset, csb, rsb)

    def _products(
        self,
        k: int,
        a: Sequence[float],
        a_offset: int,
        b: Sequence[float],
        b_offset: int,
    ) -> list[list[float]]:
        if k < 0:
            raise ValueError(f"kernel depth must not be negative, got {k}")
        rnd = self.precision.round
        mr, nr = self.mr, self.nr
        ab = [[0.0] * nr for _ in range(mr)]
        for step in range(k):
            a_col = _panel(a, a_offset + step * mr, mr)
            b_row = _panel(b, b_offset + step * nr, nr)
            for row, ai in zip(ab, a_col):
                for j, bj in enumerate(b_row):
                    row[j] = rnd(row[j] + rnd(ai * bj))
        return ab

    def kernel(
        self,
        k: int,
        alpha: float,
        a: Sequence[float],
        a_offset: int,
        b: Sequence[float],
        b_offset: int,
        beta: float,
        c: MutableSequence[float],
        c_offset: int,
        rsc: int,
        csc: int,
    ) -> None:
        """Compute C ← α A B + β C for one ``mr`` by ``nr`` block.

        A and B are packed; C element ``(i, j)`` is ``c[c_offset + i*rsc + j*csc]``.
        When ``beta`` is zero, C is not read.
        """
        rnd = self.precision.round
        ab = self._products(k, a, a_offset, b, b_offset)
        for i, row in enumerate(ab):
            for j, value in enumerate(row):
                index = _c_index(c, c_offset + rsc * i + csc * j)
                scaled = rnd(alpha * value)
                if beta != 0:
                    scaled = rnd(scaled + rnd(beta * c[index]))
                c[index] = scaled

    def check_params(self) -> None:
        """Raise ``ValueError`` unless the kernel's sizes are supported."""
        mr, nr = self.mr, self.nr
        if not 0 < mr <= KERNEL_MAX_ROWS:
            raise ValueError(f"kernel rows must be in 1..{KERNEL_MAX_ROWS}, got {mr}")
        if not 0 < nr <= KERNEL_MAX_COLS:
            raise ValueError(f"kernel columns must be in 1..{KERNEL_MAX_COLS}, got {nr}")
        if mr * nr * self.precision.itemsize > KERNEL_MAX_BYTES:
            raise ValueError("kernel block is larger than the masked output buffer")
        if self.align_to > KERNEL_MAX_ALIGN:
            raise ValueError(f"alignment must be at most {KERNEL_MAX_ALIGN}, got {self.align_to}")
        if self.align_to > self.precision.itemsize * min(mr, nr):
            raise ValueError("alignment is larger than one kernel row or column")
        if not mr <= self.mc <= self.kc <= self.nc <= MAX_NC:
            raise ValueError(
                f"block sizes must satisfy mr <= mc <= kc <= nc <= {MAX_NC}, "
                f"got mr={mr} mc={self.mc} kc={self.kc} nc={self.nc}"
            )


@dataclass(frozen=True)
class FallbackKernel(GemmKernel):
    """The portable 8 by 4 kernel; it is always used through a masked output."""

    mr: int = field(default=8, init=False)
    nr: int = field(default=4, init=False)
    precision: Precision = Precision.SINGLE
    always_masked: bool = field(default=True, init=False)

    def kernel(
        self,
        k: int,
        alpha: float,
        a: Sequence[float],
        a_offset: int,
        b: Sequence[float],
        b_offset: int,
        beta: float,
        c: MutableSequence[float],
        c_offset: int,
        rsc: int,
        csc: int,
    ) -> None:
        """Compute C ← α A B for one block; ``beta`` must be zero."""
        if beta != 0:
            raise ValueError("beta must be 0 for the always-masked fallback kernel")
        rnd = self.precision.round
        ab = self._products(k, a, a_offset, b, b_offset)
        for j in range(self.nr):
            for i in range(self.mr):
                index = _c_index(c, c_offset + rsc * i + csc * j)
                c[index] = rnd(alpha * ab[i][j])