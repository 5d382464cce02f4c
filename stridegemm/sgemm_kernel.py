"""The 8 by 8 single precision microkernel and selection of a kernel by CPU features."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Iterable, MutableSequence, Sequence

from .kernel import FallbackKernel, GemmKernel, Precision


def _fused_multiply_add(x: float, y: float, z: float, precision: Precision) -> float:
    """Return ``x * y + z`` rounded once to ``precision``."""
    if precision is Precision.SINGLE:
        # The product of two single precision numbers is exact as a double.
        return precision.round(x * y + z)
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        return x * y + z
    exact = Fraction(x) * Fraction(y) + Fraction(z)
    try:
        return float(exact)
    except OverflowError:
        return math.copysign(math.inf, exact)


def _output_index(c: Sequence[float], index: int) -> int:
    if index < 0 or index >= len(c):
        raise IndexError(f"output index {index} lies outside the matrix data")
    return index


@dataclass(frozen=True)
class Kernel8x8(GemmKernel):
    """The vectorised 8 by 8 kernel, with or without fused multiply-add.

    With ``fused`` set, every multiply-add in the accumulation and the final
    C ← α AB + βC step is rounded once; otherwise product and sum are rounded
    separately.
    """

    mr: int = field(default=8, init=False)
    nr: int = field(default=8, init=False)
    precision: Precision = Precision.SINGLE
    align_to: int = field(default=32, init=False)
    always_masked: bool = field(default=False, init=False)
    fused: bool = False

    def _accumulate(
        self,
        k: int,
        a: Sequence[float],
        a_offset: int,
        b: Sequence[float],
        b_offset: int,
    ) -> list[list[float]]:
        if not self.fused:
            return self._products(k, a, a_offset, b, b_offset)
        mr, nr = self.mr, self.nr
        ab = [[0.0] * nr for _ in range(mr)]
        for step in range(k):
            a_start = a_offset + step * mr
            b_start = b_offset + step * nr
            if a_start < 0 or a_start + mr > len(a):
                raise IndexError(f"packed panel at {a_start} of length {mr} lies outside the data")
            if b_start < 0 or b_start + nr > len(b):
                raise IndexError(f"packed panel at {b_start} of length {nr} lies outside the data")
            b_row = b[b_start:b_start + nr]
            for row, ai in zip(ab, a[a_start:a_start + mr]):
                for j, bj in enumerate(b_row):
                    row[j] = _fused_multiply_add(ai, bj, row[j], self.precision)
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
        """Compute C ← α A B + β C for one 8 by 8 block; ``k`` must be positive.

        When ``beta`` is zero, C is not read.
        """
        if k <= 0:
            raise ValueError(f"kernel depth must be positive, got {k}")
        rnd = self.precision.round
        ab = self._accumulate(k, a, a_offset, b, b_offset)
        for i, row in enumerate(ab):
            for j, value in enumerate(row):
                index = _output_index(c, c_offset + rsc * i + csc * j)
                scaled_c = rnd(beta * c[index]) if beta != 0 else 0.0
                if self.fused:
                    c[index] = _fused_multiply_add(alpha, value, scaled_c, self.precision)
                else:
                    c[index] = rnd(scaled_c + rnd(alpha * value))


def detect(
    precision: Precision = Precision.SINGLE,
    features: Iterable[str] | None = None,
) -> GemmKernel:
    """Choose the kernel for ``precision`` given the available CPU ``features``.

    Feature names are compared case-insensitively: ``fma`` (with or without
    ``avx2``) selects the fused 8 by 8 kernel, ``avx`` the plain 8 by 8 kernel,
    ``sse2`` the 8 by 4 kernel with 16-byte alignment and ``neon`` the fused
    8 by 8 kernel. Otherwise, and for double precision, the portable fallback
    kernel is used.
    """
    present = {name.lower() for name in features or ()}
    if precision is not Precision.SINGLE:
        return FallbackKernel(precision=precision)
    if "fma" in present:
        return Kernel8x8(precision=precision, fused=True)
    if "avx" in present:
        return Kernel8x8(precision=precision, fused=False)
    if "sse2" in present:
        return FallbackKernel(precision=precision, align_to=16)
    if "neon" in present:
        return Kernel8x8(precision=precision, fused=True)
    return FallbackKernel(precision=precision)