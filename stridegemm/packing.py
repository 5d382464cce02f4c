"""Packing of strided matrix panels into contiguous buffers for the microkernel."""

from __future__ import annotations

from typing import MutableSequence, Sequence

from .util import round_up_to


def _at(a: Sequence[float], index: int) -> float:
    if index < 0:
        raise IndexError(f"matrix index {index} is before the start of the data")
    return a[index]


def _store(buf: MutableSequence[float], start: int, values: Sequence[float]) -> None:
    for position, value in enumerate(values, start):
        buf[position] = value


def pack(
    mr: int,
    kc: int,
    mc: int,
    buf: MutableSequence[float],
    a: Sequence[float],
    offset: int,
    rsa: int,
    csa: int,
) -> int:
    """Pack an ``mc`` by ``kc`` strided matrix into ``buf`` as ``mr``-row micropanels.

    The matrix element ``(i, j)`` is ``a[offset + i * rsa + j * csa]``. Within a
    micropanel the ``mr`` entries of each column are stored together, columns in
    order. A final partial panel is padded with zeros. Returns the number of
    elements written.
    """
    if mr <= 0:
        raise ValueError(f"panel height must be positive, got {mr}")
    if kc < 0 or mc < 0:
        raise ValueError("matrix dimensions must not be negative")
    needed = kc * round_up_to(mc, mr)
    if len(buf) < needed:
        raise ValueError(f"packing buffer holds {len(buf)} elements, {needed} needed")

    full, rest = divmod(mc, mr)
    p = 0
    for panel in range(full):
        row_start = offset + rsa * panel * mr
        for j in range(kc):
            start = row_start + csa * j
            if rsa == 1:
                if start < 0 or start + mr > len(a):
                    raise IndexError(f"matrix panel at {start} lies outside the data")
                values = a[start:start + mr]
            else:
                values = [_at(a, start + rsa * i) for i in range(mr)]
            _store(buf, p, values)
            p += mr

    if rest:
        row_start = offset + rsa * full * mr
        padding = [0.0] * (mr - rest)
        for j in range(kc):
            start = row_start + csa * j
            values = [_at(a, start + rsa * i) for i in range(rest)]
            _store(buf, p, values + padding)
            p += mr

    return needed