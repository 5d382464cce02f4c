# stridegemm

Building blocks for general matrix multiplication

    C ← α A B + β C

over matrices kept in flat Python sequences with arbitrary row and column
strides. The matrix element (i, j) of a buffer `x` with offset `off`, row
stride `rs` and column stride `cs` is `x[off + i * rs + j * cs]`. A
contiguous row-major m × k matrix has strides `(k, 1)`; a column-major one
has strides `(1, m)`.

The package follows the packed-panel, micro-kernel scheme of
high-performance BLAS libraries: work is split into cache-sized blocks,
panels of A and B are packed into contiguous buffers, and a small fixed-size
kernel computes one block of C at a time. It is written in pure Python and
needs nothing beyond the standard library.

## Installation

    pip install stridegemm

## Modules

### `stridegemm.util`

- `range_chunk(n, chunk)` returns a `RangeChunk` that yields `(index, size)`
  pairs splitting `n` items into chunks of `chunk`; the last chunk may be
  shorter.
- `RangeChunk.part(index, total)` splits the chunks into `total` parts and
  returns the `index`-th one, for sharing a loop between workers.
- `round_up_to(x, multiple_of)` rounds `x` up to a multiple.

Invalid sizes (a non-positive chunk or multiple, a negative length) raise
`ValueError`.

### `stridegemm.packing`

`pack(mr, kc, mc, buf, a, offset, rsa, csa)` copies an `mc` × `kc` strided
matrix into `buf` as micropanels of `mr` rows: each column's `mr` entries
are stored together, columns in order, and a final partial panel is padded
with zeros. It returns the number of elements written
(`kc * round_up_to(mc, mr)`) and raises `ValueError` if `buf` is too small,
`IndexError` if the strides reach outside `a`.

### `stridegemm.kernel`

- `Precision.SINGLE` and `Precision.DOUBLE`; `Precision.round(value)` rounds
  to that precision and `itemsize` gives the element size in bytes.
- `GemmKernel(mr, nr, precision=..., align_to=0, always_masked=False,
  nc=1024, kc=256, mc=64)` is a general `mr` × `nr` microkernel.
  `pack_mr` packs a block of A, `pack_nr` packs a block of B (given B's own
  strides), and `kernel(k, alpha, a, a_offset, b, b_offset, beta, c,
  c_offset, rsc, csc)` computes one block of C ← α A B + β C from the packed
  panels. When `beta` is zero, C is not read, so it may hold NaN.
  `check_params()` raises `ValueError` unless the kernel size, alignment and
  block sizes are supported (`mr`, `nr` in 1..8, `mr <= mc <= kc <= nc <=
  65536`, and so on).
- `FallbackKernel(precision=Precision.SINGLE, align_to=0, ...)` is the
  portable 8 × 4 kernel. It only computes C ← α A B, and raises
  `ValueError` if `beta` is not zero.

### `stridegemm.sgemm_kernel`

- `Kernel8x8(precision=Precision.SINGLE, fused=False)` is an 8 × 8 kernel;
  with `fused=True` every multiply-add is rounded once, otherwise product
  and sum are rounded separately. `k` must be positive.
- `detect(precision, features)` picks a kernel from a set of CPU feature
  names (case-insensitive): `fma` gives the fused 8 × 8 kernel, `avx` the
  plain one, `sse2` the 8 × 4 kernel aligned to 16, `neon` the fused 8 × 8
  kernel. Double precision, or no known feature, gives `FallbackKernel`.

## Example

Multiply two 2 × 2 row-major matrices with one kernel call:

```python
from stridegemm.kernel import GemmKernel

kern = GemmKernel(mr=2, nr=2)
a = [1.0, 2.0, 3.0, 4.0]   # A, row major
b = [5.0, 6.0, 7.0, 8.0]   # B, row major

apack = [0.0] * 4
bpack = [0.0] * 4
kern.pack_mr(2, 2, apack, a, 0, 2, 1)   # apack == [1.0, 3.0, 2.0, 4.0]
kern.pack_nr(2, 2, bpack, b, 0, 2, 1)   # bpack == [5.0, 6.0, 7.0, 8.0]

c = [0.0] * 4
kern.kernel(2, 1.0, apack, 0, bpack, 0, 0.0, c, 0, 2, 1)
print(c)                                # [19.0, 22.0, 43.0, 50.0]
```

Choosing a kernel:

```python
from stridegemm.kernel import Precision
from stridegemm.sgemm_kernel import detect

kern = detect(Precision.SINGLE, {"avx", "fma"})   # fused Kernel8x8
```

## What the package does not do

There is no single call that multiplies whole matrices of any size: the
package has no `sgemm`/`dgemm` function and no driver that walks the blocks,
packs each panel and handles edge blocks through a masked output. Callers
combine `range_chunk`, the packing methods and `kernel` themselves. Nor does
it run work on several threads; `RangeChunk.part` only divides a range so
that a caller can.