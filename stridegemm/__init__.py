"""Chunked ranges, panel packing and microkernels for strided matrix multiplication."""

__version__ = "0.3.9"

__all__ = ["kernel", "packing", "sgemm_kernel", "util"]