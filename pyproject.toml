[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stridegemm"
version = "0.3.9"
description = "Building blocks for blocked matrix multiplication over flat buffers with arbitrary row and column strides: chunked ranges, panel packing and microkernels."
requires-python = ">=3.10"
dependencies = []
keywords = ["matrix", "gemm", "sgemm", "dgemm", "microkernel", "packing", "strides"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["stridegemm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
