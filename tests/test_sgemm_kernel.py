import math

import pytest

from stridegemm.kernel import FallbackKernel, Precision
from stridegemm.sgemm_kernel import Kernel8x8, detect

DEPTH = 16

FEATURE_SETS = [["avx"], ["fma"], [], ["sse2"]]


@pytest.mark.parametrize("features", FEATURE_SETS)
def test_a_times_identity_is_a(features):
    kern = detect(Precision.SINGLE, features)
    mr, nr = kern.mr, kern.nr
    a = [float(x + 1) for x in range(mr * DEPTH)]
    b = [0.0] * (nr * DEPTH)
    for i in range(min(DEPTH, nr)):
        b[i + i * nr] = 1.0
    c = [0.0] * (mr * nr)
    kern.kernel(DEPTH, 1.0, a, 0, b, 0, 0.0, c, 0, 1, mr)
    common = min(len(a), len(c))
    assert c[:common] == a[:common]


@pytest.mark.parametrize("features", FEATURE_SETS)
def test_identity_times_b_is_b(features):
    kern = detect(Precision.SINGLE, features)
    mr, nr = kern.mr, kern.nr
    a = [0.0] * (mr * DEPTH)
    for i in range(min(DEPTH, mr)):
        a[i + i * mr] = 1.0
    b = [float(x + 1) for x in range(nr * DEPTH)]
    c = [0.0] * (mr * nr)
    kern.kernel(DEPTH, 1.0, a, 0, b, 0, 0.0, c, 0, nr, 1)
    common = min(len(b), len(c))
    assert c[:common] == b[:common]


@pytest.mark.parametrize("fused", [False, True])
def test_alpha_and_beta_are_applied(fused):
    kern = Kernel8x8(fused=fused)
    a = [float(i + 1) for i in range(8)]
    b = [float(j + 1) for j in range(8)]
    c = [1.0] * 64
    kern.kernel(1, 2.0, a, 0, b, 0, 3.0, c, 0, 8, 1)
    assert c[0] == 5.0
    assert c[1] == 7.0
    assert c[8] == 7.0
    assert c[63] == 131.0


def test_beta_zero_overwrites_nan():
    kern = Kernel8x8()
    a = [1.0] * 8
    b = [2.0] * 8
    c = [math.nan] * 64
    kern.kernel(1, 1.0, a, 0, b, 0, 0.0, c, 0, 8, 1)
    assert c == [2.0] * 64


def test_offsets_and_strides_are_respected():
    kern = Kernel8x8()
    a = [9.0, 9.0] + [1.0] * 8
    b = [9.0] + [1.0] * 8
    c = [-1.0] * 200
    kern.kernel(1, 1.0, a, 2, b, 1, 0.0, c, 5, 2, 16)
    written = {5 + 2 * i + 16 * j for i in range(8) for j in range(8)}
    assert all(c[idx] == 1.0 for idx in written)
    assert all(c[idx] == -1.0 for idx in range(200) if idx not in written)


def test_fused_multiply_add_rounds_once():
    x = 1.0 + 2.0 ** -13
    y = 1.0 - 2.0 ** -13
    a = [0.0] * 16
    b = [0.0] * 16
    a[0], a[8] = 1.0, x
    b[0], b[8] = -1.0, y
    fused_c = [0.0] * 64
    plain_c = [0.0] * 64
    Kernel8x8(fused=True).kernel(2, 1.0, a, 0, b, 0, 0.0, fused_c, 0, 8, 1)
    Kernel8x8(fused=False).kernel(2, 1.0, a, 0, b, 0, 0.0, plain_c, 0, 8, 1)
    assert fused_c[0] == -(2.0 ** -26)
    assert plain_c[0] == 0.0


def test_zero_depth_is_rejected():
    c = [0.0] * 64
    with pytest.raises(ValueError):
        Kernel8x8().kernel(0, 1.0, [], 0, [], 0, 0.0, c, 0, 8, 1)


def test_output_outside_data_is_rejected():
    with pytest.raises(IndexError):
        Kernel8x8().kernel(1, 1.0, [1.0] * 8, 0, [1.0] * 8, 0, 0.0, [0.0] * 10, 0, 8, 1)


def test_kernel_8x8_parameters():
    kern = Kernel8x8()
    assert (kern.mr, kern.nr, kern.align_to, kern.always_masked) == (8, 8, 32, False)


def test_double_precision_8x8_exceeds_mask_buffer():
    with pytest.raises(ValueError):
        Kernel8x8(precision=Precision.DOUBLE).check_params()


@pytest.mark.parametrize(
    "features, expected",
    [
        (["fma", "avx2"], Kernel8x8(fused=True)),
        (["fma"], Kernel8x8(fused=True)),
        (["FMA", "AVX"], Kernel8x8(fused=True)),
        (["avx", "sse2"], Kernel8x8(fused=False)),
        (["sse2"], FallbackKernel(align_to=16)),
        (["neon"], Kernel8x8(fused=True)),
        ([], FallbackKernel()),
        (None, FallbackKernel()),
    ],
)
def test_detect_single_precision(features, expected):
    assert detect(Precision.SINGLE, features) == expected


def test_detect_double_uses_fallback():
    kern = detect(Precision.DOUBLE, ["fma", "avx2"])
    assert kern == FallbackKernel(precision=Precision.DOUBLE)
    assert (kern.mr, kern.nr, kern.always_masked) == (8, 4, True)


def test_detected_kernels_have_supported_parameters():
    for features in (["fma"], ["avx"], ["sse2"], ["neon"], []):
        kern = detect(Precision.SINGLE, features)
        kern.check_params()
        assert kern.mr * kern.nr * kern.precision.itemsize <= 256
        assert kern.align_to <= kern.precision.itemsize * min(kern.mr, kern.nr)