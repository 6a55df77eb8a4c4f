import itertools
import random

import fp16_multiplier
from float16 import FP16
from fp16_model import fp16_mul

EDGE_OPERANDS = [
    0x0000, 0x8000,
    0x0001, 0x03FF, 0x83FF,
    0x0400, 0x8400, 0x1000, 0x1400,
    0x3800, 0x3C00, 0xBC00, 0x4000, 0x4200, 0xC200,
    0x7BFF, 0xFBFF,
    0x7C00, 0xFC00,
    0x7E00, 0xFFFF,
]


def set_operands(ctx, dut, a_bits, b_bits):
    a_sign, a_exp, a_mant = FP16.from_bits(a_bits).unpack()
    b_sign, b_exp, b_mant = FP16.from_bits(b_bits).unpack()

    ctx.set(dut.a, {"sign": a_sign, "exponent": a_exp, "mantissa": a_mant})
    ctx.set(dut.b, {"sign": b_sign, "exponent": b_exp, "mantissa": b_mant})


def get_result(ctx, dut):
    result_bits = FP16.pack(
        ctx.get(dut.result.sign), ctx.get(dut.result.exponent), ctx.get(dut.result.mantissa)
    ).to_bits()
    return (
        result_bits,
        bool(ctx.get(dut.overflow)),
        bool(ctx.get(dut.zero)),
        bool(ctx.get(dut.nan)),
        bool(ctx.get(dut.underflow)),
    )


def expected_result(a_bits, b_bits):
    ref = fp16_mul(a_bits, b_bits)
    return (ref.result, ref.overflow, ref.zero, ref.nan, ref.underflow)


def test_fp16_multiplier(run_sim):
    dut = fp16_multiplier.FP16Multiplier()

    test_cases = [
        # Basic operations
        (1.0, 1.0, 1.0, "one * one"),
        (2.0, 3.0, 6.0, "basic multiply"),
        (0.5, 0.5, 0.25, "fraction multiply"),
        (1.5, 2.0, 3.0, "mixed multiply"),
        (4.0, 0.25, 1.0, "inverse multiply"),
        (10.0, 10.0, 100.0, "larger values"),
        # Sign handling
        (-1.0, 2.0, -2.0, "negative * positive"),
        (-2.0, -3.0, 6.0, "negative * negative"),
        (1.0, -1.0, -1.0, "positive * negative"),
        # Edge cases
        (0.125, 8.0, 1.0, "small * large"),
        (16.0, 16.0, 256.0, "power of two"),
        (256.0, 255.875, 65504.0, "largest finite"),
        # Zero cases
        (0.0, 0.0, 0.0, "+zero * +zero"),
        (-0.0, 0.0, -0.0, "-zero * +zero"),
        (0.0, 5.0, 0.0, "zero * value"),
        (0.0, -5.5, -0.0, "zero * negative"),
    ]

    async def bench(ctx):
        for a_val, b_val, expected, desc in test_cases:
            set_operands(ctx, dut, FP16.from_float(a_val).to_bits(), FP16.from_float(b_val).to_bits())

            result_bits, _, _, _, _ = get_result(ctx, dut)
            expected_bits = FP16.from_float(expected).to_bits()
            assert result_bits == expected_bits, (
                f"{desc}: Expected {expected} (0x{expected_bits:04X}), got 0x{result_bits:04X}"
            )

    run_sim(dut, bench)


def test_multiplier_special_values(run_sim):
    dut = fp16_multiplier.FP16Multiplier()

    test_cases = [
        # (a, b, (result, overflow, zero, nan, underflow))
        (0x0000, 0x3C00, (0x0000, False, True, False, False)),
        (0x8000, 0x4000, (0x8000, False, True, False, False)),
        (0x7C00, 0x3C00, (0x7C00, True, False, False, False)),
        (0x7C00, 0x8000, (0x7FFF, False, False, True, False)),
        (0x8000, 0x7C00, (0x7FFF, False, False, True, False)),
        (0x7FFF, 0x3C00, (0x7FFF, False, False, True, False)),
        (0x7BFF, 0x4000, (0x7C00, True, False, False, False)),
        (0x0400, 0x0400, (0x0000, False, True, False, True)),
        (0x0400, 0x3800, (0x0200, False, False, False, False)),
        (0x0400, 0x1000, (0x0000, False, True, False, False)),
    ]

    async def bench(ctx):
        for a_bits, b_bits, expected in test_cases:
            set_operands(ctx, dut, a_bits, b_bits)
            result = get_result(ctx, dut)
            assert result == expected, f"mul(0x{a_bits:04X}, 0x{b_bits:04X}): got {result}, expected {expected}"

    run_sim(dut, bench)


def test_multiplier_matches_model_edge_cases(run_sim):
    dut = fp16_multiplier.FP16Multiplier()

    async def bench(ctx):
        for a_bits, b_bits in itertools.product(EDGE_OPERANDS, repeat=2):
            set_operands(ctx, dut, a_bits, b_bits)
            result = get_result(ctx, dut)
            expected = expected_result(a_bits, b_bits)
            assert result == expected, f"mul(0x{a_bits:04X}, 0x{b_bits:04X}): hw {result}, model {expected}"

    run_sim(dut, bench)


def test_multiplier_matches_model_random(run_sim):
    dut = fp16_multiplier.FP16Multiplier()

    rng = random.Random(456)
    vectors = [(rng.randint(0, 0xFFFF), rng.randint(0, 0xFFFF)) for _ in range(300)]

    # exponent sums around the subnormal boundary
    for _ in range(300):
        a_exp = rng.randint(0, 15)
        b_exp = rng.randint(0, 15 - a_exp // 2)
        a_bits = FP16.pack(rng.randint(0, 1), a_exp, rng.randint(0, 0x3FF)).to_bits()
        b_bits = FP16.pack(rng.randint(0, 1), b_exp, rng.randint(0, 0x3FF)).to_bits()
        vectors.append((a_bits, b_bits))

    async def bench(ctx):
        for a_bits, b_bits in vectors:
            set_operands(ctx, dut, a_bits, b_bits)
            result = get_result(ctx, dut)
            expected = expected_result(a_bits, b_bits)
            assert result == expected, f"mul(0x{a_bits:04X}, 0x{b_bits:04X}): hw {result}, model {expected}"

    run_sim(dut, bench)
