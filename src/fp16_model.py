"""Bit-true FP16 adder and multiplier models.

These mirror the truncating hardware pipeline exactly: no rounding, a single
sticky indicator for discarded bits, and a canonical NaN. They are the golden
reference for FP16Adder and FP16Multiplier. Both functions are pure.
"""

from dataclasses import dataclass

from float16 import CANONICAL_NAN, EXP_BIAS, EXP_MAX, FP16, FRAC_MASK, HIDDEN_BIT, POS_INF

# significand width plus two guard positions
ALIGN_FLUSH_SHIFT = 11 + 2

PRODUCT_OVERFLOW_BIT = 1 << 21


@dataclass(frozen=True)
class AddResult:
    result: int
    overflow: bool = False
    zero: bool = False
    nan: bool = False
    precision_lost: bool = False


@dataclass(frozen=True)
class MulResult:
    result: int
    overflow: bool = False
    zero: bool = False
    nan: bool = False
    underflow: bool = False


def _operand(exp: int, frac: int) -> tuple[int, int]:
    """Working exponent and 11-bit significand; subnormals read exponent 1."""
    if exp == 0:
        return 1, frac
    return exp, frac | HIDDEN_BIT


def fp16_add(n1: int, n2: int) -> AddResult:
    # ---- Decode ----
    s1, e1, f1 = FP16.from_bits(n1).unpack()
    s2, e2, f2 = FP16.from_bits(n2).unpack()

    n1_is_inf = e1 == EXP_MAX and f1 == 0
    n2_is_inf = e2 == EXP_MAX and f2 == 0
    n1_is_nan = e1 == EXP_MAX and f1 != 0
    n2_is_nan = e2 == EXP_MAX and f2 != 0

    # ---- Special values ----
    if n1_is_nan or n2_is_nan or (n1_is_inf and n2_is_inf and s1 != s2):
        return AddResult(CANONICAL_NAN, nan=True)

    if n1_is_inf or n2_is_inf:
        return AddResult(n1 if n1_is_inf else n2, overflow=True)

    # ---- Align ----
    exp1, mant1 = _operand(e1, f1)
    exp2, mant2 = _operand(e2, f2)

    if (exp1, mant1) < (exp2, mant2):
        sign_big, exp_big, mant_big = s2, exp2, mant2
        sign_sml, exp_sml, mant_sml = s1, exp1, mant1
    else:
        sign_big, exp_big, mant_big = s1, exp1, mant1
        sign_sml, exp_sml, mant_sml = s2, exp2, mant2

    exp_diff = exp_big - exp_sml

    if exp_diff >= ALIGN_FLUSH_SHIFT:
        mant_sml_shifted = 0
        bits_lost = mant_sml != 0
    else:
        mant_sml_shifted = mant_sml >> exp_diff
        bits_lost = (mant_sml & ((1 << exp_diff) - 1)) != 0

    # ---- Add / subtract ----
    if sign_big == sign_sml:
        final_mant = mant_big + mant_sml_shifted
    else:
        final_mant = mant_big - mant_sml_shifted

    final_exp = exp_big

    if final_mant == 0:
        # cancellation of unequal signs gives +0
        sign = 1 if (sign_big == sign_sml and sign_big == 1) else 0
        return AddResult(sign << 15, zero=True, precision_lost=bits_lost)

    # ---- Renormalize ----
    if final_mant >= 2 * HIDDEN_BIT:
        bits_lost = bits_lost or bool(final_mant & 1)
        final_mant >>= 1
        final_exp += 1
    else:
        while final_mant < HIDDEN_BIT and final_exp > 1:
            final_mant <<= 1
            final_exp -= 1
        if final_mant < HIDDEN_BIT and final_exp == 1:
            final_exp = 0

    # ---- Pack ----
    if final_exp >= EXP_MAX:
        return AddResult((sign_big << 15) | POS_INF, overflow=True, precision_lost=bits_lost)

    res = FP16.pack(sign_big, final_exp, final_mant & FRAC_MASK).to_bits()
    return AddResult(res, zero=(res & 0x7FFF) == 0, precision_lost=bits_lost)


def fp16_mul(n1: int, n2: int) -> MulResult:
    # ---- Decode ----
    s1, e1, f1 = FP16.from_bits(n1).unpack()
    s2, e2, f2 = FP16.from_bits(n2).unpack()

    n1_is_inf = e1 == EXP_MAX and f1 == 0
    n2_is_inf = e2 == EXP_MAX and f2 == 0
    n1_is_nan = e1 == EXP_MAX and f1 != 0
    n2_is_nan = e2 == EXP_MAX and f2 != 0
    n1_is_zero = e1 == 0 and f1 == 0
    n2_is_zero = e2 == 0 and f2 == 0

    s_res = s1 ^ s2

    # ---- Special values ----
    if n1_is_nan or n2_is_nan:
        return MulResult(CANONICAL_NAN, nan=True)

    # inf * 0 must be caught before plain inf / zero
    if (n1_is_inf and n2_is_zero) or (n2_is_inf and n1_is_zero):
        return MulResult(CANONICAL_NAN, nan=True)

    if n1_is_inf or n2_is_inf:
        return MulResult((s_res << 15) | POS_INF, overflow=True)

    if n1_is_zero or n2_is_zero:
        return MulResult(s_res << 15, zero=True)

    # ---- Exponent and significand ----
    exp1, mant1 = _operand(e1, f1)
    exp2, mant2 = _operand(e2, f2)

    exp_res = exp1 + exp2 - EXP_BIAS
    mant_mult = mant1 * mant2

    # ---- Normalize ----
    # 1.x * 1.y lies in [1, 4): bit 21 set means the product is >= 2.0
    if mant_mult & PRODUCT_OVERFLOW_BIT:
        mant_mult >>= 1
        exp_res += 1

    # ---- Range clamp and pack ----
    if exp_res >= EXP_MAX:
        return MulResult((s_res << 15) | POS_INF, overflow=True)

    if exp_res <= 0:
        if exp_res < -10:
            return MulResult(s_res << 15, zero=True, underflow=True)

        mant_mult >>= 1 - exp_res
        zero = mant_mult == 0
        res = FP16.pack(s_res, 0, (mant_mult >> 10) & FRAC_MASK).to_bits()
        return MulResult(res, zero=zero or (res & 0x7FFF) == 0)

    # bit 20 is the hidden bit, bits 19..10 are the stored fraction
    res = FP16.pack(s_res, exp_res, (mant_mult >> 10) & FRAC_MASK).to_bits()
    return MulResult(res, zero=(res & 0x7FFF) == 0)
