from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float16 import EXP_BIAS, EXP_MAX, FRAC_MASK, Float16
from mantissa_multiplier import MantissaMultiplier


class FP16Multiplier(wiring.Component):
    """FP16 multiplier with truncation: result = a * b

    Bit-identical to fp16_model.fp16_mul. Subnormal operands enter the
    significand array without prenormalization, and results below the
    normal range are shifted into a subnormal or flushed with underflow.
    """

    a: In(Float16)
    b: In(Float16)
    result: Out(Float16)

    overflow: Out(1)
    zero: Out(1)
    nan: Out(1)
    underflow: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.mant_mult = mant_mult = MantissaMultiplier()

        # ---- Unpack ----
        a_exp = self.a.exponent
        a_mant = self.a.mantissa

        b_exp = self.b.exponent
        b_mant = self.b.mantissa

        # ---- Special case detection ----
        a_is_zero = self.a.is_zero()
        b_is_zero = self.b.is_zero()
        a_is_inf = self.a.is_inf()
        b_is_inf = self.b.is_inf()

        is_nan = self.a.is_nan() | self.b.is_nan() | (a_is_inf & b_is_zero) | (b_is_inf & a_is_zero)

        # ---- Result Sign ----
        result_sign = Signal()
        m.d.comb += result_sign.eq(self.a.sign ^ self.b.sign)

        # ---- Exponent Addition ----
        a_exp_w = Signal(5)
        b_exp_w = Signal(5)
        m.d.comb += a_exp_w.eq(Mux(a_exp == 0, 1, a_exp))
        m.d.comb += b_exp_w.eq(Mux(b_exp == 0, 1, b_exp))

        exp_sum = Signal(signed(8))
        m.d.comb += exp_sum.eq(a_exp_w + b_exp_w - EXP_BIAS)

        # ---- Mantissa Multiply ----
        m.d.comb += [
            mant_mult.a_mant.eq(a_mant),
            mant_mult.a_subnormal.eq(a_exp == 0),
            mant_mult.b_mant.eq(b_mant),
            mant_mult.b_subnormal.eq(b_exp == 0),
        ]
        product = mant_mult.product

        # ---- Normalization ----
        # NOTE: If bit 21 is set, the product is >= 2.0 and we shift right
        normalized_mant = Signal(21)
        normalized_exp = Signal(signed(8))

        with m.If(product[21]):
            m.d.comb += [
                normalized_mant.eq(product[1:22]),
                normalized_exp.eq(exp_sum + 1),
            ]
        with m.Else():
            m.d.comb += [
                normalized_mant.eq(product[0:21]),
                normalized_exp.eq(exp_sum),
            ]

        # ---- Denormalization ----
        denorm_shift = Signal(4)
        denorm_mant = Signal(21)
        m.d.comb += denorm_shift.eq(1 - normalized_exp)
        m.d.comb += denorm_mant.eq(normalized_mant >> denorm_shift)

        # ---- Pack Result ----
        with m.If(is_nan):
            m.d.comb += [
                self.result.sign.eq(0),
                self.result.exponent.eq(EXP_MAX),
                self.result.mantissa.eq(FRAC_MASK),
                self.nan.eq(1),
            ]
        with m.Elif(a_is_inf | b_is_inf):
            m.d.comb += [
                self.result.sign.eq(result_sign),
                self.result.exponent.eq(EXP_MAX),
                self.result.mantissa.eq(0),
                self.overflow.eq(1),
            ]
        with m.Elif(a_is_zero | b_is_zero):
            m.d.comb += [
                self.result.sign.eq(result_sign),
                self.result.exponent.eq(0),
                self.result.mantissa.eq(0),
                self.zero.eq(1),
            ]
        with m.Elif(normalized_exp >= EXP_MAX):  # overflow
            m.d.comb += [
                self.result.sign.eq(result_sign),
                self.result.exponent.eq(EXP_MAX),
                self.result.mantissa.eq(0),
                self.overflow.eq(1),
            ]
        with m.Elif(normalized_exp < -10):  # too small even for a subnormal
            m.d.comb += [
                self.result.sign.eq(result_sign),
                self.result.exponent.eq(0),
                self.result.mantissa.eq(0),
                self.zero.eq(1),
                self.underflow.eq(1),
            ]
        with m.Elif(normalized_exp <= 0):  # subnormal
            m.d.comb += [
                self.result.sign.eq(result_sign),
                self.result.exponent.eq(0),
                self.result.mantissa.eq(denorm_mant[10:20]),
                self.zero.eq(denorm_mant[10:20] == 0),
            ]
        with m.Else():
            m.d.comb += [
                self.result.sign.eq(result_sign),
                self.result.exponent.eq(normalized_exp[0:5]),
                self.result.mantissa.eq(normalized_mant[10:20]),
            ]

        return m
