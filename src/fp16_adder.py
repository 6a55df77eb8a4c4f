from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from aligner import StickyAligner
from float16 import EXP_MAX, FRAC_MASK, Float16
from normalizer import Normalizer


class FP16Adder(wiring.Component):
    """FP16 adder with truncation: result = a + b

    Bit-identical to fp16_model.fp16_add. The shifted-out bits of the
    smaller operand only feed the precision_lost flag, there is no rounding.
    """

    a: In(Float16)
    b: In(Float16)
    result: Out(Float16)

    overflow: Out(1)
    zero: Out(1)
    nan: Out(1)
    precision_lost: Out(1)

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        m.submodules.aligner = aligner = StickyAligner(width=11, shift_bits=5)
        m.submodules.normalizer = normalizer = Normalizer(width=11, exp_bits=6)

        # ---- Unpack ----
        a_sign = self.a.sign
        a_exp = self.a.exponent
        a_mant = self.a.mantissa

        b_sign = self.b.sign
        b_exp = self.b.exponent
        b_mant = self.b.mantissa

        # ---- Special case detection ----
        a_is_inf = self.a.is_inf()
        b_is_inf = self.b.is_inf()
        is_nan = self.a.is_nan() | self.b.is_nan() | (a_is_inf & b_is_inf & (a_sign != b_sign))

        # ---- Working operands ----
        # subnormals align as exponent 1 without the hidden bit
        a_exp_w = Signal(5)
        b_exp_w = Signal(5)
        a_sig = Signal(11)
        b_sig = Signal(11)

        m.d.comb += a_exp_w.eq(Mux(a_exp == 0, 1, a_exp))
        m.d.comb += b_exp_w.eq(Mux(b_exp == 0, 1, b_exp))
        m.d.comb += a_sig.eq(Cat(a_mant, a_exp != 0))
        m.d.comb += b_sig.eq(Cat(b_mant, b_exp != 0))

        # ---- Big / small selection ----
        swap = Signal()
        m.d.comb += swap.eq((a_exp_w < b_exp_w) | ((a_exp_w == b_exp_w) & (a_sig < b_sig)))

        big_sign = Signal()
        big_exp = Signal(5)
        big_sig = Signal(11)
        sml_sign = Signal()
        sml_exp = Signal(5)
        sml_sig = Signal(11)

        with m.If(swap):
            m.d.comb += [
                big_sign.eq(b_sign),
                big_exp.eq(b_exp_w),
                big_sig.eq(b_sig),
                sml_sign.eq(a_sign),
                sml_exp.eq(a_exp_w),
                sml_sig.eq(a_sig),
            ]
        with m.Else():
            m.d.comb += [
                big_sign.eq(a_sign),
                big_exp.eq(a_exp_w),
                big_sig.eq(a_sig),
                sml_sign.eq(b_sign),
                sml_exp.eq(b_exp_w),
                sml_sig.eq(b_sig),
            ]

        # ---- Align ----
        exp_diff = Signal(5)
        m.d.comb += exp_diff.eq(big_exp - sml_exp)

        m.d.comb += aligner.value_in.eq(sml_sig)
        m.d.comb += aligner.shift_amount.eq(exp_diff)

        # ---- Add / Subtract ----
        signs_match = Signal()
        m.d.comb += signs_match.eq(big_sign == sml_sign)

        sum_sig = Signal(12)
        with m.If(signs_match):
            m.d.comb += sum_sig.eq(big_sig + aligner.value_out)
        with m.Else():
            # big was chosen by magnitude, never negative
            m.d.comb += sum_sig.eq(big_sig - aligner.value_out)

        # ---- Renormalize ----
        final_exp = Signal(6)
        final_sig = Signal(11)
        bits_lost = Signal()

        with m.If(sum_sig[11]):
            m.d.comb += [
                final_sig.eq(sum_sig[1:12]),
                final_exp.eq(big_exp + 1),
                bits_lost.eq(aligner.sticky | sum_sig[0]),
            ]
        with m.Else():
            m.d.comb += [
                normalizer.value_in.eq(sum_sig[0:11]),
                normalizer.exponent_in.eq(big_exp),
                final_sig.eq(normalizer.value_out),
                final_exp.eq(normalizer.exponent_out),
                bits_lost.eq(aligner.sticky),
            ]

        # ---- Pack Result ----
        with m.If(is_nan):
            m.d.comb += [
                self.result.sign.eq(0),
                self.result.exponent.eq(EXP_MAX),
                self.result.mantissa.eq(FRAC_MASK),
                self.nan.eq(1),
            ]
        with m.Elif(a_is_inf):
            m.d.comb += [
                self.result.eq(self.a),
                self.overflow.eq(1),
            ]
        with m.Elif(b_is_inf):
            m.d.comb += [
                self.result.eq(self.b),
                self.overflow.eq(1),
            ]
        with m.Elif(sum_sig == 0):
            # -0 only when both operands are negative
            m.d.comb += [
                self.result.sign.eq(signs_match & big_sign),
                self.result.exponent.eq(0),
                self.result.mantissa.eq(0),
                self.zero.eq(1),
                self.precision_lost.eq(aligner.sticky),
            ]
        with m.Elif(final_exp >= EXP_MAX):  # saturate to infinity
            m.d.comb += [
                self.result.sign.eq(big_sign),
                self.result.exponent.eq(EXP_MAX),
                self.result.mantissa.eq(0),
                self.overflow.eq(1),
                self.precision_lost.eq(bits_lost),
            ]
        with m.Else():
            m.d.comb += [
                self.result.sign.eq(big_sign),
                self.result.exponent.eq(final_exp[0:5]),
                self.result.mantissa.eq(final_sig[0:10]),
                self.zero.eq((final_exp == 0) & (final_sig[0:10] == 0)),
                self.precision_lost.eq(bits_lost),
            ]

        return m
