from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Normalizer(wiring.Component):
    """Clamped left normalizer for the adder's cancellation path

    Shifts the leading one up to the top bit, decrementing the exponent, but
    never takes the exponent below 1. A value still below the top bit at
    exponent 1 is subnormal and reports exponent 0.

    - For FP16: 11-bit significand, 6-bit working exponent
    """

    def __init__(self, width: int = 11, exp_bits: int = 6):
        self.width = width
        self.count_bits = width.bit_length()

        super().__init__(
            {
                "value_in": In(width),
                "exponent_in": In(exp_bits),
                "value_out": Out(width),
                "exponent_out": Out(exp_bits),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        # ---- Leading Zero Count ----
        lz_count = Signal(self.count_bits)

        lz_count_result = self.width
        for i in range(self.width):
            lz_count_result = Mux(self.value_in[i], self.width - 1 - i, lz_count_result)

        m.d.comb += lz_count.eq(lz_count_result)

        # ---- Clamp ----
        limit = Signal.like(self.exponent_in)
        m.d.comb += limit.eq(self.exponent_in - 1)

        shift = Signal(self.count_bits)
        with m.If(lz_count < limit):
            m.d.comb += shift.eq(lz_count)
        with m.Else():
            m.d.comb += shift.eq(limit)

        # ---- Left Shift ----
        m.d.comb += self.value_out.eq(self.value_in << shift)

        with m.If(self.value_out[-1]):
            m.d.comb += self.exponent_out.eq(self.exponent_in - shift)
        with m.Else():
            m.d.comb += self.exponent_out.eq(0)

        return m
