from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class StickyAligner(wiring.Component):
    """Right shifter for significand alignment with a sticky output

    - sticky is set when any 1 bit is shifted out
    - shifts of width + 2 or more flush the output to zero
    - For FP16: 11-bit significand, 5-bit exponent difference
    """

    def __init__(self, width: int = 11, shift_bits: int = 5):
        self.width = width
        self.flush_shift = width + 2

        super().__init__(
            {
                "value_in": In(width),
                "shift_amount": In(shift_bits),
                "value_out": Out(width),
                "sticky": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        with m.If(self.shift_amount >= self.flush_shift):
            m.d.comb += self.value_out.eq(0)
            m.d.comb += self.sticky.eq(self.value_in.any())
        with m.Else():
            m.d.comb += self.value_out.eq(self.value_in >> self.shift_amount)

            # ---- Sticky ----
            # shifting back only clears the bits that were dropped
            restored = Signal(self.width)
            m.d.comb += restored.eq(self.value_out << self.shift_amount)
            m.d.comb += self.sticky.eq(restored != self.value_in)

        return m
