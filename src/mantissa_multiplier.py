from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class MantissaMultiplier(wiring.Component):
    """11x11 significand multiplier

    The hidden bit is only attached for normal operands; a subnormal operand
    enters the array as 0.fraction.
    """

    def __init__(self):
        super().__init__(
            {
                "a_mant": In(10),
                "a_subnormal": In(1),
                "b_mant": In(10),
                "b_subnormal": In(1),
                "product": Out(22, init=0),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        a_full = Signal(11)
        b_full = Signal(11)

        m.d.comb += a_full.eq(Cat(self.a_mant, ~self.a_subnormal))
        m.d.comb += b_full.eq(Cat(self.b_mant, ~self.b_subnormal))

        m.d.comb += self.product.eq(a_full * b_full)

        return m
