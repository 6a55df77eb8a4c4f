import enum
import math
import struct

from amaranth.lib import data

EXP_BIAS = 15
EXP_MAX = 31
FRAC_BITS = 10
FRAC_MASK = 0x3FF
HIDDEN_BIT = 1 << FRAC_BITS

POS_INF = 0x7C00
CANONICAL_NAN = 0x7FFF

# binary16 magnitudes at or above 2^16 rebias past the largest exponent
OVERFLOW_THRESHOLD = 2.0**16


class Float16(data.Struct):
    mantissa: 10
    exponent: 5
    sign: 1

    def is_zero(self):
        return (self.exponent == 0) & (self.mantissa == 0)

    def is_subnormal(self):
        return (self.exponent == 0) & (self.mantissa != 0)

    def is_inf(self):
        return (self.exponent == EXP_MAX) & (self.mantissa == 0)

    def is_nan(self):
        return (self.exponent == EXP_MAX) & (self.mantissa != 0)


class FP16Class(enum.Enum):
    ZERO = "zero"
    SUBNORMAL = "subnormal"
    NORMAL = "normal"
    INF = "inf"
    NAN = "nan"


def f32_to_bits(f: float) -> int:
    """Bit-cast a binary32 value to its 32-bit pattern (exact bit copy)."""
    return struct.unpack(">I", struct.pack(">f", f))[0]


def bits_to_f32(bits: int) -> float:
    """Bit-cast a 32-bit pattern to the binary32 value it encodes."""
    return struct.unpack(">f", struct.pack(">I", bits))[0]


def fp16_to_float(h: int) -> float:
    """Decode a binary16 pattern to its exact value.

    Every binary16 value is representable in binary32, so the result is the
    binary32 value of the pattern. NaN payloads and signs are not preserved.
    """
    sign = (h >> 15) & 0x1
    exp = (h >> FRAC_BITS) & 0x1F
    frac = h & FRAC_MASK

    if exp == 0:
        if frac == 0:
            return bits_to_f32(sign << 31)
        # subnormal: no hidden bit, scale 2^(-14 - 10)
        value = math.ldexp(float(frac), -24)
    elif exp == EXP_MAX:
        if frac != 0:
            return math.nan
        value = math.inf
    else:
        value = math.ldexp(1.0 + frac / 1024.0, exp - EXP_BIAS)

    return -value if sign else value


def float_to_fp16(f: float) -> int:
    """Encode a value as binary16, truncating toward zero.

    The value is narrowed to binary32 first. Low mantissa bits are dropped
    rather than rounded; magnitudes too small for a subnormal flush to a
    signed zero and magnitudes past the largest exponent saturate to a signed
    infinity. Any NaN encodes as CANONICAL_NAN.
    """
    if math.isnan(f):
        return CANONICAL_NAN

    sign = 1 if math.copysign(1.0, f) < 0 else 0

    if math.isinf(f) or abs(f) >= OVERFLOW_THRESHOLD:
        return (sign << 15) | POS_INF

    fp32_bits = f32_to_bits(f)
    exp = ((fp32_bits >> 23) & 0xFF) - 127
    mant = fp32_bits & 0x7FFFFF

    if bits_to_f32(fp32_bits) == 0.0:
        return sign << 15

    new_exp = exp + EXP_BIAS

    if new_exp <= 0:
        if new_exp < -10:
            return sign << 15
        mant = (mant | 0x800000) >> (1 - new_exp)
        return (sign << 15) | (mant >> 13)
    elif new_exp >= EXP_MAX:
        return (sign << 15) | POS_INF
    else:
        return (sign << 15) | (new_exp << FRAC_BITS) | (mant >> 13)


class FP16:
    def __init__(self, bits: int):
        self.bits = bits

    @classmethod
    def from_float(cls, f: float):
        return cls(float_to_fp16(f))

    @classmethod
    def from_bits(cls, bits: int):
        return cls(bits)

    def to_bits(self) -> int:
        return self.bits

    def to_float(self) -> float:
        return fp16_to_float(self.bits)

    def unpack(self) -> tuple[int, int, int]:
        sign = (self.bits >> 15) & 0x1
        exp = (self.bits >> FRAC_BITS) & 0x1F
        mant = self.bits & FRAC_MASK
        return sign, exp, mant

    @classmethod
    def pack(cls, sign: int, exp: int, mant: int):
        bits = (sign << 15) | (exp << FRAC_BITS) | mant
        return cls(bits)

    def classify(self) -> FP16Class:
        _, exp, mant = self.unpack()
        if exp == 0:
            return FP16Class.ZERO if mant == 0 else FP16Class.SUBNORMAL
        if exp == EXP_MAX:
            return FP16Class.INF if mant == 0 else FP16Class.NAN
        return FP16Class.NORMAL

    def __repr__(self) -> str:
        return f"FP16(0x{self.bits:04X})"
