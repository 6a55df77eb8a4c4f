"""Bit-true vs oracle verification for the FP16 models.

The oracle decodes both operands, combines them in native binary32 arithmetic
and encodes the result back with the truncating encoder. Mismatches against
the bit-true models are expected where binary32 rounding and hardware
truncation diverge; they are counted and reported, never raised.
"""

import argparse
import math
import random
import sys
from dataclasses import dataclass

import numpy as np

from float16 import POS_INF, float_to_fp16, fp16_to_float
from fp16_model import fp16_add, fp16_mul

OPS = {
    "add": fp16_add,
    "mul": fp16_mul,
}

FIXED_ADD_VECTORS = [
    (0xC0B0, 0x1CC0),  # large negative + tiny positive
    (0x00E0, 0x5060),  # subnormal + normal
    (0x3C00, 0x3C00),  # 1.0 + 1.0
    (0x3C00, 0xBC00),  # 1.0 - 1.0
    (0x7C00, 0x3C00),  # inf + 1.0
    (0x7FFF, 0x3C00),  # nan + 1.0
    (0x5140, 0x1CC0),  # precision loss
    (0x3C00, 0x3800),  # 1.0 + 0.5
    (0x3C00, 0x0400),  # 1.0 + smallest normal
    (0x0400, 0x03FF),  # smallest normal + largest subnormal
]

FIXED_MUL_VECTORS = [
    (0x3C00, 0x3C00),  # 1.0 * 1.0
    (0x3C00, 0x4000),  # 1.0 * 2.0
    (0x3C00, 0x4200),  # 1.0 * 3.0
    (0x4000, 0x3800),  # 2.0 * 0.5
    (0xC000, 0x4000),  # -2.0 * 2.0
    (0x0000, 0x3C00),  # 0 * 1.0
    (0x8000, 0x4000),  # -0 * 2.0
    (0x7C00, 0x3C00),  # inf * 1.0
    (0x7C00, 0x8000),  # inf * -0
    (0x7FFF, 0x3C00),  # nan * 1.0
    (0x3C00, 0x0400),  # 1.0 * smallest normal
]

FIXED_VECTORS = {
    "add": FIXED_ADD_VECTORS,
    "mul": FIXED_MUL_VECTORS,
}


@dataclass(frozen=True)
class OracleResult:
    result: int
    overflow: bool
    zero: bool
    nan: bool
    value: float


@dataclass(frozen=True)
class Comparison:
    a: int
    b: int
    hw: object
    tlm: OracleResult
    match: bool

    @property
    def note(self) -> str:
        notes = []
        if not self.match:
            notes.append("Mismatch")
        if getattr(self.hw, "precision_lost", False):
            notes.append("Precision Lost")
        return ", ".join(notes)


def _oracle(a: int, b: int, op: str) -> OracleResult:
    fa = np.float32(fp16_to_float(a))
    fb = np.float32(fp16_to_float(b))

    # inf - inf and inf * 0 are expected to produce nan here
    with np.errstate(invalid="ignore", over="ignore"):
        if op == "add":
            value = fa + fb
        else:
            value = fa * fb

    value = float(value)
    bits = float_to_fp16(value)
    return OracleResult(
        result=bits,
        overflow=(bits & 0x7FFF) == POS_INF,
        zero=(bits & 0x7FFF) == 0,
        nan=math.isnan(value),
        value=value,
    )


def oracle_add(a: int, b: int) -> OracleResult:
    return _oracle(a, b, "add")


def oracle_mul(a: int, b: int) -> OracleResult:
    return _oracle(a, b, "mul")


def compare(op: str, a: int, b: int) -> Comparison:
    hw = OPS[op](a, b)
    tlm = _oracle(a, b, op)

    # nan patterns never compare equal numerically
    match = hw.result == tlm.result or (tlm.nan and hw.nan)
    return Comparison(a=a, b=b, hw=hw, tlm=tlm, match=match)


def random_vectors(count: int, seed: int | None = None) -> list[tuple[int, int]]:
    rng = random.Random(seed)
    return [(rng.randint(0, 0xFFFF), rng.randint(0, 0xFFFF)) for _ in range(count)]


def run(op: str, vectors) -> list[Comparison]:
    return [compare(op, a, b) for a, b in vectors]


def mismatch_count(comparisons: list[Comparison]) -> int:
    return sum(1 for c in comparisons if not c.match)


def format_report(op: str, comparisons: list[Comparison]) -> str:
    title = "Adder" if op == "add" else "Multiplier"
    flag = "PL" if op == "add" else "UF"
    rule = "-" * 98

    lines = [
        rule,
        f" FP16 {title} Verification: Bit-True (HW) vs TLM (Float)",
        rule,
        f"  Input A  |  Input B  || HW Res  | TLM Res | Match? | OF | Z | NaN| {flag} | Note",
        rule,
    ]

    for c in comparisons:
        fourth = c.hw.precision_lost if op == "add" else c.hw.underflow
        lines.append(
            f"  0x{c.a:04X}   |  0x{c.b:04X}   || 0x{c.hw.result:04X}  | 0x{c.tlm.result:04X}  "
            f"|   {'O' if c.match else 'X'}    | {int(c.hw.overflow)}  | {int(c.hw.zero)} "
            f"| {int(c.hw.nan)}  | {int(fourth)}  | {c.note}"
        )

    lines.append(rule)
    lines.append(f"Total Mismatches: {mismatch_count(comparisons)} (differences between HW Truncation & TLM Rounding)")
    return "\n".join(lines)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Compare the bit-true FP16 models against the float oracle")
    parser.add_argument("--op", choices=["add", "mul", "both"], default="both", help="which model to check")
    parser.add_argument("--count", type=int, default=20, help="number of random operand pairs")
    parser.add_argument("--seed", type=int, default=None, help="seed for the random operand pairs")
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="exit with status 1 when any mismatch is found",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    ops = ["add", "mul"] if args.op == "both" else [args.op]
    vectors = random_vectors(args.count, args.seed)

    total = 0
    for op in ops:
        comparisons = run(op, FIXED_VECTORS[op] + vectors)
        print(format_report(op, comparisons))
        total += mismatch_count(comparisons)

    if args.strict and total:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
