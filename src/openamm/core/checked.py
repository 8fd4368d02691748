"""
Checked unsigned 64-bit arithmetic.

Reserve, volume and refund updates must never wrap or saturate: any result
outside [0, U64_MAX] raises ArithmeticOverflow and the surrounding operation
is rolled back. Intermediate products may be wider (Python ints are
unbounded); only stored results are range-checked via `to_u64`.
"""

from __future__ import annotations

from .constants import U64_MAX
from .exc import ArithmeticOverflow


def to_u64(value: int, *, what: str = "value") -> int:
    """Return `value` if it fits an unsigned 64-bit slot, else raise."""
    if value < 0 or value > U64_MAX:
        raise ArithmeticOverflow(f"{what}={value} outside u64")
    return value


def checked_add(a: int, b: int, *, what: str = "sum") -> int:
    return to_u64(a + b, what=what)


def checked_sub(a: int, b: int, *, what: str = "difference") -> int:
    if b > a:
        raise ArithmeticOverflow(f"{what}: {a} - {b} underflows")
    return to_u64(a - b, what=what)


def checked_mul(a: int, b: int, *, what: str = "product") -> int:
    return to_u64(a * b, what=what)


def checked_div(a: int, b: int, *, what: str = "quotient") -> int:
    """Floor division of non-negative integers; division by zero is fatal."""
    if b == 0:
        raise ArithmeticOverflow(f"{what}: division by zero")
    if a < 0 or b < 0:
        raise ArithmeticOverflow(f"{what}: negative operand")
    return to_u64(a // b, what=what)


__all__ = [
    "to_u64",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
]
