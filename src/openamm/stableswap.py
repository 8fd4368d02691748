"""
Stableswap invariant solver (pool math only).

For a two-token pool with amounts (x, y) the invariant is

    4A(x+y) + D = 4AD + D^3/(4xy)

where A is the amplification coefficient and D is the total amount of coins
when both have an equal price. There is no closed form for D or for y given
(x, D), so both are found with Newton's method on

    f(D) = f(y) = 4A(x+y-D) + D - D^3/(4xy)
    f'(D) = 1 - 4A - 3D^2/(4xy)
    f'(y) = 4A + D^3/(4xy^2)

seeded at D0 = x+y and y0 = y+dx. Those seeds are close to the root, so a
small fixed iteration budget suffices.

When the pool is highly imbalanced (ratio above ~1000) Newton can overshoot
onto the other root, which may be negative. The y iterate is therefore never
allowed below its starting value + 1; when the floor is hit the iteration
budget is extended since the method was effectively restarted from a worse
point.

Iteration runs in Decimal at a fixed local precision and results are rounded
half-up to an integer, so identical inputs give identical outputs on every
host.
"""
from __future__ import annotations

from decimal import Decimal, localcontext, ROUND_FLOOR
from typing import Optional, Tuple

from .core import (
    U64_MAX,
    STABLESWAP_AMP_COEFFICIENT,
    InvariantUndefined,
    to_u64,
    checked_mul,
    checked_add,
    checked_sub,
)

#: Newton budget for D (fixed; not a convergence test).
D_NM_MAX_ITERS = 8
#: Newton budget for y: the expected count, and the extended count used once
#: the iterate has been clamped to its floor.
DY_NM_MAX_ITERS = 8
DY_NM_EXP_ITERS = 4

#: Significant digits for the solver's continuous domain.
SOLVER_PRECISION = 60

_HALF = Decimal("0.5")
_ONE = Decimal(1)
_U64_MAX_DEC = Decimal(U64_MAX)


def _round_half_up(value: Decimal) -> int:
    return int((value + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def calc_d(x: int, y: int, amp: int) -> Optional[int]:
    """Calculate D for reserves (x, y).

    Returns None when D cannot be represented (overflow) or when either
    reserve is empty. Callers must normalize decimals BEFORE calling: the raw
    curve assumes one X unit is worth one Y unit at balance.
    """
    if x <= 0 or y <= 0:
        return None
    with localcontext() as ctx:
        ctx.prec = SOLVER_PRECISION
        xd = Decimal(x)
        yd = Decimal(y)
        a = Decimal(amp)
        four_xy = 4 * xd * yd

        d = xd + yd
        for _ in range(D_NM_MAX_ITERS):
            d2 = d * d
            f = 4 * a * (xd + yd - d) + d - d * d2 / four_xy
            f_ = _ONE - 4 * a - 3 * d2 / four_xy
            d = d - f / f_

        if not d.is_finite() or d > _U64_MAX_DEC or d < 0:
            return None
        out = _round_half_up(d)
    if out > U64_MAX:
        return None
    return out


def calc_dy(x: int, y: int, amp: int, d: int, dx: int) -> Optional[int]:
    """Amount to add to y after dx is removed from x, keeping D fixed.

    Formally: the invariant holds for (x, y) -> (x-dx, y+dy).
    Returns None if dx >= x, if the final Newton step is larger than one unit
    (did not converge within budget), or if the result overflows.
    """
    if dx >= x or x <= 0:
        return None
    with localcontext() as ctx:
        ctx.prec = SOLVER_PRECISION
        xd = Decimal(x - dx)
        a = Decimal(amp)
        dd = Decimal(d)
        d3 = dd * dd * dd

        y_min = Decimal(y + 1)
        y_ = Decimal(y + dx)
        use_max_iters = False
        last_move = Decimal(0)
        for i in range(DY_NM_MAX_ITERS):
            if not use_max_iters and i >= DY_NM_EXP_ITERS:
                break
            f = 4 * a * (xd + y_ - dd) + dd - d3 / (4 * xd * y_)
            f_ = 4 * a + d3 / (4 * xd * y_ * y_)
            last_move = f / f_
            y_ = y_ - last_move

            # Below the floor: clamp and give Newton the full budget
            if y_ < y_min:
                y_ = y_min
                use_max_iters = True

        if abs(last_move) > _ONE:
            return None
        if not y_.is_finite() or y_ > _U64_MAX_DEC:
            return None
        dy = _round_half_up(y_ - Decimal(y))
    if dy < 0 or dy > U64_MAX:
        return None
    return dy


# ---------------------------------------------------------------------------
# Decimal normalisation
# ---------------------------------------------------------------------------

def token_decimals_factors(base_decimals: int, quote_decimals: int) -> Tuple[int, int]:
    """Scale factors that make one base unit comparable to one quote unit.

    The side with fewer decimals is multiplied up; the other factor is 1.
    """
    if base_decimals > quote_decimals:
        return 1, 10 ** (base_decimals - quote_decimals)
    return 10 ** (quote_decimals - base_decimals), 1


def normalize_decimals(base_amount: int, base_decimals: int,
                       quote_amount: int, quote_decimals: int) -> Tuple[int, int]:
    """Scale (base, quote) so stable-priced units line up.

    Multiplies rather than divides so no precision is lost; callers divide by
    the same factors when converting results back.
    """
    base_fac, quote_fac = token_decimals_factors(base_decimals, quote_decimals)
    return (
        checked_mul(base_amount, base_fac, what="normalized base"),
        checked_mul(quote_amount, quote_fac, what="normalized quote"),
    )


def stableswap_lp_minted(lp_supply: int,
                         reserve_base: int,
                         reserve_quote: int,
                         deposit_base: int,
                         deposit_quote: int,
                         base_decimals: int,
                         quote_decimals: int,
                         amp: int = STABLESWAP_AMP_COEFFICIENT) -> int:
    """LP to mint for a Stableswap deposit: proportional to the growth of D.

    First deposit (supply 0) mints D1 directly; later deposits mint
    supply * (D1 - D0) / D0, all over decimal-normalized amounts.
    """
    norm_reserve_base, norm_reserve_quote = normalize_decimals(
        reserve_base, base_decimals, reserve_quote, quote_decimals)
    norm_deposit_base, norm_deposit_quote = normalize_decimals(
        deposit_base, base_decimals, deposit_quote, quote_decimals)

    d_1 = calc_d(
        checked_add(norm_reserve_base, norm_deposit_base, what="normalized base after deposit"),
        checked_add(norm_reserve_quote, norm_deposit_quote, what="normalized quote after deposit"),
        amp,
    )
    if d_1 is None:
        raise InvariantUndefined("post-deposit reserves")
    if lp_supply == 0:
        return d_1

    d_0 = calc_d(norm_reserve_base, norm_reserve_quote, amp)
    if d_0 is None or d_0 == 0:
        raise InvariantUndefined("current reserves")
    growth = checked_sub(d_1, d_0, what="stableswap D growth")
    return to_u64(lp_supply * growth // d_0, what="stableswap lp minted")


__all__ = [
    "D_NM_MAX_ITERS",
    "DY_NM_MAX_ITERS",
    "DY_NM_EXP_ITERS",
    "calc_d",
    "calc_dy",
    "token_decimals_factors",
    "normalize_decimals",
    "stableswap_lp_minted",
]
