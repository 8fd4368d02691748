"""
LP accounting: deposit sizing, LP minting and pro-rata withdrawal.

All functions are pure integer math; the engine moves the tokens.
"""

from __future__ import annotations

import math
from typing import Tuple

from .core import (
    CurveType,
    MINIMUM_LIQUIDITY,
    STABLESWAP_AMP_COEFFICIENT,
    SlippageBaseExceeded,
    SlippageQuoteExceeded,
    checked_div,
    checked_sub,
    to_u64,
)
from .stableswap import stableswap_lp_minted


def same_fraction(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    """True if a[0]/a[1] and b[0]/b[1] are the same fraction.

    Compared in lowest terms, so (2, 4) and (3, 6) match. A zero
    denominator only matches the identical pair.
    """
    (an, ad), (bn, bd) = a, b
    ga = math.gcd(an, ad) or 1
    gb = math.gcd(bn, bd) or 1
    return an // ga == bn // gb and ad // ga == bd // gb


def optimal_deposit(reserve_base: int, reserve_quote: int,
                    desired_base: int, desired_quote: int,
                    min_base: int, min_quote: int) -> Tuple[int, int]:
    """Largest deposit at the pool ratio that fits within the desired amounts.

    Returns (base, quote) to take from the depositor. With an empty pool
    (either reserve zero) the desired amounts are used as given.

    Raises:
        SlippageQuoteExceeded: the ratio-matched quote falls below `min_quote`.
        SlippageBaseExceeded: the ratio-matched base falls outside
            [`min_base`, `desired_base`].
    """
    if reserve_base == 0 or reserve_quote == 0:
        return desired_base, desired_quote
    if same_fraction((desired_quote, desired_base), (reserve_quote, reserve_base)):
        return desired_base, desired_quote

    optimal_quote = to_u64(desired_base * reserve_quote // reserve_base, what="optimal quote")
    if optimal_quote <= desired_quote:
        if optimal_quote < min_quote:
            raise SlippageQuoteExceeded(f"optimal={optimal_quote} min={min_quote}")
        return desired_base, optimal_quote

    optimal_base = to_u64(desired_quote * reserve_base // reserve_quote, what="optimal base")
    if optimal_base > desired_base or optimal_base < min_base:
        raise SlippageBaseExceeded(
            f"optimal={optimal_base} desired={desired_base} min={min_base}")
    return optimal_base, desired_quote


def xyk_lp_minted(lp_supply: int, reserve_base: int, reserve_quote: int,
                  deposit_base: int, deposit_quote: int,
                  minimum_liquidity: int = MINIMUM_LIQUIDITY) -> int:
    """Constant-product LP mint.

    First deposit: floor(sqrt(base*quote - minimum_liquidity)).
    Later: the smaller of the two proportional shares of the supply.
    """
    if lp_supply == 0:
        radicand = checked_sub(deposit_base * deposit_quote, minimum_liquidity,
                               what="initial liquidity")
        return to_u64(math.isqrt(radicand), what="lp minted")
    by_base = checked_div(lp_supply * deposit_base, reserve_base, what="lp by base")
    by_quote = checked_div(lp_supply * deposit_quote, reserve_quote, what="lp by quote")
    return min(by_base, by_quote)


def lp_to_mint(curve_type: CurveType, lp_supply: int,
               reserve_base: int, reserve_quote: int,
               deposit_base: int, deposit_quote: int,
               base_decimals: int, quote_decimals: int, *,
               amp: int = STABLESWAP_AMP_COEFFICIENT,
               minimum_liquidity: int = MINIMUM_LIQUIDITY) -> int:
    """LP owed for a deposit, by curve. Reserves are pre-deposit."""
    if curve_type is CurveType.STABLE:
        return stableswap_lp_minted(lp_supply, reserve_base, reserve_quote,
                                    deposit_base, deposit_quote,
                                    base_decimals, quote_decimals, amp)
    return xyk_lp_minted(lp_supply, reserve_base, reserve_quote,
                         deposit_base, deposit_quote, minimum_liquidity)


def withdraw_amounts(lp_amount: int, reserve_base: int, reserve_quote: int,
                     lp_supply: int) -> Tuple[int, int]:
    """Pro-rata (base, quote) for burning `lp_amount` of `lp_supply`, floored."""
    return (
        checked_div(lp_amount * reserve_base, lp_supply, what="withdraw base"),
        checked_div(lp_amount * reserve_quote, lp_supply, what="withdraw quote"),
    )


__all__ = [
    "same_fraction",
    "optimal_deposit",
    "xyk_lp_minted",
    "lp_to_mint",
    "withdraw_amounts",
]
