"""
OpenAMM Core Constants (integer domain)
=======================================

Fixed-width bounds, ladder proportions and fee/refund denominators shared by
the solver, the ladder builder and the reconciler. Decimal display quanta live
in `fmt.py`.
"""

# NOTE: All persisted amounts and ids are unsigned 64-bit; decimals are 8-bit.

# ---------------------------------------------------------------------------
# Fixed-width integer bounds
# ---------------------------------------------------------------------------

U64_MAX: int = (1 << 64) - 1
U8_MAX: int = (1 << 8) - 1


# ---------------------------------------------------------------------------
# Order ladder
# ---------------------------------------------------------------------------

#: Parts per ORDER_DENOMINATOR of the refresh-time reserve quoted at each level.
ORDER_NUMERATORS: tuple = (8, 15, 30, 50, 125, 300, 500, 750, 1000, 1250)
ORDER_DENOMINATOR: int = 10_000

#: Ladder capacities: asks use every proportion, bids all but the last.
ASK_CAPACITY: int = len(ORDER_NUMERATORS)
BID_CAPACITY: int = len(ORDER_NUMERATORS) - 1

#: Live orders older than this many ids behind the counter belong to dead ladders.
STALE_ORDER_WINDOW: int = 2 * len(ORDER_NUMERATORS)


# ---------------------------------------------------------------------------
# Fees and refunds (basis points)
# ---------------------------------------------------------------------------

FEE_DENOMINATOR: int = 10_000
LP_FEE_BPS: int = 20
STABLESWAP_FEE_BPS: int = 4

#: One part in REFUND_DENOMINATOR of each fill is skimmed for the cranker.
REFUND_DENOMINATOR: int = 10_000


# ---------------------------------------------------------------------------
# Liquidity
# ---------------------------------------------------------------------------

MINIMUM_LIQUIDITY: int = 1000
STABLESWAP_AMP_COEFFICIENT: int = 5
LP_DECIMALS: int = 6


__all__ = [
    "U64_MAX",
    "U8_MAX",
    "ORDER_NUMERATORS",
    "ORDER_DENOMINATOR",
    "ASK_CAPACITY",
    "BID_CAPACITY",
    "STALE_ORDER_WINDOW",
    "FEE_DENOMINATOR",
    "LP_FEE_BPS",
    "STABLESWAP_FEE_BPS",
    "REFUND_DENOMINATOR",
    "MINIMUM_LIQUIDITY",
    "STABLESWAP_AMP_COEFFICIENT",
    "LP_DECIMALS",
]
