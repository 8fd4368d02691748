"""
OpenAMM Core
============

Unified exports for integer-domain primitives: constants, checked u64
arithmetic, datatypes and exceptions. Decimal helpers are provided *only*
for display formatting.
"""

# NOTE:
#   Every persisted amount is an unsigned 64-bit integer. Stored results go
#   through `checked.*`; overflow or underflow aborts the whole operation.

# Integer-domain constants
from .constants import (
    U64_MAX,
    U8_MAX,
    ORDER_NUMERATORS,
    ORDER_DENOMINATOR,
    ASK_CAPACITY,
    BID_CAPACITY,
    STALE_ORDER_WINDOW,
    FEE_DENOMINATOR,
    LP_FEE_BPS,
    STABLESWAP_FEE_BPS,
    REFUND_DENOMINATOR,
    MINIMUM_LIQUIDITY,
    STABLESWAP_AMP_COEFFICIENT,
    LP_DECIMALS,
)

# Checked arithmetic
from .checked import (
    to_u64,
    checked_add,
    checked_sub,
    checked_mul,
    checked_div,
)

# Datatypes
from .datatypes import (
    CurveType,
    Side,
    PlacedOrder,
    EMPTY_SLOT,
    OrderRequest,
    CancelRequest,
    CurrentOrder,
    VenueSnapshot,
    MarketAccounts,
    ReconcileResult,
)

# Display helpers (non-core arithmetic)
from .fmt import (
    fmt_dec,
    fmt_order,
    native_to_decimal,
    lots_price_to_decimal,
)

# Core exceptions
from .exc import (
    OpenAmmError,
    InvalidPair,
    WrongOpenOrdersAccount,
    WrongMarketAccount,
    MarketBaseMintMismatch,
    MarketQuoteMintMismatch,
    SlippageBaseExceeded,
    SlippageQuoteExceeded,
    MarketMakingAlreadyActive,
    OpenOrdersTokensLocked,
    ArithmeticOverflow,
    InvariantUndefined,
    PoolNotFound,
    PoolAlreadyExists,
    InsufficientFunds,
)

__all__ = [
    # constants
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
    # checked
    "to_u64",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
    # datatypes
    "CurveType",
    "Side",
    "PlacedOrder",
    "EMPTY_SLOT",
    "OrderRequest",
    "CancelRequest",
    "CurrentOrder",
    "VenueSnapshot",
    "MarketAccounts",
    "ReconcileResult",
    # fmt
    "fmt_dec",
    "fmt_order",
    "native_to_decimal",
    "lots_price_to_decimal",
    # exceptions
    "OpenAmmError",
    "InvalidPair",
    "WrongOpenOrdersAccount",
    "WrongMarketAccount",
    "MarketBaseMintMismatch",
    "MarketQuoteMintMismatch",
    "SlippageBaseExceeded",
    "SlippageQuoteExceeded",
    "MarketMakingAlreadyActive",
    "OpenOrdersTokensLocked",
    "ArithmeticOverflow",
    "InvariantUndefined",
    "PoolNotFound",
    "PoolAlreadyExists",
    "InsufficientFunds",
]
