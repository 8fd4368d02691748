"""
Core exception types for openamm.

These are dependency-free and may be imported by all modules. Each pool error
kind is its own class so callers can catch exactly one kind per failed call.
"""

__all__ = [
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


class OpenAmmError(Exception):
    """Base class for every error surfaced by a pool operation."""

    message = "OpenAmmErrorCode::Unknown"

    def __init__(self, detail=None):
        text = self.message if detail is None else f"{self.message} ({detail})"
        super().__init__(text)
        self.detail = detail


class InvalidPair(OpenAmmError):
    message = "OpenAmmErrorCode::InvalidPair - Pair is invalid"


class WrongOpenOrdersAccount(OpenAmmError):
    message = "OpenAmmErrorCode::WrongOpenOrdersAccount - Wrong open orders account for pool"


class WrongMarketAccount(OpenAmmError):
    message = "OpenAmmErrorCode::WrongMarket - Wrong market account for pool"


class MarketBaseMintMismatch(OpenAmmError):
    message = "OpenAmmErrorCode::MarketBaseMintMismatch - Market base mint does not match token A"


class MarketQuoteMintMismatch(OpenAmmError):
    message = "OpenAmmErrorCode::MarketQuoteMintMismatch - Market quote mint does not match token B"


class SlippageBaseExceeded(OpenAmmError):
    message = "OpenAmmErrorCode::SlippageBaseExceeded - Slippage for base exceeded"


class SlippageQuoteExceeded(OpenAmmError):
    message = "OpenAmmErrorCode::SlippageQuoteExceeded - Slippage for quote exceeded"


class MarketMakingAlreadyActive(OpenAmmError):
    message = "OpenAmmErrorCode::MarketMakingAlreadyActive - Market making is already active"


class OpenOrdersTokensLocked(OpenAmmError):
    message = "OpenAmmErrorCode::OpenOrdersTokensLocked - Open orders tokens are locked"


class ArithmeticOverflow(OpenAmmError):
    """Raised when a checked u64 operation would overflow or underflow."""

    message = "OpenAmmErrorCode::ArithmeticOverflow - Checked arithmetic failed"


class InvariantUndefined(OpenAmmError):
    """Raised when the Stableswap invariant D has no value for the reserves."""

    message = "OpenAmmErrorCode::InvariantUndefined - Stableswap invariant is undefined"


class PoolNotFound(OpenAmmError):
    message = "OpenAmmErrorCode::PoolNotFound - No pool stored under this id"


class PoolAlreadyExists(OpenAmmError):
    message = "OpenAmmErrorCode::PoolAlreadyExists - A pool already exists for this market and curve"


class InsufficientFunds(OpenAmmError):
    """Raised by the token ledger when a debit exceeds the available balance."""

    message = "OpenAmmErrorCode::InsufficientFunds - Insufficient token balance"
