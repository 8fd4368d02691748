# Top-level API for openamm (integer-domain).
"""
Top-level API for openamm.

A liquidity pool that quotes its reserves on a central limit order book:
  - OpenAmm: pool operations (create, deposit, withdraw, refresh, restart)
  - LadderBuilder: reserves -> post-only order ladder (XYK or Stableswap)
  - cancel_all_and_settle: fill inference from the previous ladder
  - PaperVenue / InMemoryTokenLedger: in-memory collaborators

All amounts are unsigned 64-bit integers in native token units.
"""

# NOTE:
#   Display helpers (Decimal) live in `openamm.core.fmt` and are never used
#   by pool arithmetic.

from __future__ import annotations

from .config import OpenAmmConfig, DEFAULT_CONFIG
from .engine import OpenAmm, OperationSandbox, CreateResult, LiquidityResult, RefreshResult
from .ladder import LadderBuilder, build_ladder
from .liquidity import same_fraction, optimal_deposit, lp_to_mint, withdraw_amounts
from .pool import Pool, InMemoryPoolRepository, pool_id_for, open_orders_for
from .reconcile import cancel_all_and_settle
from .stableswap import calc_d, calc_dy
from .token_ledger import InMemoryTokenLedger
from .venue import PaperVenue

from .core import (
    CurveType,
    Side,
    MarketAccounts,
    OrderRequest,
    VenueSnapshot,
    OpenAmmError,
)

__all__ = [
    # operations
    "OpenAmm",
    "OperationSandbox",
    "CreateResult",
    "LiquidityResult",
    "RefreshResult",
    "OpenAmmConfig",
    "DEFAULT_CONFIG",
    # pool math
    "LadderBuilder",
    "build_ladder",
    "cancel_all_and_settle",
    "same_fraction",
    "optimal_deposit",
    "lp_to_mint",
    "withdraw_amounts",
    "calc_d",
    "calc_dy",
    # state and collaborators
    "Pool",
    "InMemoryPoolRepository",
    "pool_id_for",
    "open_orders_for",
    "InMemoryTokenLedger",
    "PaperVenue",
    # core types
    "CurveType",
    "Side",
    "MarketAccounts",
    "OrderRequest",
    "VenueSnapshot",
    "OpenAmmError",
]
