"""
Pool ledger: the persistent per-market pool record and its repository.

One `Pool` exists per (venue market, curve type). Reserves are the pool's own
inventory accounting; funds resting on the venue still count as reserves
until reconciliation proves they moved.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Protocol

from .core import (
    CurveType,
    PlacedOrder,
    EMPTY_SLOT,
    ASK_CAPACITY,
    BID_CAPACITY,
    U8_MAX,
    PoolNotFound,
    PoolAlreadyExists,
    to_u64,
)


def _empty_slots(capacity: int) -> List[PlacedOrder]:
    return [EMPTY_SLOT] * capacity


def pool_id_for(market: str, curve_type: CurveType) -> str:
    """Deterministic pool id: one pool per market and curve."""
    return f"{market}:{curve_type.value}:pool"


def open_orders_for(market: str, curve_type: CurveType) -> str:
    """Open-orders account a pool must trade through; derived from its id."""
    return f"{pool_id_for(market, curve_type)}/open-orders"


@dataclass
class Pool:
    """Pool record. Integer fields are u64 unless noted; decimals are u8."""

    pool_id: str
    market: str
    open_orders: str
    base_mint: str
    quote_mint: str
    lp_mint: str
    base_vault: str
    quote_vault: str
    curve_type: CurveType
    base_decimals: int
    quote_decimals: int
    base_amount: int = 0
    quote_amount: int = 0
    cumulative_base_volume: int = 0
    cumulative_quote_volume: int = 0
    refund_base_amount: int = 0
    refund_quote_amount: int = 0
    client_order_id: int = 1
    placed_asks: List[PlacedOrder] = field(default_factory=lambda: _empty_slots(ASK_CAPACITY))
    placed_bids: List[PlacedOrder] = field(default_factory=lambda: _empty_slots(BID_CAPACITY))
    mm_active: bool = True

    @classmethod
    def new(cls, *, market: str, open_orders: str, base_mint: str, quote_mint: str,
            curve_type: CurveType, base_decimals: int, quote_decimals: int,
            base_amount: int, quote_amount: int) -> "Pool":
        """Build a fresh pool, setting every field exactly once."""
        for name, dec in (("base_decimals", base_decimals), ("quote_decimals", quote_decimals)):
            if not (0 <= dec <= U8_MAX):
                raise ValueError(f"{name} must fit u8: {dec}")
        pool_id = pool_id_for(market, curve_type)
        return cls(
            pool_id=pool_id,
            market=market,
            open_orders=open_orders,
            base_mint=base_mint,
            quote_mint=quote_mint,
            lp_mint=f"{pool_id}/lp-mint",
            base_vault=f"{pool_id}/base-vault",
            quote_vault=f"{pool_id}/quote-vault",
            curve_type=curve_type,
            base_decimals=base_decimals,
            quote_decimals=quote_decimals,
            base_amount=to_u64(base_amount, what="initial base"),
            quote_amount=to_u64(quote_amount, what="initial quote"),
            cumulative_base_volume=0,
            cumulative_quote_volume=0,
            refund_base_amount=0,
            refund_quote_amount=0,
            client_order_id=1,
            placed_asks=_empty_slots(ASK_CAPACITY),
            placed_bids=_empty_slots(BID_CAPACITY),
            mm_active=True,
        )

    def reset_placed_orders(self) -> None:
        self.placed_asks = _empty_slots(len(self.placed_asks))
        self.placed_bids = _empty_slots(len(self.placed_bids))

    def non_empty_asks(self) -> List[PlacedOrder]:
        return [o for o in self.placed_asks if not o.is_empty()]

    def non_empty_bids(self) -> List[PlacedOrder]:
        return [o for o in self.placed_bids if not o.is_empty()]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class PoolRepository(Protocol):
    def create(self, pool: Pool) -> None: ...

    def load(self, pool_id: str) -> Pool: ...

    def save(self, pool: Pool) -> None: ...

    def exists(self, pool_id: str) -> bool: ...


class InMemoryPoolRepository:
    """Dict-backed repository; hands out private copies so that callers can
    mutate freely and commit only by calling `save`."""

    def __init__(self) -> None:
        self._pools: Dict[str, Pool] = {}

    def create(self, pool: Pool) -> None:
        if pool.pool_id in self._pools:
            raise PoolAlreadyExists(pool.pool_id)
        self._pools[pool.pool_id] = copy.deepcopy(pool)

    def load(self, pool_id: str) -> Pool:
        try:
            stored = self._pools[pool_id]
        except KeyError:
            raise PoolNotFound(pool_id) from None
        return copy.deepcopy(stored)

    def save(self, pool: Pool) -> None:
        if pool.pool_id not in self._pools:
            raise PoolNotFound(pool.pool_id)
        self._pools[pool.pool_id] = copy.deepcopy(pool)

    def exists(self, pool_id: str) -> bool:
        return pool_id in self._pools

    def __len__(self) -> int:
        return len(self._pools)


__all__ = ["Pool", "pool_id_for", "open_orders_for", "PoolRepository", "InMemoryPoolRepository"]
