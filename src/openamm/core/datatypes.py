"""
Core datatypes shared by the ladder builder, the reconciler and the venue.

These datatypes are intentionally minimal and immutable (where appropriate)
so that ladder construction and reconciliation remain deterministic and
testable.

Units:
- `limit_price` is quote lots per base lot (venue price units).
- `base_qty` is a count of base lots.
- `max_quote_qty` / `max_quote_qty_incl_fees` are native quote units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class CurveType(Enum):
    """Invariant a pool prices its ladder with. Fixed at pool creation."""

    XYK = 0
    STABLE = 1


class Side(Enum):
    ASK = "ask"
    BID = "bid"


# ---------------------------------------------------------------------------
# Ladder slots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlacedOrder:
    """What the pool last asked the venue to place in one ladder slot.

    A slot with `base_qty == 0` is empty.
    """

    limit_price: int = 0
    base_qty: int = 0
    max_quote_qty_incl_fees: int = 0
    client_order_id: int = 0

    def is_empty(self) -> bool:
        return self.base_qty == 0


EMPTY_SLOT = PlacedOrder()


# ---------------------------------------------------------------------------
# Venue-facing requests and snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderRequest:
    """A post-only limit order the pool wants placed on the venue."""

    side: Side
    limit_price: int
    base_qty: int
    max_quote_qty: int
    client_order_id: int

    def to_placed(self) -> PlacedOrder:
        return PlacedOrder(
            limit_price=self.limit_price,
            base_qty=self.base_qty,
            max_quote_qty_incl_fees=self.max_quote_qty,
            client_order_id=self.client_order_id,
        )


@dataclass(frozen=True)
class CancelRequest:
    side: Side
    order_id: int


@dataclass(frozen=True)
class CurrentOrder:
    """A live venue order belonging to the pool, read at operation start."""

    side: Side
    order_id: int
    client_order_id: int
    limit_price: int
    base_qty: int


@dataclass(frozen=True)
class VenueSnapshot:
    """Fresh read of the venue for one pool's open-orders account.

    `native_*_total` is everything the venue holds for the pool (locked in
    orders plus free); `native_*_free` is the settleable part.
    """

    live_orders: Tuple[CurrentOrder, ...] = ()
    best_bid: Optional[int] = None
    best_ask: Optional[int] = None
    base_lot_size: int = 1
    quote_lot_size: int = 1
    native_base_total: int = 0
    native_quote_total: int = 0
    native_base_free: int = 0
    native_quote_free: int = 0

    def holds_inventory(self) -> bool:
        return self.native_base_total != 0 or self.native_quote_total != 0


@dataclass(frozen=True)
class MarketAccounts:
    """Venue wiring a caller passes to an operation; checked against the pool."""

    market: str
    open_orders: str


# ---------------------------------------------------------------------------
# Reconciliation report
# ---------------------------------------------------------------------------

@dataclass
class ReconcileResult:
    """Outcome of diffing the previous ladder against live venue state."""

    cancels: List[CancelRequest] = field(default_factory=list)
    moved_base: int = 0
    moved_quote: int = 0
    refund_base: int = 0
    refund_quote: int = 0
    deactivated: bool = False


__all__ = [
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
]
