"""
Venue collaborator: the central limit order book a pool quotes on.

`Venue` is the surface the engine needs. `PaperVenue` is an in-memory book
for one market: it custodies the funds of resting orders through the token
ledger, never matches on its own, and lets callers simulate taker flow with
`fill()` and capacity eviction with `evict()`.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from .core import (
    Side,
    OrderRequest,
    CancelRequest,
    CurrentOrder,
    VenueSnapshot,
    OpenAmmError,
    to_u64,
)
from .token_ledger import TokenLedger

logger = logging.getLogger(__name__)


class Venue(Protocol):
    market: str
    base_mint: str
    quote_mint: str

    def init_open_orders(self, open_orders: str, owner: str) -> None: ...

    def snapshot(self, open_orders: str) -> VenueSnapshot: ...

    def submit(self, open_orders: str, orders: Sequence[OrderRequest],
               base_payer: str, quote_payer: str) -> List[int]: ...

    def cancel(self, open_orders: str, cancels: Sequence[CancelRequest]) -> None: ...

    def settle(self, open_orders: str, base_wallet: str, quote_wallet: str) -> None: ...

    def checkpoint(self) -> object: ...

    def restore(self, state: object) -> None: ...


# ---------------------------------------------------------------------------
# Paper venue
# ---------------------------------------------------------------------------

@dataclass
class _RestingOrder:
    order_id: int
    side: Side
    client_order_id: int
    limit_price: int
    base_qty: int
    locked_base: int = 0
    locked_quote: int = 0


@dataclass
class _OpenOrdersAccount:
    owner: str
    orders: List[_RestingOrder] = field(default_factory=list)
    free_base: int = 0
    free_quote: int = 0

    def find(self, client_order_id: int) -> Optional[_RestingOrder]:
        for o in self.orders:
            if o.client_order_id == client_order_id:
                return o
        return None

    def release(self, order: _RestingOrder) -> None:
        self.orders.remove(order)
        self.free_base += order.locked_base
        self.free_quote += order.locked_quote


@dataclass(frozen=True)
class FillReport:
    side: Side
    base_amount: int
    quote_amount: int


class PaperVenue:
    """In-memory order book for one market.

    Funds of resting orders and unsettled balances sit in the ledger under
    `custody`. Asks lock `base_qty * base_lot_size` base; bids lock their
    full `max_quote_qty` and rest with `min(base_qty, max_quote // price)`
    lots.
    """

    def __init__(self, ledger: TokenLedger, *, market: str, base_mint: str, quote_mint: str,
                 base_lot_size: int = 1, quote_lot_size: int = 1) -> None:
        if base_lot_size <= 0 or quote_lot_size <= 0:
            raise ValueError("lot sizes must be positive")
        self.ledger = ledger
        self.market = market
        self.base_mint = base_mint
        self.quote_mint = quote_mint
        self.base_lot_size = base_lot_size
        self.quote_lot_size = quote_lot_size
        self.custody = f"{market}/custody"
        self.best_bid: Optional[int] = None
        self.best_ask: Optional[int] = None
        self._accounts: Dict[str, _OpenOrdersAccount] = {}
        self._next_order_id = 1

    # --- accounts ---------------------------------------------------------
    def init_open_orders(self, open_orders: str, owner: str) -> None:
        if open_orders in self._accounts:
            raise OpenAmmError(f"open orders {open_orders} already initialised")
        self._accounts[open_orders] = _OpenOrdersAccount(owner=owner)

    def _account(self, open_orders: str) -> _OpenOrdersAccount:
        try:
            return self._accounts[open_orders]
        except KeyError:
            raise OpenAmmError(f"unknown open orders {open_orders}") from None

    def set_top_of_book(self, best_bid: Optional[int], best_ask: Optional[int]) -> None:
        """External liquidity the pool's ladder must not cross."""
        self.best_bid = best_bid
        self.best_ask = best_ask

    # --- reads ------------------------------------------------------------
    def snapshot(self, open_orders: str) -> VenueSnapshot:
        acct = self._account(open_orders)
        live = tuple(
            CurrentOrder(side=o.side, order_id=o.order_id, client_order_id=o.client_order_id,
                         limit_price=o.limit_price, base_qty=o.base_qty)
            for o in acct.orders
        )
        locked_base = sum(o.locked_base for o in acct.orders)
        locked_quote = sum(o.locked_quote for o in acct.orders)
        return VenueSnapshot(
            live_orders=live,
            best_bid=self.best_bid,
            best_ask=self.best_ask,
            base_lot_size=self.base_lot_size,
            quote_lot_size=self.quote_lot_size,
            native_base_total=locked_base + acct.free_base,
            native_quote_total=locked_quote + acct.free_quote,
            native_base_free=acct.free_base,
            native_quote_free=acct.free_quote,
        )

    def open_orders_of(self, open_orders: str) -> List[CurrentOrder]:
        return list(self.snapshot(open_orders).live_orders)

    # --- writes -----------------------------------------------------------
    def submit(self, open_orders: str, orders: Sequence[OrderRequest],
               base_payer: str, quote_payer: str) -> List[int]:
        acct = self._account(open_orders)
        ids: List[int] = []
        for req in orders:
            if req.limit_price <= 0 or req.base_qty <= 0:
                raise OpenAmmError(f"rejecting empty order #{req.client_order_id}")
            order = _RestingOrder(
                order_id=self._next_order_id,
                side=req.side,
                client_order_id=req.client_order_id,
                limit_price=req.limit_price,
                base_qty=req.base_qty,
            )
            if req.side is Side.ASK:
                order.locked_base = to_u64(req.base_qty * self.base_lot_size, what="ask lock")
                self.ledger.transfer(self.base_mint, base_payer, self.custody, order.locked_base)
            else:
                order.base_qty = min(req.base_qty, req.max_quote_qty // req.limit_price)
                if order.base_qty == 0:
                    raise OpenAmmError(f"bid #{req.client_order_id} cannot afford one lot")
                order.locked_quote = req.max_quote_qty
                self.ledger.transfer(self.quote_mint, quote_payer, self.custody, order.locked_quote)
            acct.orders.append(order)
            ids.append(order.order_id)
            self._next_order_id += 1
        logger.debug("submitted %d orders open_orders=%s", len(ids), open_orders)
        return ids

    def cancel(self, open_orders: str, cancels: Sequence[CancelRequest]) -> None:
        """Best effort: cancels for orders that no longer rest are ignored."""
        acct = self._account(open_orders)
        for c in cancels:
            match = next((o for o in acct.orders
                          if o.order_id == c.order_id and o.side is c.side), None)
            if match is None:
                logger.debug("cancel miss order_id=%d open_orders=%s", c.order_id, open_orders)
                continue
            acct.release(match)

    def settle(self, open_orders: str, base_wallet: str, quote_wallet: str) -> None:
        acct = self._account(open_orders)
        base, quote = acct.free_base, acct.free_quote
        self.ledger.transfer(self.base_mint, self.custody, base_wallet, base)
        self.ledger.transfer(self.quote_mint, self.custody, quote_wallet, quote)
        acct.free_base = 0
        acct.free_quote = 0

    # --- simulation -------------------------------------------------------
    def fill(self, open_orders: str, client_order_id: int, base_lots: int,
             taker: str) -> FillReport:
        """Cross `base_lots` of a resting order against `taker`.

        The taker pays from, and is paid to, its own ledger balances. The
        maker's proceeds become free balance on the open-orders account.
        """
        acct = self._account(open_orders)
        order = acct.find(client_order_id)
        if order is None:
            raise OpenAmmError(f"no resting order #{client_order_id}")
        if base_lots <= 0 or base_lots > order.base_qty:
            raise ValueError(f"fill of {base_lots} lots outside (0, {order.base_qty}]")

        base_amount = base_lots * self.base_lot_size
        quote_amount = base_lots * order.limit_price * self.quote_lot_size
        if order.side is Side.ASK:
            self.ledger.transfer(self.quote_mint, taker, self.custody, quote_amount)
            self.ledger.transfer(self.base_mint, self.custody, taker, base_amount)
            order.locked_base -= base_amount
            acct.free_quote += quote_amount
        else:
            if quote_amount > order.locked_quote:
                raise OpenAmmError(f"bid #{client_order_id} has too little quote locked")
            self.ledger.transfer(self.base_mint, taker, self.custody, base_amount)
            self.ledger.transfer(self.quote_mint, self.custody, taker, quote_amount)
            order.locked_quote -= quote_amount
            acct.free_base += base_amount

        order.base_qty -= base_lots
        if order.base_qty == 0:
            acct.release(order)
        logger.debug("fill %s #%d lots=%d base=%d quote=%d", order.side.value,
                     client_order_id, base_lots, base_amount, quote_amount)
        return FillReport(side=order.side, base_amount=base_amount, quote_amount=quote_amount)

    def evict(self, open_orders: str, client_order_id: int) -> None:
        """Drop a resting order without trading it; its funds become free."""
        acct = self._account(open_orders)
        order = acct.find(client_order_id)
        if order is None:
            raise OpenAmmError(f"no resting order #{client_order_id}")
        acct.release(order)

    # --- rollback ---------------------------------------------------------
    def checkpoint(self) -> tuple:
        return copy.deepcopy((self._accounts, self._next_order_id, self.best_bid, self.best_ask))

    def restore(self, state: tuple) -> None:
        self._accounts, self._next_order_id, self.best_bid, self.best_ask = copy.deepcopy(state)


__all__ = ["Venue", "PaperVenue", "FillReport"]
