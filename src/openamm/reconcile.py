"""
Fill reconciliation: infer what traded since the last refresh.

The venue does not report fills to the pool. Instead the previous ladder
(kept in the pool record) is diffed against the orders still live on the
venue: whatever is missing from a placed order was filled, and the pool's
reserves are moved accordingly. A placed order that is entirely gone is
treated as fully filled; if it was the outermost order on its side the pool
pauses itself, since the venue may have evicted it rather than filled it.

After the diff every live order is cancelled and the venue balances are
settled back into the pool vaults, so each refresh starts from a clean book.
"""
from __future__ import annotations

import logging
from typing import Dict, List

from .config import OpenAmmConfig, DEFAULT_CONFIG
from .core import (
    Side,
    CancelRequest,
    CurrentOrder,
    PlacedOrder,
    VenueSnapshot,
    ReconcileResult,
    checked_add,
    checked_sub,
    to_u64,
)
from .pool import Pool

logger = logging.getLogger(__name__)


def recent_orders(snapshot: VenueSnapshot, next_client_order_id: int,
                  window: int) -> List[CurrentOrder]:
    """Live orders young enough to belong to the last ladder.

    Orders whose client id is more than `window` behind the next id are
    leftovers of much older ladders and are neither matched nor cancelled.
    """
    if next_client_order_id <= window:
        return list(snapshot.live_orders)
    floor_id = next_client_order_id - window
    return [o for o in snapshot.live_orders if o.client_order_id >= floor_id]


def _live_by_client_id(orders: List[CurrentOrder], side: Side) -> Dict[int, CurrentOrder]:
    out: Dict[int, CurrentOrder] = {}
    for o in orders:
        # first match wins
        if o.side is side and o.client_order_id not in out:
            out[o.client_order_id] = o
    return out


def _filled_base(placed_base: int, live: CurrentOrder, base_lot: int) -> int:
    live_base = to_u64(live.base_qty * base_lot, what="live base")
    return checked_sub(placed_base, live_base, what="filled base")


def cancel_all_and_settle(pool: Pool, snapshot: VenueSnapshot,
                          config: OpenAmmConfig = DEFAULT_CONFIG) -> ReconcileResult:
    """Apply inferred fills to `pool`, clear its ladder and list the cancels.

    Mutates the pool record in place (reserves, volumes, refund accumulators,
    ladder slots, `mm_active`). The caller submits `result.cancels` to the
    venue and then settles.
    """
    base_lot = snapshot.base_lot_size
    quote_lot = snapshot.quote_lot_size
    refund_den = config.refund_denominator
    live = recent_orders(snapshot, pool.client_order_id, config.stale_order_window)
    live_asks = _live_by_client_id(live, Side.ASK)
    live_bids = _live_by_client_id(live, Side.BID)
    result = ReconcileResult()

    asks: List[PlacedOrder] = pool.non_empty_asks()
    for i, placed in enumerate(asks):
        placed_base = to_u64(placed.base_qty * base_lot, what="placed ask base")
        found = live_asks.get(placed.client_order_id)
        if found is not None:
            less_base = _filled_base(placed_base, found, base_lot)
        else:
            less_base = placed_base
            if i == len(asks) - 1:
                pool.mm_active = False
                result.deactivated = True
                logger.warning("outermost ask #%d missing pool=%s; pausing market making",
                               placed.client_order_id, pool.pool_id)

        more_quote = to_u64(less_base * placed.limit_price * quote_lot // base_lot,
                            what="ask quote credit")
        refund = more_quote // refund_den

        pool.base_amount = checked_sub(pool.base_amount, less_base, what="base_amount")
        pool.quote_amount = checked_sub(
            checked_add(pool.quote_amount, more_quote, what="quote_amount"),
            refund, what="quote_amount")
        pool.cumulative_quote_volume = checked_add(
            pool.cumulative_quote_volume, more_quote, what="cumulative_quote_volume")
        pool.refund_quote_amount = checked_add(
            pool.refund_quote_amount, refund, what="refund_quote_amount")

        result.moved_quote = checked_add(result.moved_quote, more_quote, what="moved_quote")
        result.refund_quote = checked_add(result.refund_quote, refund, what="refund_quote")
        if less_base and logger.isEnabledFor(logging.DEBUG):
            logger.debug("[FILL] ask #%d base=-%d quote=+%d refund=%d",
                         placed.client_order_id, less_base, more_quote, refund)

    bids: List[PlacedOrder] = pool.non_empty_bids()
    for i, placed in enumerate(bids):
        max_base_qty = placed.max_quote_qty_incl_fees // placed.limit_price
        base_qty = min(max_base_qty, placed.base_qty)
        placed_base = to_u64(base_qty * base_lot, what="placed bid base")
        found = live_bids.get(placed.client_order_id)
        if found is not None:
            more_base = _filled_base(placed_base, found, base_lot)
        else:
            more_base = placed_base
            if i == len(bids) - 1:
                pool.mm_active = False
                result.deactivated = True
                logger.warning("outermost bid #%d missing pool=%s; pausing market making",
                               placed.client_order_id, pool.pool_id)

        less_quote = to_u64(more_base * placed.limit_price * quote_lot // base_lot,
                            what="bid quote debit")
        refund = more_base // refund_den

        pool.base_amount = checked_sub(
            checked_add(pool.base_amount, more_base, what="base_amount"),
            refund, what="base_amount")
        pool.quote_amount = checked_sub(pool.quote_amount, less_quote, what="quote_amount")
        pool.cumulative_base_volume = checked_add(
            pool.cumulative_base_volume, more_base, what="cumulative_base_volume")
        pool.refund_base_amount = checked_add(
            pool.refund_base_amount, refund, what="refund_base_amount")

        result.moved_base = checked_add(result.moved_base, more_base, what="moved_base")
        result.refund_base = checked_add(result.refund_base, refund, what="refund_base")
        if more_base and logger.isEnabledFor(logging.DEBUG):
            logger.debug("[FILL] bid #%d base=+%d quote=-%d refund=%d",
                         placed.client_order_id, more_base, less_quote, refund)

    result.cancels = [CancelRequest(side=o.side, order_id=o.order_id) for o in live]
    pool.reset_placed_orders()

    logger.info("reconciled pool=%s moved_base=%d moved_quote=%d cancels=%d active=%s",
                pool.pool_id, result.moved_base, result.moved_quote,
                len(result.cancels), pool.mm_active)
    return result


__all__ = ["recent_orders", "cancel_all_and_settle"]
