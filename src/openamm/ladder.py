"""Reserves → order ladder: project the pool's curve onto venue limit orders.

Asks sell base for quote, bids buy base with quote. Level sizes are fixed
proportions of the reserve at the start of the refresh (base reserve for
asks, quote reserve for bids). Prices walk along the curve: each level is
priced from where the previous level left the reserves, so successive asks
get dearer and successive bids cheaper.

Helpers (public):
- LadderBuilder(config).build(pool, snapshot): rebuild the pool's ladder
- build_ladder(pool, snapshot, config): functional shortcut
- level_price(...): lot-denominated price for one (base, quote) slice

Pool reserves are never touched here; only the ladder slots and the
client-order-id counter change.
"""

# NOTE:
#   All sizing uses integer floor division. Wide intermediates (products of
#   two u64 values) are fine; every value that lands in an order or in the
#   pool record is range-checked as u64.

from __future__ import annotations

import logging
from typing import List, Optional

from .config import OpenAmmConfig, DEFAULT_CONFIG
from .core import (
    CurveType,
    Side,
    OrderRequest,
    VenueSnapshot,
    checked_add,
    to_u64,
    fmt_order,
)
from .pool import Pool
from .stableswap import calc_d, calc_dy, token_decimals_factors

logger = logging.getLogger(__name__)


def level_price(base_native: int, quote_native: int, fee_numerator: int, *,
                fee_denominator: int, base_lot_size: int, quote_lot_size: int) -> int:
    """Price of a slice in quote lots per base lot, fee applied, floored.

    Returns 0 for an empty base slice (the level is unpriceable).
    """
    if base_native <= 0:
        return 0
    num = quote_native * base_lot_size * fee_numerator
    den = base_native * quote_lot_size * fee_denominator
    return to_u64(num // den, what="limit price")


class LadderBuilder:
    """Builds up to `ask_capacity` asks and `bid_capacity` bids for a pool."""

    def __init__(self, config: OpenAmmConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    # --- public -----------------------------------------------------------
    def build(self, pool: Pool, snapshot: VenueSnapshot) -> List[OrderRequest]:
        """Rebuild `pool`'s ladder from its reserves; return the placement batch."""
        pool.reset_placed_orders()
        if pool.curve_type is CurveType.STABLE:
            orders = self._build_stable(pool, snapshot)
        else:
            orders = self._build_xyk(pool, snapshot)
        if logger.isEnabledFor(logging.DEBUG):
            for o in orders:
                logger.debug("[LADDER] pool=%s %s", pool.pool_id,
                             fmt_order(o, snapshot.base_lot_size, snapshot.quote_lot_size,
                                       pool.base_decimals, pool.quote_decimals))
        logger.info("built ladder pool=%s curve=%s asks=%d bids=%d next_id=%d",
                    pool.pool_id, pool.curve_type.name,
                    sum(1 for o in orders if o.side is Side.ASK),
                    sum(1 for o in orders if o.side is Side.BID),
                    pool.client_order_id)
        return orders

    # --- level bookkeeping ------------------------------------------------
    def _ask_levels(self, pool: Pool) -> int:
        return min(self.config.ask_capacity, len(pool.placed_asks))

    def _bid_levels(self, pool: Pool) -> int:
        return min(self.config.bid_capacity, len(pool.placed_bids))

    def _fee_numerators(self, pool: Pool) -> tuple:
        fee = self.config.fee_bps(pool.curve_type)
        den = self.config.fee_denominator
        return den + fee, den - fee

    def _offer(self, pool: Pool, snapshot: VenueSnapshot, side: Side, slot: int,
               limit_price: int, base_lots: int, quote_native: int) -> Optional[OrderRequest]:
        """Clamp, stamp and record one level; None if it would be dust."""
        if limit_price == 0 or base_lots == 0 or quote_native == 0:
            return None

        # Post-only orders must not cross the opposing top of book
        if side is Side.ASK:
            if snapshot.best_bid is not None and limit_price <= snapshot.best_bid:
                limit_price = snapshot.best_bid + 1
        else:
            if (snapshot.best_ask is not None and limit_price >= snapshot.best_ask
                    and snapshot.best_ask > 1):
                limit_price = snapshot.best_ask - 1

        req = OrderRequest(
            side=side,
            limit_price=to_u64(limit_price, what="limit price"),
            base_qty=to_u64(base_lots, what="base lots"),
            max_quote_qty=to_u64(quote_native, what="max quote"),
            client_order_id=pool.client_order_id,
        )
        if side is Side.ASK:
            pool.placed_asks[slot] = req.to_placed()
        else:
            pool.placed_bids[slot] = req.to_placed()
        pool.client_order_id = checked_add(pool.client_order_id, 1, what="client_order_id")
        return req

    # --- constant product -------------------------------------------------
    def _build_xyk(self, pool: Pool, snapshot: VenueSnapshot) -> List[OrderRequest]:
        base_reserve = pool.base_amount
        quote_reserve = pool.quote_amount
        if base_reserve == 0 or quote_reserve == 0:
            return []

        cfg = self.config
        ask_num, bid_num = self._fee_numerators(pool)
        base_lot, quote_lot = snapshot.base_lot_size, snapshot.quote_lot_size
        orders: List[OrderRequest] = []

        last_base, last_quote = base_reserve, quote_reserve
        for i in range(self._ask_levels(pool)):
            a_size = base_reserve * cfg.order_numerators[i] // cfg.order_denominator
            k = last_base * last_quote
            end_base = max(last_base - a_size, 0)
            if end_base <= 0:
                continue
            end_quote = to_u64(k // end_base, what="ask walk quote")
            b_size = end_quote - last_quote
            price = level_price(a_size, b_size, ask_num,
                                fee_denominator=cfg.fee_denominator,
                                base_lot_size=base_lot, quote_lot_size=quote_lot)
            last_base, last_quote = end_base, end_quote

            req = self._offer(pool, snapshot, Side.ASK, i, price, a_size // base_lot, b_size)
            if req is not None:
                orders.append(req)

        last_base, last_quote = base_reserve, quote_reserve
        for i in range(self._bid_levels(pool)):
            b_size = quote_reserve * cfg.order_numerators[i] // cfg.order_denominator
            k = last_base * last_quote
            end_quote = max(last_quote - b_size, 0)
            if end_quote <= 0:
                continue
            end_base = to_u64(k // end_quote, what="bid walk base")
            a_size = end_base - last_base
            price = level_price(a_size, b_size, bid_num,
                                fee_denominator=cfg.fee_denominator,
                                base_lot_size=base_lot, quote_lot_size=quote_lot)
            last_base, last_quote = end_base, end_quote

            req = self._offer(pool, snapshot, Side.BID, i, price, a_size // base_lot, b_size)
            if req is not None:
                orders.append(req)

        return orders

    # --- stableswap -------------------------------------------------------
    def _build_stable(self, pool: Pool, snapshot: VenueSnapshot) -> List[OrderRequest]:
        cfg = self.config
        base_fac, quote_fac = token_decimals_factors(pool.base_decimals, pool.quote_decimals)
        base_reserve = pool.base_amount * base_fac
        quote_reserve = pool.quote_amount * quote_fac
        if base_reserve == 0 or quote_reserve == 0:
            return []

        amp = cfg.amp_coefficient
        d = calc_d(base_reserve, quote_reserve, amp)
        if d is None:
            logger.warning("stableswap D undefined pool=%s base=%d quote=%d; no ladder",
                           pool.pool_id, base_reserve, quote_reserve)
            return []

        ask_num, bid_num = self._fee_numerators(pool)
        base_lot, quote_lot = snapshot.base_lot_size, snapshot.quote_lot_size
        orders: List[OrderRequest] = []

        last_base, last_quote = base_reserve, quote_reserve
        for i in range(self._ask_levels(pool)):
            a_size = base_reserve * cfg.order_numerators[i] // cfg.order_denominator
            end_base = max(last_base - a_size, 0)
            if end_base <= 0 or a_size <= 0:
                continue
            b_size = calc_dy(last_base, last_quote, amp, d, a_size)
            if b_size is None:
                logger.debug("calc_dy did not converge pool=%s ask level=%d", pool.pool_id, i)
                b_size = 0
            end_quote = last_quote + b_size

            a_native, b_native = a_size // base_fac, b_size // quote_fac
            price = level_price(a_native, b_native, ask_num,
                                fee_denominator=cfg.fee_denominator,
                                base_lot_size=base_lot, quote_lot_size=quote_lot)
            last_base, last_quote = end_base, end_quote

            req = self._offer(pool, snapshot, Side.ASK, i, price, a_native // base_lot, b_native)
            if req is not None:
                orders.append(req)

        last_base, last_quote = base_reserve, quote_reserve
        for i in range(self._bid_levels(pool)):
            b_size = quote_reserve * cfg.order_numerators[i] // cfg.order_denominator
            end_quote = max(last_quote - b_size, 0)
            if end_quote <= 0 or b_size <= 0:
                continue
            a_size = calc_dy(last_quote, last_base, amp, d, b_size)
            if a_size is None:
                logger.debug("calc_dy did not converge pool=%s bid level=%d", pool.pool_id, i)
                a_size = 0
            end_base = last_base + a_size

            a_native, b_native = a_size // base_fac, b_size // quote_fac
            price = level_price(a_native, b_native, bid_num,
                                fee_denominator=cfg.fee_denominator,
                                base_lot_size=base_lot, quote_lot_size=quote_lot)
            last_base, last_quote = end_base, end_quote

            req = self._offer(pool, snapshot, Side.BID, i, price, a_native // base_lot, b_native)
            if req is not None:
                orders.append(req)

        return orders


def build_ladder(pool: Pool, snapshot: VenueSnapshot,
                 config: OpenAmmConfig = DEFAULT_CONFIG) -> List[OrderRequest]:
    """Rebuild `pool`'s ladder; see `LadderBuilder.build`."""
    return LadderBuilder(config).build(pool, snapshot)


__all__ = ["LadderBuilder", "build_ladder", "level_price"]
