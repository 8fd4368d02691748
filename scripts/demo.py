"""Demo: an OpenAMM pool quoting its reserves on a paper order book.

Scenarios covered:
S1) XYK pool creation: initial ladder, LP minted
S2) Taker flow on the ladder, then refresh: fills booked, refunds paid
S3) Deposit and withdraw round trip
S4) Stableswap pool with mismatched decimals
S5) Eviction of the outermost ask pauses the pool; restart recovers it
"""
from __future__ import annotations

from typing import Callable, List
import argparse
import logging
import sys

from openamm import (
    OpenAmm,
    PaperVenue,
    InMemoryTokenLedger,
    CurveType,
    MarketAccounts,
    open_orders_for,
)
from openamm.core import fmt_order, fmt_dec, native_to_decimal, OpenAmmError

SIGNER = "alice"
TAKER = "bob"

# ---------- pretty printers ----------

def print_ladder(title: str, engine: OpenAmm, pool_id: str, venue: PaperVenue, *, compact: bool = False) -> None:
    pool = engine.pool(pool_id)
    print(f"\n=== {title} ===")
    print(f"- reserves: base={fmt_dec(native_to_decimal(pool.base_amount, pool.base_decimals))} "
          f"quote={fmt_dec(native_to_decimal(pool.quote_amount, pool.quote_decimals))} "
          f"active={pool.mm_active} next_id={pool.client_order_id}")
    print(f"- volume: base={pool.cumulative_base_volume} quote={pool.cumulative_quote_volume}; "
          f"refunds: base={pool.refund_base_amount} quote={pool.refund_quote_amount}")
    asks, bids = pool.non_empty_asks(), pool.non_empty_bids()
    print(f"- ladder: {len(asks)} asks, {len(bids)} bids")
    if compact:
        return
    for o in reversed(asks):
        print("  ASK " + fmt_order(o, venue.base_lot_size, venue.quote_lot_size,
                                   pool.base_decimals, pool.quote_decimals))
    for o in bids:
        print("  BID " + fmt_order(o, venue.base_lot_size, venue.quote_lot_size,
                                   pool.base_decimals, pool.quote_decimals))


# ---------- build common fixtures ----------

def mk_market(base_decimals: int = 6, quote_decimals: int = 6, *,
              base_lot_size: int = 100_000, quote_lot_size: int = 100):
    ledger = InMemoryTokenLedger()
    ledger.create_mint("BASE", base_decimals)
    ledger.create_mint("QUOTE", quote_decimals)
    for who in (SIGNER, TAKER):
        ledger.mint_to("BASE", who, 10 ** (base_decimals + 4))
        ledger.mint_to("QUOTE", who, 10 ** (quote_decimals + 4))
    venue = PaperVenue(ledger, market="BASE/QUOTE", base_mint="BASE", quote_mint="QUOTE",
                       base_lot_size=base_lot_size, quote_lot_size=quote_lot_size)
    engine = OpenAmm(ledger, [venue])
    return ledger, venue, engine


def accounts(curve_type: CurveType) -> MarketAccounts:
    return MarketAccounts(market="BASE/QUOTE", open_orders=open_orders_for("BASE/QUOTE", curve_type))


# ---------- scenarios ----------

def s1(compact: bool) -> None:
    _, venue, engine = mk_market()
    res = engine.create_pool(accounts(CurveType.XYK), SIGNER, CurveType.XYK, 1_000_000_000, 1_000_000_000)
    print_ladder(f"S1) XYK pool created, lp_minted={res.lp_minted}", engine, res.pool_id, venue, compact=compact)


def s2(compact: bool) -> None:
    ledger, venue, engine = mk_market()
    acc = accounts(CurveType.XYK)
    res = engine.create_pool(acc, SIGNER, CurveType.XYK, 1_000_000_000, 1_000_000_000)
    first_ask = min(o.client_order_id for o in res.orders if o.side.value == "ask")
    first_bid = min(o.client_order_id for o in res.orders if o.side.value == "bid")
    venue.fill(acc.open_orders, first_ask, 5, TAKER)
    venue.fill(acc.open_orders, first_bid, 3, TAKER)
    before = ledger.balance("QUOTE", SIGNER)
    out = engine.refresh_orders(res.pool_id, acc, SIGNER)
    print_ladder(f"S2) after fills + refresh (refunds paid: base={out.refund_base} quote={out.refund_quote}, "
                 f"signer quote +{ledger.balance('QUOTE', SIGNER) - before})",
                 engine, res.pool_id, venue, compact=compact)


def s3(compact: bool) -> None:
    ledger, venue, engine = mk_market()
    acc = accounts(CurveType.XYK)
    res = engine.create_pool(acc, SIGNER, CurveType.XYK, 1_000_000_000, 1_000_000_000)
    dep = engine.deposit(res.pool_id, acc, SIGNER, 1_000_000_000, 1_000_000_000, 0, 0)
    print(f"\n=== S3) deposit: lp {dep.start_lp} -> {dep.end_lp}, base {dep.start_base} -> {dep.end_base}")
    wd = engine.withdraw(res.pool_id, acc, SIGNER, dep.lp_amount)
    print(f"=== S3) withdraw: lp {wd.start_lp} -> {wd.end_lp}, paid base={wd.base_amount} quote={wd.quote_amount}")
    print_ladder("S3) after round trip", engine, res.pool_id, venue, compact=compact)


def s4(compact: bool) -> None:
    _, venue, engine = mk_market(base_decimals=9, quote_decimals=6,
                                 base_lot_size=1_000_000, quote_lot_size=1)
    res = engine.create_pool(accounts(CurveType.STABLE), SIGNER, CurveType.STABLE,
                             1_000_000_000_000, 1_000_000_000)
    print_ladder(f"S4) Stableswap pool (9/6 decimals), lp_minted={res.lp_minted}",
                 engine, res.pool_id, venue, compact=compact)


def s5(compact: bool) -> None:
    _, venue, engine = mk_market()
    acc = accounts(CurveType.XYK)
    res = engine.create_pool(acc, SIGNER, CurveType.XYK, 1_000_000_000, 1_000_000_000)
    outer_ask = max(o.client_order_id for o in res.orders if o.side.value == "ask")
    venue.evict(acc.open_orders, outer_ask)
    out = engine.refresh_orders(res.pool_id, acc, SIGNER)
    print_ladder(f"S5) outermost ask evicted; refresh active={out.active}", engine, res.pool_id, venue,
                 compact=compact)
    try:
        engine.restart_market_making(res.pool_id, acc)
        engine.refresh_orders(res.pool_id, acc, SIGNER)
    except OpenAmmError as e:
        print(f"restart failed: {e}")
        return
    print_ladder("S5) after restart + refresh", engine, res.pool_id, venue, compact=compact)


# -------- scenario registry helpers --------
class Scenario:
    def __init__(self, sid: str, fn: Callable[[bool], None]):
        self.sid = sid
        self.fn = fn

scenarios: List[Scenario] = [
    Scenario("S1", s1),
    Scenario("S2", s2),
    Scenario("S3", s3),
    Scenario("S4", s4),
    Scenario("S5", s5),
]

# ---------- run scenarios ----------
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="OpenAMM paper-venue demo")
    parser.add_argument("--only", type=str, default=None, help="Comma-separated scenario ids to run (e.g., S1,S4)")
    parser.add_argument("--skip", type=str, default=None, help="Comma-separated scenario ids to skip")
    parser.add_argument("--compact", action="store_true", help="Compact output: summaries only, no ladder lines")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Library log level")
    args = parser.parse_args(sys.argv[1:])

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")

    only = {s.strip() for s in args.only.split(",")} if args.only else None
    skip = {s.strip() for s in args.skip.split(",")} if args.skip else set()
    for sc in scenarios:
        if only is not None and sc.sid not in only:
            continue
        if sc.sid in skip:
            continue
        sc.fn(args.compact)
