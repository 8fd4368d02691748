# tests/test_engine.py
"""End-to-end pool operations on the reference market (1e9/1e9, lots 1e5/100)."""
import copy

import pytest

from openamm import OpenAmm, CurveType, MarketAccounts, OrderRequest, Side, open_orders_for, pool_id_for
from openamm.pool import PoolRepository
from openamm.core import (
    InvalidPair,
    MarketBaseMintMismatch,
    MarketQuoteMintMismatch,
    WrongOpenOrdersAccount,
    WrongMarketAccount,
    PoolAlreadyExists,
    SlippageQuoteExceeded,
    MarketMakingAlreadyActive,
    OpenOrdersTokensLocked,
    InsufficientFunds,
    InvariantUndefined,
    PoolNotFound,
    OpenAmmError,
)

E9 = 1_000_000_000
# mirrors the funded ledger in conftest.py
MARKET = "BASE/QUOTE"
BASE_MINT = "BASE"
QUOTE_MINT = "QUOTE"
SIGNER = "alice"
TAKER = "bob"
FUNDING = 100_000_000_000


def accounts_for(curve_type):
    return MarketAccounts(market=MARKET, open_orders=open_orders_for(MARKET, curve_type))


def _custody_matches_reserves(engine, venue, pool_id):
    """Vault plus venue-held funds cover reserves plus owed refunds exactly."""
    pool = engine.pool(pool_id)
    snap = venue.snapshot(pool.open_orders)
    base = engine.ledger.balance(pool.base_mint, pool.base_vault) + snap.native_base_total
    quote = engine.ledger.balance(pool.quote_mint, pool.quote_vault) + snap.native_quote_total
    return (base, quote) == (pool.base_amount + pool.refund_base_amount,
                             pool.quote_amount + pool.refund_quote_amount)


# -----------------------------
# create_pool
# -----------------------------

def test_create_xyk_pool_places_full_ladder(engine, venue, ledger, xyk_accounts):
    res = engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9)
    pool = engine.pool(res.pool_id)
    print("[create] lp:", res.lp_minted, "orders:", len(res.orders))

    assert res.lp_minted == 999_999_999
    assert ledger.balance(pool.lp_mint, SIGNER) == 999_999_999
    assert ledger.decimals(pool.lp_mint) == 6
    assert (pool.base_amount, pool.quote_amount) == (E9, E9)
    assert len(pool.non_empty_asks()) == 10
    assert len(pool.non_empty_bids()) == 9
    assert pool.client_order_id == 20
    assert len(venue.snapshot(pool.open_orders).live_orders) == 19
    assert ledger.balance(BASE_MINT, SIGNER) == FUNDING - E9
    assert _custody_matches_reserves(engine, venue, res.pool_id)


def test_create_stable_pool_mints_d(engine):
    res = engine.create_pool(accounts_for(CurveType.STABLE), SIGNER, CurveType.STABLE, E9, E9)
    assert res.lp_minted == 2 * E9
    assert engine.pool(res.pool_id).curve_type is CurveType.STABLE


def test_both_curves_can_share_a_market(engine, xyk_pool):
    engine.create_pool(accounts_for(CurveType.STABLE), SIGNER, CurveType.STABLE, E9, E9)
    assert len(engine.repository) == 2


def test_create_rejects_same_mint_pair(engine, xyk_accounts):
    with pytest.raises(InvalidPair):
        engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9,
                           base_mint=QUOTE_MINT, quote_mint=QUOTE_MINT)


def test_create_rejects_foreign_mints(engine, ledger, xyk_accounts):
    ledger.create_mint("OTHER", 6)
    with pytest.raises(MarketBaseMintMismatch):
        engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9, base_mint="OTHER")
    with pytest.raises(MarketQuoteMintMismatch):
        engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9, quote_mint="OTHER")


def test_create_rejects_wrong_accounts(engine):
    with pytest.raises(WrongOpenOrdersAccount):
        engine.create_pool(MarketAccounts(MARKET, "somebody-elses-oo"), SIGNER,
                           CurveType.XYK, E9, E9)
    with pytest.raises(WrongMarketAccount):
        engine.create_pool(MarketAccounts("NO/MARKET", "oo"), SIGNER, CurveType.XYK, E9, E9)


def test_create_twice_fails(engine, xyk_pool, xyk_accounts):
    with pytest.raises(PoolAlreadyExists):
        engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9)


def test_create_without_funds_leaves_no_trace(engine, venue, ledger, xyk_accounts):
    with pytest.raises(InsufficientFunds):
        engine.create_pool(xyk_accounts, "carol", CurveType.XYK, E9, E9)
    assert len(engine.repository) == 0
    assert not ledger.has_mint(f"{pool_id_for(MARKET, CurveType.XYK)}/lp-mint")
    with pytest.raises(OpenAmmError):
        venue.snapshot(xyk_accounts.open_orders)
    # the open-orders account was rolled back, so a funded retry succeeds
    assert engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9).lp_minted == 999_999_999


# -----------------------------
# deposit / withdraw
# -----------------------------

def test_deposit_then_withdraw_round_trip(engine, venue, ledger, xyk_pool):
    pool_id, accts = xyk_pool
    dep = engine.deposit(pool_id, accts, SIGNER, E9, E9, 0, 0)
    print("[deposit]", dep)
    assert (dep.base_amount, dep.quote_amount) == (E9, E9)
    assert dep.lp_amount == 999_999_999
    assert (dep.start_lp, dep.end_lp) == (999_999_999, 1_999_999_998)
    assert (dep.end_base, dep.end_quote) == (2 * E9, 2 * E9)
    assert _custody_matches_reserves(engine, venue, pool_id)

    wd = engine.withdraw(pool_id, accts, SIGNER, 999_999_999)
    assert (wd.base_amount, wd.quote_amount) == (E9, E9)
    assert (wd.end_base, wd.end_quote) == (E9, E9)
    assert wd.end_lp == 999_999_999
    assert ledger.balance(BASE_MINT, SIGNER) == FUNDING - E9
    assert _custody_matches_reserves(engine, venue, pool_id)


def test_deposit_trims_to_pool_ratio(engine, xyk_pool):
    pool_id, accts = xyk_pool
    dep = engine.deposit(pool_id, accts, SIGNER, 1_000_000, 5_000_000, 0, 0)
    assert (dep.base_amount, dep.quote_amount) == (1_000_000, 1_000_000)


def test_deposit_slippage_rolls_everything_back(engine, venue, ledger, xyk_pool):
    pool_id, accts = xyk_pool
    before_pool = engine.pool(pool_id)
    before_orders = venue.snapshot(before_pool.open_orders).live_orders
    before_vault = ledger.balance(BASE_MINT, before_pool.base_vault)

    with pytest.raises(SlippageQuoteExceeded):
        engine.deposit(pool_id, accts, SIGNER, 1_000_000, 5_000_000, 0, 3_000_000)

    assert engine.pool(pool_id) == before_pool
    assert venue.snapshot(before_pool.open_orders).live_orders == before_orders
    assert len(before_orders) == 19
    assert ledger.balance(BASE_MINT, before_pool.base_vault) == before_vault


def test_operations_check_market_accounts(engine, xyk_pool):
    pool_id, _ = xyk_pool
    with pytest.raises(WrongMarketAccount):
        engine.deposit(pool_id, MarketAccounts("NO/MARKET", "x"), SIGNER, 1, 1, 0, 0)
    with pytest.raises(WrongOpenOrdersAccount):
        engine.withdraw(pool_id, MarketAccounts(MARKET, "x"), SIGNER, 1)
    with pytest.raises(WrongOpenOrdersAccount):
        engine.refresh_orders(pool_id, accounts_for(CurveType.STABLE), SIGNER)


def test_withdraw_more_lp_than_held_fails(engine, xyk_pool):
    pool_id, accts = xyk_pool
    with pytest.raises(InsufficientFunds):
        engine.withdraw(pool_id, accts, TAKER, 1)


# -----------------------------
# refresh_orders
# -----------------------------

def test_refresh_books_fills_and_pays_refunds(engine, venue, ledger, xyk_pool):
    pool_id, accts = xyk_pool
    oo = engine.pool(pool_id).open_orders
    venue.fill(oo, 1, 3, TAKER)   # ask @1002: taker buys 3 lots
    venue.fill(oo, 11, 2, TAKER)  # bid @997: taker sells 2 lots

    res = engine.refresh_orders(pool_id, accts, "cranker")
    pool = engine.pool(pool_id)
    print("[refresh]", res.reconcile, "refunds:", res.refund_base, res.refund_quote)

    assert res.active
    assert (res.refund_base, res.refund_quote) == (20, 30)
    assert ledger.balance(BASE_MINT, "cranker") == 20
    assert ledger.balance(QUOTE_MINT, "cranker") == 30
    assert pool.refund_base_amount == pool.refund_quote_amount == 0
    assert pool.base_amount == E9 - 300_000 + 200_000 - 20
    assert pool.quote_amount == E9 + 300_600 - 30 - 199_400
    assert pool.cumulative_base_volume == 200_000
    assert pool.cumulative_quote_volume == 300_600
    assert len(res.orders) == 19
    assert [o.client_order_id for o in res.orders] == list(range(20, 39))
    assert _custody_matches_reserves(engine, venue, pool_id)


def test_refresh_without_fills_requotes_same_prices(engine, venue, xyk_pool):
    pool_id, accts = xyk_pool
    oo = engine.pool(pool_id).open_orders
    first = [(o.side, o.limit_price, o.base_qty) for o in venue.open_orders_of(oo)]
    res = engine.refresh_orders(pool_id, accts, SIGNER)
    again = [(o.side, o.limit_price, o.base_qty) for o in res.orders]
    assert again == first
    assert res.refund_base == res.refund_quote == 0


def test_refresh_respects_external_top_of_book(engine, venue, xyk_pool):
    pool_id, accts = xyk_pool
    venue.set_top_of_book(1_100, None)
    res = engine.refresh_orders(pool_id, accts, SIGNER)
    asks = [o for o in res.orders if o.side is Side.ASK]
    assert min(o.limit_price for o in asks) == 1_101


# -----------------------------
# Pause / restart
# -----------------------------

def test_evicted_outer_order_pauses_until_restart(engine, venue, ledger, xyk_pool):
    pool_id, accts = xyk_pool
    oo = engine.pool(pool_id).open_orders
    venue.evict(oo, 10)

    res = engine.refresh_orders(pool_id, accts, SIGNER)
    assert not res.active
    assert res.reconcile.deactivated
    assert res.orders == []
    paused = engine.pool(pool_id)
    assert not paused.mm_active
    assert paused.base_amount == E9 - 125_000_000
    assert venue.open_orders_of(oo) == []

    assert engine.deposit(pool_id, accts, SIGNER, E9, E9, 0, 0) is None
    assert engine.withdraw(pool_id, accts, SIGNER, 1) is None

    restarted = engine.restart_market_making(pool_id, accts)
    print("[restart]", restarted.base_amount, restarted.quote_amount, restarted.refund_quote_amount)
    assert restarted.mm_active
    assert restarted.base_amount == E9
    assert restarted.quote_amount + restarted.refund_quote_amount == E9
    assert engine.pool(pool_id) == restarted
    assert _custody_matches_reserves(engine, venue, pool_id)

    res = engine.refresh_orders(pool_id, accts, SIGNER)
    assert res.active and len(res.orders) == 19


def test_restart_when_active_fails(engine, xyk_pool):
    pool_id, accts = xyk_pool
    with pytest.raises(MarketMakingAlreadyActive):
        engine.restart_market_making(pool_id, accts)


def test_restart_refused_while_venue_holds_funds(engine, venue, xyk_pool):
    pool_id, accts = xyk_pool
    pool = engine.pool(pool_id)
    venue.evict(pool.open_orders, 10)
    engine.refresh_orders(pool_id, accts, SIGNER)

    stray = OrderRequest(side=Side.ASK, limit_price=2_000, base_qty=1,
                         max_quote_qty=200_000, client_order_id=999)
    venue.submit(pool.open_orders, [stray], pool.base_vault, pool.quote_vault)
    paused = engine.pool(pool_id)

    with pytest.raises(OpenOrdersTokensLocked):
        engine.restart_market_making(pool_id, accts)
    assert engine.pool(pool_id) == paused
    assert [o.client_order_id for o in venue.open_orders_of(pool.open_orders)] == [999]


# -----------------------------
# Stableswap pools
# -----------------------------

def test_stable_deposit_withdraw_and_refresh(engine, venue, ledger):
    accts = accounts_for(CurveType.STABLE)
    pool_id = engine.create_pool(accts, SIGNER, CurveType.STABLE, E9, E9).pool_id

    # supply * (D1 - D0) / D0 = 2e9 * (4e9 - 2e9) / 2e9
    dep = engine.deposit(pool_id, accts, SIGNER, E9, E9, 0, 0)
    print("[stable deposit]", dep)
    assert (dep.base_amount, dep.quote_amount) == (E9, E9)
    assert dep.lp_amount == 2 * E9
    assert (dep.start_lp, dep.end_lp) == (2 * E9, 4 * E9)
    assert _custody_matches_reserves(engine, venue, pool_id)

    wd = engine.withdraw(pool_id, accts, SIGNER, 2 * E9)
    assert (wd.base_amount, wd.quote_amount) == (E9, E9)
    assert (wd.end_base, wd.end_quote, wd.end_lp) == (E9, E9, 2 * E9)
    assert ledger.balance(QUOTE_MINT, SIGNER) == FUNDING - E9

    oo = engine.pool(pool_id).open_orders
    ask = next(o for o in venue.open_orders_of(oo) if o.side is Side.ASK)
    venue.fill(oo, ask.client_order_id, 3, TAKER)
    res = engine.refresh_orders(pool_id, accts, "cranker")
    assert res.active
    assert res.refund_quote == 3 * ask.limit_price * 100 // 10_000
    assert ledger.balance(QUOTE_MINT, "cranker") == res.refund_quote
    assert _custody_matches_reserves(engine, venue, pool_id)


def test_one_sided_stable_create_fails_cleanly(engine, ledger):
    accts = accounts_for(CurveType.STABLE)
    with pytest.raises(InvariantUndefined):
        engine.create_pool(accts, SIGNER, CurveType.STABLE, E9, 0)
    assert issubclass(InvariantUndefined, OpenAmmError)
    assert len(engine.repository) == 0
    assert ledger.balance(BASE_MINT, SIGNER) == FUNDING


# -----------------------------
# Pluggable repository
# -----------------------------

class _DictRepository:
    """Implements exactly the PoolRepository methods."""

    def __init__(self):
        self.pools = {}

    def create(self, pool):
        if pool.pool_id in self.pools:
            raise PoolAlreadyExists(pool.pool_id)
        self.pools[pool.pool_id] = copy.deepcopy(pool)

    def load(self, pool_id):
        try:
            return copy.deepcopy(self.pools[pool_id])
        except KeyError:
            raise PoolNotFound(pool_id) from None

    def save(self, pool):
        self.pools[pool.pool_id] = copy.deepcopy(pool)

    def exists(self, pool_id):
        return pool_id in self.pools


def test_repository_protocol_covers_engine_needs(ledger, venue, xyk_accounts):
    public = {n for n in dir(PoolRepository) if not n.startswith("_")}
    assert public == {"create", "load", "save", "exists"}

    engine = OpenAmm(ledger, [venue], repository=_DictRepository())
    pool_id = engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9).pool_id
    assert engine.refresh_orders(pool_id, xyk_accounts, SIGNER).active
    with pytest.raises(PoolAlreadyExists):
        engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, E9, E9)
