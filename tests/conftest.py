from __future__ import annotations
from typing import Tuple

import pytest

# Import project primitives
from openamm import (
    OpenAmm,
    PaperVenue,
    InMemoryTokenLedger,
    CurveType,
    MarketAccounts,
    VenueSnapshot,
    Pool,
    open_orders_for,
)


MARKET = "BASE/QUOTE"
BASE_MINT = "BASE"
QUOTE_MINT = "QUOTE"
SIGNER = "alice"
TAKER = "bob"
# Lot sizes of the reference market: 1e9 reserves quote at ~1000 raw price units
BASE_LOT = 100_000
QUOTE_LOT = 100
FUNDING = 100_000_000_000


# -----------------------------
# Test helpers (pure functions)
# -----------------------------


def make_pool(base_amount: int, quote_amount: int, *,
              curve_type: CurveType = CurveType.XYK,
              base_decimals: int = 6, quote_decimals: int = 6) -> Pool:
    """Standalone pool record (no ledger, no venue) for pure-math tests."""
    return Pool.new(
        market=MARKET,
        open_orders=open_orders_for(MARKET, curve_type),
        base_mint=BASE_MINT,
        quote_mint=QUOTE_MINT,
        curve_type=curve_type,
        base_decimals=base_decimals,
        quote_decimals=quote_decimals,
        base_amount=base_amount,
        quote_amount=quote_amount,
    )


def make_snapshot(*, base_lot: int = BASE_LOT, quote_lot: int = QUOTE_LOT, **kw) -> VenueSnapshot:
    return VenueSnapshot(base_lot_size=base_lot, quote_lot_size=quote_lot, **kw)


def accounts_for(curve_type: CurveType) -> MarketAccounts:
    return MarketAccounts(market=MARKET, open_orders=open_orders_for(MARKET, curve_type))


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture()
def ledger() -> InMemoryTokenLedger:
    led = InMemoryTokenLedger()
    led.create_mint(BASE_MINT, 6)
    led.create_mint(QUOTE_MINT, 6)
    for who in (SIGNER, TAKER):
        led.mint_to(BASE_MINT, who, FUNDING)
        led.mint_to(QUOTE_MINT, who, FUNDING)
    return led


@pytest.fixture()
def venue(ledger: InMemoryTokenLedger) -> PaperVenue:
    return PaperVenue(ledger, market=MARKET, base_mint=BASE_MINT, quote_mint=QUOTE_MINT,
                      base_lot_size=BASE_LOT, quote_lot_size=QUOTE_LOT)


@pytest.fixture()
def engine(ledger: InMemoryTokenLedger, venue: PaperVenue) -> OpenAmm:
    return OpenAmm(ledger, [venue])


@pytest.fixture()
def xyk_accounts() -> MarketAccounts:
    return accounts_for(CurveType.XYK)


@pytest.fixture()
def xyk_pool(engine: OpenAmm, xyk_accounts: MarketAccounts) -> Tuple[str, MarketAccounts]:
    """XYK pool funded with 1e9/1e9 by SIGNER; returns (pool_id, accounts)."""
    res = engine.create_pool(xyk_accounts, SIGNER, CurveType.XYK, 1_000_000_000, 1_000_000_000)
    return res.pool_id, xyk_accounts


@pytest.fixture()
def pool_factory():
    return make_pool


@pytest.fixture()
def snapshot_factory():
    return make_snapshot
