"""Pool operations: create, deposit, withdraw, refresh and restart.

Every operation starts by reconciling the previous ladder against the venue
(except create, which has no ladder yet) and, when the pool is still active,
ends by placing a fresh ladder. Operations are all-or-nothing: the pool
record is worked on as a private copy and saved only on success, and the
token ledger and venue are checkpointed and restored if anything raises.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import OpenAmmConfig, DEFAULT_CONFIG
from .core import (
    CurveType,
    MarketAccounts,
    OrderRequest,
    ReconcileResult,
    VenueSnapshot,
    LP_DECIMALS,
    InvalidPair,
    WrongMarketAccount,
    WrongOpenOrdersAccount,
    MarketBaseMintMismatch,
    MarketQuoteMintMismatch,
    MarketMakingAlreadyActive,
    OpenOrdersTokensLocked,
    PoolAlreadyExists,
    checked_add,
    checked_sub,
)
from .ladder import LadderBuilder
from .liquidity import optimal_deposit, lp_to_mint, withdraw_amounts
from .pool import Pool, PoolRepository, InMemoryPoolRepository, pool_id_for, open_orders_for
from .reconcile import cancel_all_and_settle
from .token_ledger import TokenLedger
from .venue import Venue

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreateResult:
    pool_id: str
    lp_minted: int
    orders: List[OrderRequest] = field(default_factory=list)


@dataclass(frozen=True)
class LiquidityResult:
    """Deposit/withdraw outcome with reserves and LP supply before and after."""

    pool_id: str
    base_amount: int
    quote_amount: int
    lp_amount: int
    start_base: int
    start_quote: int
    start_lp: int
    end_base: int
    end_quote: int
    end_lp: int


@dataclass(frozen=True)
class RefreshResult:
    pool_id: str
    active: bool
    reconcile: ReconcileResult
    orders: List[OrderRequest] = field(default_factory=list)
    refund_base: int = 0
    refund_quote: int = 0


# ---------------------------------------------------------------------------
# Sandbox
# ---------------------------------------------------------------------------

class OperationSandbox:
    """Checkpoint the ledger and venue; restore both if the body raises.

    The exception always propagates unchanged.
    """

    def __init__(self, ledger: TokenLedger, venue: Venue, name: str) -> None:
        self.ledger = ledger
        self.venue = venue
        self.name = name

    def __enter__(self) -> "OperationSandbox":
        self._ledger_state = self.ledger.checkpoint()
        self._venue_state = self.venue.checkpoint()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.ledger.restore(self._ledger_state)
            self.venue.restore(self._venue_state)
            logger.warning("%s rolled back: %s", self.name, exc)
        return False


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class OpenAmm:
    """Entry point for pool operations over a set of venue markets.

    Parameters
    ----------
    ledger : TokenLedger
        Holds every token balance, including the pool vaults and LP mints.
    venues : Iterable[Venue]
        One venue per market; looked up by `venue.market`.
    repository : PoolRepository | None, optional
        Pool store; defaults to an in-memory repository.
    config : OpenAmmConfig, optional
        Curve, fee and ladder parameters shared by all pools.
    """

    def __init__(self, ledger: TokenLedger, venues: Iterable[Venue], *,
                 repository: Optional[PoolRepository] = None,
                 config: OpenAmmConfig = DEFAULT_CONFIG) -> None:
        self.ledger = ledger
        self.venues: Dict[str, Venue] = {v.market: v for v in venues}
        self.repository = repository if repository is not None else InMemoryPoolRepository()
        self.config = config
        self.ladder = LadderBuilder(config)

    # --- lookups ----------------------------------------------------------
    def pool(self, pool_id: str) -> Pool:
        """Copy of the stored pool record."""
        return self.repository.load(pool_id)

    def _venue(self, market: str) -> Venue:
        try:
            return self.venues[market]
        except KeyError:
            raise WrongMarketAccount(market) from None

    def _load_checked(self, pool_id: str, accounts: MarketAccounts) -> Pool:
        pool = self.repository.load(pool_id)
        if accounts.market != pool.market:
            raise WrongMarketAccount(f"expected {pool.market}, got {accounts.market}")
        if accounts.open_orders != pool.open_orders:
            raise WrongOpenOrdersAccount(
                f"expected {pool.open_orders}, got {accounts.open_orders}")
        return pool

    # --- shared steps -----------------------------------------------------
    def _reconcile(self, pool: Pool, venue: Venue) -> tuple:
        snapshot = venue.snapshot(pool.open_orders)
        result = cancel_all_and_settle(pool, snapshot, self.config)
        venue.cancel(pool.open_orders, result.cancels)
        venue.settle(pool.open_orders, pool.base_vault, pool.quote_vault)
        return snapshot, result

    def _place(self, pool: Pool, venue: Venue, snapshot: VenueSnapshot) -> List[OrderRequest]:
        orders = self.ladder.build(pool, snapshot)
        if orders:
            venue.submit(pool.open_orders, orders, pool.base_vault, pool.quote_vault)
        return orders

    # --- operations -------------------------------------------------------
    def create_pool(self, market_accounts: MarketAccounts, signer: str,
                    curve_type: CurveType, initial_base: int, initial_quote: int, *,
                    base_mint: Optional[str] = None,
                    quote_mint: Optional[str] = None) -> CreateResult:
        """Create a pool on `market_accounts.market`, fund it and quote it.

        `base_mint`/`quote_mint` default to the market's own mints; when
        given they must match them.

        Raises
        ------
        InvalidPair, MarketBaseMintMismatch, MarketQuoteMintMismatch,
        WrongOpenOrdersAccount, PoolAlreadyExists, InsufficientFunds,
        InvariantUndefined
        """
        venue = self._venue(market_accounts.market)
        base_mint = venue.base_mint if base_mint is None else base_mint
        quote_mint = venue.quote_mint if quote_mint is None else quote_mint
        if base_mint == quote_mint:
            raise InvalidPair(base_mint)
        if base_mint != venue.base_mint:
            raise MarketBaseMintMismatch(f"market={venue.base_mint} given={base_mint}")
        if quote_mint != venue.quote_mint:
            raise MarketQuoteMintMismatch(f"market={venue.quote_mint} given={quote_mint}")
        expected_oo = open_orders_for(market_accounts.market, curve_type)
        if market_accounts.open_orders != expected_oo:
            raise WrongOpenOrdersAccount(
                f"expected {expected_oo}, got {market_accounts.open_orders}")
        pool_id = pool_id_for(market_accounts.market, curve_type)
        if self.repository.exists(pool_id):
            raise PoolAlreadyExists(pool_id)

        with OperationSandbox(self.ledger, venue, "create_pool"):
            pool = Pool.new(
                market=market_accounts.market,
                open_orders=market_accounts.open_orders,
                base_mint=base_mint,
                quote_mint=quote_mint,
                curve_type=curve_type,
                base_decimals=self.ledger.decimals(base_mint),
                quote_decimals=self.ledger.decimals(quote_mint),
                base_amount=initial_base,
                quote_amount=initial_quote,
            )
            venue.init_open_orders(pool.open_orders, pool.pool_id)
            self.ledger.transfer(base_mint, signer, pool.base_vault, initial_base)
            self.ledger.transfer(quote_mint, signer, pool.quote_vault, initial_quote)

            snapshot = venue.snapshot(pool.open_orders)
            orders = self._place(pool, venue, snapshot)

            lp_minted = lp_to_mint(curve_type, 0, 0, 0, initial_base, initial_quote,
                                   pool.base_decimals, pool.quote_decimals,
                                   amp=self.config.amp_coefficient,
                                   minimum_liquidity=self.config.minimum_liquidity)
            self.ledger.create_mint(pool.lp_mint, LP_DECIMALS)
            self.ledger.mint_to(pool.lp_mint, signer, lp_minted)
            self.repository.create(pool)

        logger.info("created pool=%s curve=%s base=%d quote=%d lp=%d",
                    pool.pool_id, curve_type.name, initial_base, initial_quote, lp_minted)
        return CreateResult(pool_id=pool.pool_id, lp_minted=lp_minted, orders=orders)

    def deposit(self, pool_id: str, market_accounts: MarketAccounts, signer: str,
                desired_base: int, desired_quote: int,
                min_base: int, min_quote: int) -> Optional[LiquidityResult]:
        """Add liquidity at the pool ratio and mint LP.

        Returns None when reconciliation paused the pool; the reconciliation
        itself is still committed.
        """
        pool = self._load_checked(pool_id, market_accounts)
        venue = self._venue(pool.market)
        with OperationSandbox(self.ledger, venue, "deposit"):
            snapshot, _ = self._reconcile(pool, venue)
            if not pool.mm_active:
                self.repository.save(pool)
                logger.info("deposit skipped: pool=%s is paused", pool_id)
                return None

            start_base, start_quote = pool.base_amount, pool.quote_amount
            start_lp = self.ledger.supply(pool.lp_mint)
            base_amount, quote_amount = optimal_deposit(
                start_base, start_quote, desired_base, desired_quote, min_base, min_quote)

            self.ledger.transfer(pool.base_mint, signer, pool.base_vault, base_amount)
            self.ledger.transfer(pool.quote_mint, signer, pool.quote_vault, quote_amount)
            pool.base_amount = checked_add(pool.base_amount, base_amount, what="base_amount")
            pool.quote_amount = checked_add(pool.quote_amount, quote_amount, what="quote_amount")

            lp_minted = lp_to_mint(pool.curve_type, start_lp, start_base, start_quote,
                                   base_amount, quote_amount,
                                   pool.base_decimals, pool.quote_decimals,
                                   amp=self.config.amp_coefficient,
                                   minimum_liquidity=self.config.minimum_liquidity)

            self._place(pool, venue, snapshot)
            self.ledger.mint_to(pool.lp_mint, signer, lp_minted)
            self.repository.save(pool)

        result = LiquidityResult(
            pool_id=pool_id,
            base_amount=base_amount,
            quote_amount=quote_amount,
            lp_amount=lp_minted,
            start_base=start_base,
            start_quote=start_quote,
            start_lp=start_lp,
            end_base=pool.base_amount,
            end_quote=pool.quote_amount,
            end_lp=self.ledger.supply(pool.lp_mint),
        )
        logger.info("deposit pool=%s base=%d quote=%d lp=%d", pool_id,
                    base_amount, quote_amount, lp_minted)
        return result

    def withdraw(self, pool_id: str, market_accounts: MarketAccounts, signer: str,
                 lp_amount: int) -> Optional[LiquidityResult]:
        """Burn LP and pay out the pro-rata share of both reserves.

        Returns None when reconciliation paused the pool.
        """
        pool = self._load_checked(pool_id, market_accounts)
        venue = self._venue(pool.market)
        with OperationSandbox(self.ledger, venue, "withdraw"):
            snapshot, _ = self._reconcile(pool, venue)
            if not pool.mm_active:
                self.repository.save(pool)
                logger.info("withdraw skipped: pool=%s is paused", pool_id)
                return None

            start_base, start_quote = pool.base_amount, pool.quote_amount
            start_lp = self.ledger.supply(pool.lp_mint)
            self.ledger.burn(pool.lp_mint, signer, lp_amount)
            base_amount, quote_amount = withdraw_amounts(lp_amount, start_base, start_quote, start_lp)

            pool.base_amount = checked_sub(pool.base_amount, base_amount, what="base_amount")
            pool.quote_amount = checked_sub(pool.quote_amount, quote_amount, what="quote_amount")
            self.ledger.transfer(pool.base_mint, pool.base_vault, signer, base_amount)
            self.ledger.transfer(pool.quote_mint, pool.quote_vault, signer, quote_amount)

            self._place(pool, venue, snapshot)
            self.repository.save(pool)

        result = LiquidityResult(
            pool_id=pool_id,
            base_amount=base_amount,
            quote_amount=quote_amount,
            lp_amount=lp_amount,
            start_base=start_base,
            start_quote=start_quote,
            start_lp=start_lp,
            end_base=pool.base_amount,
            end_quote=pool.quote_amount,
            end_lp=self.ledger.supply(pool.lp_mint),
        )
        logger.info("withdraw pool=%s lp=%d base=%d quote=%d", pool_id,
                    lp_amount, base_amount, quote_amount)
        return result

    def refresh_orders(self, pool_id: str, market_accounts: MarketAccounts,
                       signer: str) -> RefreshResult:
        """Reconcile, requote, and pay the accumulated refunds to `signer`."""
        pool = self._load_checked(pool_id, market_accounts)
        venue = self._venue(pool.market)
        with OperationSandbox(self.ledger, venue, "refresh_orders"):
            snapshot, reconciled = self._reconcile(pool, venue)
            if not pool.mm_active:
                self.repository.save(pool)
                logger.info("refresh stopped: pool=%s is paused", pool_id)
                return RefreshResult(pool_id=pool_id, active=False, reconcile=reconciled)

            orders = self._place(pool, venue, snapshot)

            refund_base, refund_quote = pool.refund_base_amount, pool.refund_quote_amount
            pool.refund_base_amount = 0
            pool.refund_quote_amount = 0
            self.ledger.transfer(pool.base_mint, pool.base_vault, signer, refund_base)
            self.ledger.transfer(pool.quote_mint, pool.quote_vault, signer, refund_quote)
            self.repository.save(pool)

        if refund_base or refund_quote:
            logger.info("refunds paid pool=%s signer=%s base=%d quote=%d",
                        pool_id, signer, refund_base, refund_quote)
        return RefreshResult(pool_id=pool_id, active=True, reconcile=reconciled,
                             orders=orders, refund_base=refund_base, refund_quote=refund_quote)

    def restart_market_making(self, pool_id: str, market_accounts: MarketAccounts) -> Pool:
        """Resume a paused pool once the venue holds none of its funds.

        Reserves are re-read from the vaults (less any refunds still owed),
        which undoes the phantom fills booked when an order was evicted. No
        ladder is placed; the next refresh does that.

        Raises
        ------
        MarketMakingAlreadyActive, OpenOrdersTokensLocked
        """
        pool = self._load_checked(pool_id, market_accounts)
        if pool.mm_active:
            raise MarketMakingAlreadyActive(pool_id)
        venue = self._venue(pool.market)
        with OperationSandbox(self.ledger, venue, "restart_market_making"):
            snapshot, _ = self._reconcile(pool, venue)
            if snapshot.holds_inventory():
                raise OpenOrdersTokensLocked(
                    f"base={snapshot.native_base_total} quote={snapshot.native_quote_total}")

            pool.base_amount = checked_sub(
                self.ledger.balance(pool.base_mint, pool.base_vault),
                pool.refund_base_amount, what="base_amount")
            pool.quote_amount = checked_sub(
                self.ledger.balance(pool.quote_mint, pool.quote_vault),
                pool.refund_quote_amount, what="quote_amount")
            pool.mm_active = True
            self.repository.save(pool)

        logger.info("market making restarted pool=%s base=%d quote=%d",
                    pool_id, pool.base_amount, pool.quote_amount)
        return pool


__all__ = [
    "OpenAmm",
    "OperationSandbox",
    "CreateResult",
    "LiquidityResult",
    "RefreshResult",
]
