"""Pool configuration: curve parameters, fees and ladder shape."""
from __future__ import annotations

from dataclasses import dataclass

from .core import (
    CurveType,
    ORDER_NUMERATORS,
    ORDER_DENOMINATOR,
    FEE_DENOMINATOR,
    LP_FEE_BPS,
    STABLESWAP_FEE_BPS,
    REFUND_DENOMINATOR,
    MINIMUM_LIQUIDITY,
    STABLESWAP_AMP_COEFFICIENT,
    STALE_ORDER_WINDOW,
)


@dataclass(frozen=True)
class OpenAmmConfig:
    """Engine configuration.

    order_numerators: parts per `order_denominator` of the refresh-time
    reserve quoted at each ladder level; asks use all of them, bids all but
    the last.
    xyk_fee_bps / stable_fee_bps: spread each side of the ladder charges.
    refund_denominator: one part in this many of every fill is skimmed into
    the pool's refund accumulators.
    """
    amp_coefficient: int = STABLESWAP_AMP_COEFFICIENT
    xyk_fee_bps: int = LP_FEE_BPS
    stable_fee_bps: int = STABLESWAP_FEE_BPS
    fee_denominator: int = FEE_DENOMINATOR
    order_numerators: tuple = ORDER_NUMERATORS
    order_denominator: int = ORDER_DENOMINATOR
    refund_denominator: int = REFUND_DENOMINATOR
    minimum_liquidity: int = MINIMUM_LIQUIDITY
    stale_order_window: int = STALE_ORDER_WINDOW

    def __post_init__(self) -> None:
        if not self.order_numerators:
            raise ValueError("order_numerators must not be empty")
        if any(n <= 0 for n in self.order_numerators):
            raise ValueError("order_numerators must be positive")
        if sum(self.order_numerators) >= self.order_denominator:
            raise ValueError("ladder proportions must sum below order_denominator")
        for name in ("xyk_fee_bps", "stable_fee_bps"):
            bps = getattr(self, name)
            if not (0 <= bps < self.fee_denominator):
                raise ValueError(f"{name} must satisfy 0 <= bps < {self.fee_denominator}")
        if self.refund_denominator <= 0:
            raise ValueError("refund_denominator must be > 0")
        if self.amp_coefficient <= 0:
            raise ValueError("amp_coefficient must be > 0")

    @property
    def ask_capacity(self) -> int:
        return len(self.order_numerators)

    @property
    def bid_capacity(self) -> int:
        return len(self.order_numerators) - 1

    def fee_bps(self, curve_type: CurveType) -> int:
        """Spread charged by the ladder for a given curve."""
        if curve_type is CurveType.STABLE:
            return self.stable_fee_bps
        return self.xyk_fee_bps


DEFAULT_CONFIG = OpenAmmConfig()


__all__ = ["OpenAmmConfig", "DEFAULT_CONFIG"]
