"""
Formatting helpers (non-core arithmetic).

Core arithmetic uses integers. Decimal here is only for formatting and
convenience (e.g., tests, logs, the demo script): converting native token
units and venue lot prices into human-readable figures.
"""

from decimal import Decimal, localcontext

from .exc import OpenAmmError
from .datatypes import OrderRequest, PlacedOrder


# ---------------------------------------------------------------------------
# Display precision (formatting only)
# ---------------------------------------------------------------------------

#: Significant digits used when converting for display. Solver math does not
#: read this value.
DEFAULT_DECIMAL_PRECISION: int = 28


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def fmt_dec(x: Decimal, places: int = 6) -> str:
    """Format a Decimal with a fixed number of fractional digits.

    The output is stable for logs and tests, e.g.:
      Decimal('1')        -> '1.000000'
      Decimal('1.0028')   -> '1.002800'
    """
    return format(x, f".{places}f")


def native_to_decimal(amount: int, decimals: int) -> Decimal:
    """Convert native integer units to whole tokens (display only)."""
    if amount < 0:
        raise OpenAmmError("native_to_decimal(): negative amount")
    with localcontext() as ctx:
        ctx.prec = DEFAULT_DECIMAL_PRECISION
        return Decimal(amount).scaleb(-decimals)


def lots_price_to_decimal(limit_price: int, base_lot_size: int, quote_lot_size: int,
                          base_decimals: int, quote_decimals: int) -> Decimal:
    """Convert a venue price (quote lots per base lot) to quote tokens per base token."""
    if base_lot_size <= 0 or quote_lot_size <= 0:
        raise OpenAmmError("lots_price_to_decimal(): lot sizes must be positive")
    with localcontext() as ctx:
        ctx.prec = DEFAULT_DECIMAL_PRECISION
        native_ratio = Decimal(limit_price) * quote_lot_size / base_lot_size
        return native_ratio.scaleb(base_decimals - quote_decimals)


def fmt_order(order, base_lot_size: int, quote_lot_size: int,
              base_decimals: int, quote_decimals: int, places: int = 6) -> str:
    """One-line rendering of an OrderRequest or PlacedOrder for logs."""
    if isinstance(order, OrderRequest):
        side = order.side.value
    elif isinstance(order, PlacedOrder):
        side = "slot"
    else:
        raise OpenAmmError("fmt_order(): unsupported order type")
    price = lots_price_to_decimal(order.limit_price, base_lot_size, quote_lot_size,
                                  base_decimals, quote_decimals)
    size = native_to_decimal(order.base_qty * base_lot_size, base_decimals)
    return (f"{side} #{order.client_order_id} px={fmt_dec(price, places)} "
            f"qty={fmt_dec(size, places)} (lots={order.base_qty}, raw_px={order.limit_price})")


__all__ = [
    "DEFAULT_DECIMAL_PRECISION",
    "fmt_dec",
    "native_to_decimal",
    "lots_price_to_decimal",
    "fmt_order",
]
