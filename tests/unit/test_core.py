import pytest

from openamm.core import (
    U64_MAX,
    ORDER_NUMERATORS,
    ASK_CAPACITY,
    BID_CAPACITY,
    STALE_ORDER_WINDOW,
    CurveType,
    Side,
    PlacedOrder,
    EMPTY_SLOT,
    OrderRequest,
    CurrentOrder,
    VenueSnapshot,
    OpenAmmError,
    ArithmeticOverflow,
    SlippageBaseExceeded,
    to_u64,
    checked_add,
    checked_sub,
    checked_mul,
    checked_div,
)


# -----------------------------
# Constants
# -----------------------------

def test_ladder_capacities_follow_proportions():
    assert ASK_CAPACITY == len(ORDER_NUMERATORS) == 10
    assert BID_CAPACITY == 9
    assert STALE_ORDER_WINDOW == 20
    assert sum(ORDER_NUMERATORS) < 10_000


# -----------------------------
# Checked arithmetic
# -----------------------------

def test_to_u64_bounds():
    assert to_u64(0) == 0
    assert to_u64(U64_MAX) == U64_MAX
    with pytest.raises(ArithmeticOverflow):
        to_u64(U64_MAX + 1)
    with pytest.raises(ArithmeticOverflow):
        to_u64(-1)


def test_checked_ops_raise_instead_of_wrapping():
    print("[checked] add/sub/mul/div at the u64 edges")
    assert checked_add(1, 2) == 3
    assert checked_sub(5, 5) == 0
    assert checked_mul(1 << 32, (1 << 32) - 1) == (1 << 64) - (1 << 32)
    assert checked_div(7, 2) == 3
    with pytest.raises(ArithmeticOverflow):
        checked_add(U64_MAX, 1)
    with pytest.raises(ArithmeticOverflow):
        checked_sub(1, 2, what="reserve")
    with pytest.raises(ArithmeticOverflow):
        checked_mul(1 << 32, 1 << 32)
    with pytest.raises(ArithmeticOverflow):
        checked_div(1, 0)


def test_error_messages_carry_kind_and_detail():
    err = SlippageBaseExceeded("optimal=5 min=6")
    assert isinstance(err, OpenAmmError)
    assert "SlippageBaseExceeded" in str(err)
    assert err.detail == "optimal=5 min=6"
    assert str(ArithmeticOverflow()) == ArithmeticOverflow.message


# -----------------------------
# Datatypes
# -----------------------------

def test_order_request_to_placed_and_empty_slot():
    req = OrderRequest(side=Side.BID, limit_price=997, base_qty=8, max_quote_qty=800_000, client_order_id=11)
    slot = req.to_placed()
    assert slot == PlacedOrder(limit_price=997, base_qty=8, max_quote_qty_incl_fees=800_000, client_order_id=11)
    assert not slot.is_empty()
    assert EMPTY_SLOT.is_empty()
    assert CurveType.STABLE.value == 1


def test_snapshot_inventory():
    ask = CurrentOrder(side=Side.ASK, order_id=1, client_order_id=1, limit_price=10, base_qty=1)
    snap = VenueSnapshot(live_orders=(ask,))
    assert not snap.holds_inventory()
    assert VenueSnapshot(native_quote_total=1).holds_inventory()
