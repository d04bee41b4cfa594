"""
Tests for the Coincheck placement strategies.

The client is a Mock, so these tests check exactly which request each mode
sends and how replies are written back onto the order.
"""

from unittest.mock import Mock

import pandas as pd
import pytest

from coincheck_adapter.execution.models import CashMarginType, OrderSide, OrderStatus, OrderType
from coincheck_adapter.utils.errors import OrderRejected
from coincheck_adapter.venues.coincheck_strategies import (
    CashStrategy,
    MarginOpenStrategy,
    NetOutStrategy,
)

NOW = pd.Timestamp("2024-05-01T10:00:00Z")


@pytest.fixture
def client(coincheck_settings):
    client = Mock()
    client.settings = coincheck_settings
    client.new_order.return_value = {
        "success": True,
        "id": 12345,
        "created_at": "2024-05-01T09:59:58.000Z",
    }
    return client


def position(id_, side, amount, created_at="2024-05-01T08:00:00Z"):
    return {"id": str(id_), "side": side, "amount": amount, "created_at": pd.Timestamp(created_at)}


# ============================================================================
# Cash
# ============================================================================


def test_cash_limit_buy(client, clock, make_order):
    order = make_order(size=0.5, price=4_000_000.0, broker_order_id=None)

    CashStrategy(client, clock=clock).place(order)

    client.new_order.assert_called_once_with({
        "pair": "btc_jpy",
        "order_type": "buy",
        "rate": 4_000_000.0,
        "amount": 0.5,
    })
    assert order.broker_order_id == "12345"
    assert order.sent_time == pd.Timestamp("2024-05-01T09:59:58Z")
    assert order.last_updated == NOW
    assert order.status == OrderStatus.OPEN


def test_cash_limit_sell(client, clock, make_order):
    order = make_order(side=OrderSide.SELL, size=0.1, price=4_100_000.0)

    CashStrategy(client, clock=clock).place(order)

    assert client.new_order.call_args.args[0]["order_type"] == "sell"


def test_cash_market_buy_is_sized_in_quote_currency(client, clock, make_order):
    order = make_order(size=0.01, price=4_000_000.0, type=OrderType.MARKET)

    CashStrategy(client, clock=clock).place(order)

    request = client.new_order.call_args.args[0]
    assert request["order_type"] == "market_buy"
    assert request["market_buy_amount"] == pytest.approx(40_000.0)
    assert "amount" not in request


def test_cash_market_sell(client, clock, make_order):
    order = make_order(side=OrderSide.SELL, size=0.2, type=OrderType.MARKET)

    CashStrategy(client, clock=clock).place(order)

    request = client.new_order.call_args.args[0]
    assert request == {"pair": "btc_jpy", "order_type": "market_sell", "amount": 0.2}


def test_sent_time_falls_back_to_clock(client, clock, make_order):
    client.new_order.return_value = {"success": True, "id": 7}
    order = make_order()

    CashStrategy(client, clock=clock).place(order)

    assert order.sent_time == NOW


def test_rejected_order_raises_and_leaves_order_unsent(client, clock, make_order):
    client.new_order.return_value = {"success": False, "error": "Amount is too small"}
    order = make_order(broker_order_id=None)

    with pytest.raises(OrderRejected, match="Amount is too small"):
        CashStrategy(client, clock=clock).place(order)

    assert order.broker_order_id is None
    assert order.last_updated is None


def test_cash_strategy_rejects_other_modes(client, clock, make_order):
    order = make_order(cash_margin_type=CashMarginType.MARGIN_OPEN)

    with pytest.raises(OrderRejected):
        CashStrategy(client, clock=clock).place(order)

    client.new_order.assert_not_called()


def test_cash_position_is_base_currency_balance(client):
    client.get_accounts_balance.return_value = {"jpy": 100_000.0, "btc": 0.75}

    assert CashStrategy(client).query_position() == 0.75


# ============================================================================
# Margin open
# ============================================================================


def test_margin_open_limit_orders(client, clock, make_order):
    strategy = MarginOpenStrategy(client, clock=clock)

    strategy.place(make_order(cash_margin_type=CashMarginType.MARGIN_OPEN, size=0.3))
    strategy.place(make_order(cash_margin_type=CashMarginType.MARGIN_OPEN, side=OrderSide.SELL, size=0.3))

    first, second = [c.args[0] for c in client.new_order.call_args_list]
    assert first["order_type"] == "leverage_buy"
    assert first["rate"] == 4_000_000.0
    assert second["order_type"] == "leverage_sell"


def test_margin_open_market_order_has_no_rate(client, clock, make_order):
    order = make_order(cash_margin_type=CashMarginType.MARGIN_OPEN, type=OrderType.MARKET)

    MarginOpenStrategy(client, clock=clock).place(order)

    assert client.new_order.call_args.args[0]["rate"] is None


def test_margin_position_nets_open_positions(client):
    client.get_open_leverage_positions.return_value = [
        position(1, "buy", 0.5),
        position(2, "sell", 0.2),
    ]

    assert MarginOpenStrategy(client).query_position() == 0.3
    assert NetOutStrategy(client).query_position() == 0.3


# ============================================================================
# Net out
# ============================================================================


def test_net_out_closes_matching_opposite_position(client, clock, make_order):
    client.get_open_leverage_positions.return_value = [
        position(10, "buy", 0.3, "2024-05-01T08:00:00Z"),
        position(11, "buy", 0.3, "2024-05-01T09:00:00Z"),
        position(12, "sell", 0.3),
    ]
    order = make_order(cash_margin_type=CashMarginType.NET_OUT, side=OrderSide.SELL, size=0.3)

    NetOutStrategy(client, clock=clock).place(order)

    request = client.new_order.call_args.args[0]
    assert request["order_type"] == "close_long"
    assert request["position_id"] == 11  # most recent match
    assert request["amount"] == 0.3


def test_net_out_buy_closes_short(client, clock, make_order):
    client.get_open_leverage_positions.return_value = [position(20, "sell", 1.0)]
    order = make_order(cash_margin_type=CashMarginType.NET_OUT, side=OrderSide.BUY, size=1.0)

    NetOutStrategy(client, clock=clock).place(order)

    request = client.new_order.call_args.args[0]
    assert request["order_type"] == "close_short"
    assert request["position_id"] == 20


def test_net_out_opens_when_no_position_matches(client, clock, make_order):
    client.get_open_leverage_positions.return_value = [
        position(30, "buy", 0.5),   # wrong size
        position(31, "sell", 0.3),  # same side
    ]
    order = make_order(cash_margin_type=CashMarginType.NET_OUT, side=OrderSide.SELL, size=0.3)

    NetOutStrategy(client, clock=clock).place(order)

    request = client.new_order.call_args.args[0]
    assert request["order_type"] == "leverage_sell"
    assert "position_id" not in request


def test_net_out_rejects_margin_open_orders(client, clock, make_order):
    order = make_order(cash_margin_type=CashMarginType.MARGIN_OPEN)

    with pytest.raises(OrderRejected):
        NetOutStrategy(client, clock=clock).place(order)
