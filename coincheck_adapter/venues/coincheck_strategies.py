"""
Coincheck placement strategies, one per trading mode.

**Conceptual**: Coincheck accepts every order through the same endpoint but
the `order_type` field decides which book it lands in:

  - Cash:        buy / sell (limit), market_buy / market_sell
  - Margin open: leverage_buy / leverage_sell
  - Net out:     close_long / close_short against an existing position,
                 or a fresh leverage order when nothing can be closed

Positions are reported differently too: cash mode reads the base-currency
balance, margin modes net the open leverage positions.

Each strategy implements the CashMarginTypeStrategy protocol
(query_position / place) and is looked up through StrategyRegistry.
"""

import logging
from typing import Any, Dict, Optional

from coincheck_adapter.execution.models import CashMarginType, Order, OrderSide, OrderType
from coincheck_adapter.utils.errors import OrderRejected
from coincheck_adapter.utils.math import FILL_TOLERANCE_PCT, almost_equal, signed_position_size
from coincheck_adapter.utils.time import Clock, RealClock, to_utc_timestamp

logger = logging.getLogger(__name__)


class _CoincheckStrategy:
    """Shared plumbing: mode check, submission and reply handling."""

    cash_margin_type: CashMarginType

    def __init__(self, client, clock: Optional[Clock] = None):
        self.client = client
        self.clock = clock or RealClock()

    @property
    def pair(self) -> str:
        return self.client.settings.pair

    @property
    def base_currency(self) -> str:
        return self.client.settings.base_currency

    def _check_mode(self, order: Order) -> None:
        if order.cash_margin_type != self.cash_margin_type:
            raise OrderRejected(
                f"{type(self).__name__} cannot place a {order.cash_margin_type.value} order."
            )

    def _submit(self, order: Order, request: Dict[str, Any]) -> None:
        logger.info(
            "Sending %s %s %s @ %s (%s)",
            request["order_type"], order.size, self.pair, order.price, order.id,
        )
        reply = self.client.new_order(request)
        if not reply.get("success"):
            raise OrderRejected(f"Send failed: {reply.get('error', reply)}")

        now = self.clock.now()
        order.broker_order_id = str(reply["id"])
        created_at = reply.get("created_at")
        order.sent_time = to_utc_timestamp(created_at) if created_at else now
        order.last_updated = now
        logger.info("Order %s accepted as %s", order.id, order.broker_order_id)


class CashStrategy(_CoincheckStrategy):
    """Spot trading against the account's own balances."""

    cash_margin_type = CashMarginType.CASH

    def query_position(self) -> float:
        balance = self.client.get_accounts_balance()
        return float(balance[self.base_currency])

    def place(self, order: Order) -> None:
        self._check_mode(order)
        request: Dict[str, Any] = {"pair": self.pair}
        if order.type == OrderType.LIMIT:
            request["order_type"] = "buy" if order.side == OrderSide.BUY else "sell"
            request["rate"] = order.price
            request["amount"] = order.size
        elif order.side == OrderSide.BUY:
            # Market buys are sized in quote currency.
            request["order_type"] = "market_buy"
            request["market_buy_amount"] = order.price * order.size
        else:
            request["order_type"] = "market_sell"
            request["amount"] = order.size
        self._submit(order, request)


class MarginOpenStrategy(_CoincheckStrategy):
    """Opens new leverage positions."""

    cash_margin_type = CashMarginType.MARGIN_OPEN

    def query_position(self) -> float:
        return signed_position_size(self.client.get_open_leverage_positions())

    def place(self, order: Order) -> None:
        self._check_mode(order)
        self._submit(order, self._open_request(order))

    def _open_request(self, order: Order) -> Dict[str, Any]:
        return {
            "pair": self.pair,
            "order_type": "leverage_buy" if order.side == OrderSide.BUY else "leverage_sell",
            "amount": order.size,
            "rate": order.price if order.type == OrderType.LIMIT else None,
        }


class NetOutStrategy(MarginOpenStrategy):
    """
    Closes an opposite leverage position when one matches the order size,
    otherwise opens a new one.

    A position matches when it is on the opposite side and its amount is
    within FILL_TOLERANCE_PCT of the order size. With several matches the
    most recently opened one is closed.
    """

    cash_margin_type = CashMarginType.NET_OUT

    def place(self, order: Order) -> None:
        self._check_mode(order)
        target_side = "sell" if order.side == OrderSide.BUY else "buy"
        candidates = [
            p for p in self.client.get_open_leverage_positions()
            if p["side"] == target_side and almost_equal(p["amount"], order.size, FILL_TOLERANCE_PCT)
        ]
        if not candidates:
            self._submit(order, self._open_request(order))
            return

        target = max(candidates, key=lambda p: p["created_at"])
        self._submit(order, {
            "pair": self.pair,
            "order_type": "close_long" if target_side == "buy" else "close_short",
            "amount": order.size,
            "rate": order.price if order.type == OrderType.LIMIT else None,
            "position_id": int(target["id"]),
        })
