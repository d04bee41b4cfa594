"""
Order reconciliation: derive fill state from what the exchange reports.

**Conceptual**: The exchange never gives us one complete view of an order.
We have two partial views:

  1. The open-orders snapshot. Lists orders still on the book with their
     remaining ("pending") amount, but drops an order as soon as it is fully
     filled or canceled.
  2. The transaction history. Lists individual fills, but says nothing about
     orders that are open with no fills yet, or canceled without fills.

The reconciler combines them into one answer: filled size, executions and
lifecycle status for a local Order.

**Algorithm**:
  - Order in the open-orders snapshot (still live):
      filled = size - pending_amount (rounded)
      PARTIALLY_FILLED if filled > 0, otherwise status unchanged.
      Transaction history is not consulted: an order cannot be both on the
      book and settled.
      A listed order with no pending amount (missing or 0) contradicts itself
      and raises UnexpectedReply.
  - Order not in the snapshot (left the book):
      Fetch transactions from one minute before creation time (clock skew
      margin), keep those for this order.
      None found: neither open nor recorded yet. Warn and change nothing;
      the exchange's ledger often lags its order book.
      Some found: one Execution per transaction, filled = sum of sizes.
      FILLED if filled matches size within FILL_TOLERANCE_PCT, else CANCELED
      (the order is off the book, so a partial fill will never complete).

**Terminal states**: An order already FILLED or CANCELED keeps its status.
Fill size and executions are still refreshed.

**Purity**: reconcile() never mutates the order. It returns an OrderUpdate
(or None for "no change") which the caller applies with Order.apply().
"""

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

import pandas as pd

from coincheck_adapter.execution.models import Execution, Order, OrderStatus, OrderUpdate
from coincheck_adapter.utils.errors import OrderNotSent, UnexpectedReply
from coincheck_adapter.utils.math import FILL_TOLERANCE_PCT, almost_equal, e_round
from coincheck_adapter.utils.time import Clock, RealClock

logger = logging.getLogger(__name__)

# How far before an order's creation time to start reading transaction
# history. Covers clock skew between us and the exchange ledger.
TRANSACTION_LOOKBACK = pd.Timedelta(minutes=1)

TransactionsSince = Callable[[pd.Timestamp], Sequence[Mapping[str, Any]]]


class OrderReconciler:
    """
    Stateless reconciliation state machine.

    Args:
        clock: Source of last_updated timestamps (default RealClock).
        lookback: Safety window subtracted from creation time before
                 querying transaction history.
        base_currency: Key of the base-currency delta in a transaction's
                      "funds" mapping ("btc" for btc_jpy).
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        lookback: pd.Timedelta = TRANSACTION_LOOKBACK,
        base_currency: str = "btc",
    ):
        self.clock = clock or RealClock()
        self.lookback = lookback
        self.base_currency = base_currency

    def reconcile(
        self,
        order: Order,
        open_orders: Sequence[Mapping[str, Any]],
        transactions_since: TransactionsSince,
    ) -> Optional[OrderUpdate]:
        """
        Compute the new fill state of an order.

        Args:
            order: The local order. Must have a broker_order_id.
            open_orders: Current open-orders snapshot, entries with "id" and
                        "pending_amount".
            transactions_since: Callable returning transactions created at or
                               after a timestamp. Called only when the order
                               is no longer open.

        Returns:
            OrderUpdate to apply, or None when the order is not visible
            anywhere yet and must be left as is.

        Raises:
            UnexpectedReply: If the order is listed as open with nothing pending.
            OrderNotSent: If the order has no broker_order_id.
        """
        if order.broker_order_id is None:
            raise OrderNotSent(order.id)
        broker_order = self._find_open_order(order, open_orders)
        if broker_order is not None:
            return self._reconcile_open(order, broker_order)
        return self._reconcile_settled(order, transactions_since)

    def _find_open_order(
        self,
        order: Order,
        open_orders: Sequence[Mapping[str, Any]],
    ) -> Optional[Mapping[str, Any]]:
        for broker_order in open_orders:
            if str(broker_order.get("id")) == str(order.broker_order_id):
                return broker_order
        return None

    def _reconcile_open(self, order: Order, broker_order: Mapping[str, Any]) -> OrderUpdate:
        pending_amount = broker_order.get("pending_amount")
        if pending_amount is None or float(pending_amount) == 0:
            raise UnexpectedReply(
                f"Open order {order.broker_order_id} reported no pending amount.",
                reply=dict(broker_order),
            )

        filled_size = e_round(order.size - float(pending_amount))
        status = OrderStatus.PARTIALLY_FILLED if filled_size > 0 else order.status
        status = self._keep_terminal(order, status)
        return OrderUpdate(
            filled_size=filled_size,
            status=status,
            last_updated=self.clock.now(),
        )

    def _reconcile_settled(
        self,
        order: Order,
        transactions_since: TransactionsSince,
    ) -> Optional[OrderUpdate]:
        start = order.creation_time - self.lookback
        transactions = [
            t for t in transactions_since(start)
            if str(t.get("order_id")) == str(order.broker_order_id)
        ]
        if not transactions:
            logger.warning(
                "The order %s is not found in pending orders and historical orders.",
                order.broker_order_id,
            )
            return None

        executions = tuple(self._to_execution(t) for t in transactions)
        filled_size = e_round(sum(e.size for e in executions))
        if almost_equal(filled_size, order.size, FILL_TOLERANCE_PCT):
            status = OrderStatus.FILLED
        else:
            status = OrderStatus.CANCELED
        status = self._keep_terminal(order, status)
        logger.debug(
            "Order %s left the book: %d execution(s), filled %s of %s -> %s",
            order.broker_order_id, len(executions), filled_size, order.size, status.value,
        )
        return OrderUpdate(
            filled_size=filled_size,
            status=status,
            last_updated=self.clock.now(),
            executions=executions,
        )

    def _keep_terminal(self, order: Order, status: OrderStatus) -> OrderStatus:
        # FILLED and CANCELED are final, whatever a lagging snapshot says.
        if order.status.is_terminal:
            return order.status
        return status

    def _to_execution(self, transaction: Mapping[str, Any]) -> Execution:
        try:
            delta = transaction["funds"][self.base_currency]
            return Execution(
                exec_time=transaction["created_at"],
                price=float(transaction["rate"]),
                # Sign encodes buy/sell; size is always positive.
                size=abs(float(delta)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnexpectedReply(
                f"Malformed transaction for order {transaction.get('order_id')}: {e}",
                reply=dict(transaction),
            ) from e
