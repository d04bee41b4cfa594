"""
Coincheck broker adapter: the public surface the trading engine calls.

**Conceptual**: The adapter composes three pieces and adds error policy:

  1. build_quotes: order book -> bounded quote list
  2. StrategyRegistry: trading mode -> placement strategy
  3. OrderReconciler: open orders + transaction history -> order fill state

**Error policy**:
  - fetch_quotes is fail-soft. Any failure is logged and an empty list is
    returned. An empty list means "quotes unavailable", not "empty market".
  - Everything else (send, cancel, refresh, get_position) propagates errors;
    the caller owns retries.

**Concurrency**: Calls on different orders may run concurrently. Calls on the
same order must be serialized by the caller; the adapter does not lock orders.

**Example usage**:
    >>> settings = get_settings(require_coincheck=True).for_broker(Broker.COINCHECK)
    >>> with CoincheckBrokerAdapter(settings) as adapter:
    ...     quotes = adapter.fetch_quotes()
    ...     adapter.send(order)
    ...     adapter.refresh(order)
    ...     print(order.status, order.filled_size)
"""

import logging
from typing import List, Optional

from coincheck_adapter.config.settings import CoincheckSettings
from coincheck_adapter.execution.models import Broker, Order, Quote
from coincheck_adapter.execution.reconciler import OrderReconciler
from coincheck_adapter.execution.strategy_registry import StrategyRegistry
from coincheck_adapter.utils.errors import BrokerMismatch, CancelFailed, OrderNotSent
from coincheck_adapter.utils.time import Clock, RealClock
from coincheck_adapter.venues.coincheck_client import CoincheckClient
from coincheck_adapter.venues.quotes import build_quotes

logger = logging.getLogger(__name__)


class CoincheckBrokerAdapter:
    """
    Broker adapter for Coincheck.

    Args:
        settings: Coincheck configuration (credentials, trading mode, depth).
        client: Optional pre-built client (tests inject a Mock).
        registry: Optional strategy table (default StrategyRegistry.for_coincheck).
        reconciler: Optional reconciler (default OrderReconciler for the pair's
                   base currency).
        clock: Time source for order timestamps (default RealClock).
    """

    broker = Broker.COINCHECK

    def __init__(
        self,
        settings: CoincheckSettings,
        client: Optional[CoincheckClient] = None,
        registry: Optional[StrategyRegistry] = None,
        reconciler: Optional[OrderReconciler] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings
        self.clock = clock or RealClock()
        self.client = client or CoincheckClient(settings)
        self.registry = registry or StrategyRegistry.for_coincheck(self.client, clock=self.clock)
        self.reconciler = reconciler or OrderReconciler(
            clock=self.clock, base_currency=settings.base_currency
        )

    def fetch_quotes(self) -> List[Quote]:
        """
        Fetch the order book as a quote list.

        Returns:
            Up to quote_depth asks then up to quote_depth bids, or [] if the
            order book could not be fetched.
        """
        try:
            order_books = self.client.get_order_books()
            return build_quotes(order_books, self.broker, depth=self.settings.quote_depth)
        except Exception as e:
            logger.error("Failed to fetch quotes: %s", e)
            logger.debug("fetch_quotes failure", exc_info=True)
            return []

    def get_position(self) -> float:
        """
        Position size under the configured trading mode.

        Raises:
            StrategyNotFound: If the configured mode has no strategy.
        """
        strategy = self.registry.resolve(self.settings.cash_margin_type)
        return strategy.query_position()

    def send(self, order: Order) -> None:
        """
        Place an order using the strategy for the order's own trading mode.

        Raises:
            BrokerMismatch: If the order is tagged for another broker.
            StrategyNotFound: If the order's mode has no strategy.
            OrderRejected: If the exchange refuses the order.
        """
        if order.broker != self.broker:
            raise BrokerMismatch(self.broker, order.broker)
        strategy = self.registry.resolve(order.cash_margin_type)
        strategy.place(order)

    def cancel(self, order: Order) -> None:
        """
        Cancel an order. On acknowledgement the order becomes CANCELED
        immediately; no refresh is needed.

        Raises:
            CancelFailed: If the exchange reports failure.
            OrderNotSent: If the order was never sent.
        """
        order_id = self._require_sent(order)
        reply = self.client.cancel_order(order_id)
        if not reply.get("success"):
            raise CancelFailed(order_id)
        order.mark_canceled(self.clock.now())
        logger.info("Order %s canceled", order_id)

    def refresh(self, order: Order) -> None:
        """
        Reconcile an order with the exchange and update it in place.

        Raises:
            UnexpectedReply: If the exchange reports an inconsistent open order.
            TransportError: If the exchange cannot be reached.
            OrderNotSent: If the order was never sent.
        """
        self._require_sent(order)
        reply = self.client.get_open_orders()
        update = self.reconciler.reconcile(
            order, reply.get("orders", []), self.client.get_transactions_since
        )
        if update is not None:
            order.apply(update)

    def _require_sent(self, order: Order) -> str:
        if order.broker_order_id is None:
            raise OrderNotSent(order.id)
        return order.broker_order_id

    def close(self):
        """Close the underlying HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
