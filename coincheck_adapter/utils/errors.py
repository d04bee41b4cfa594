"""
Error taxonomy for the broker adapter.

**Conceptual**: Every failure the adapter can surface to a trading engine is a
subclass of BrokerAdapterError, so callers can catch the whole family in one
place or pick out the cases they want to treat differently.

**Propagation policy**:
  - TransportError: network, auth, HTTP failures. Swallowed by fetch_quotes
    (market data is best effort), propagated by every other operation.
  - UnexpectedReply: the exchange said something that contradicts itself
    (e.g. an open order with nothing pending). Always fatal to the call.
  - StrategyNotFound: a trading mode with no placement strategy. Configuration
    error, always fatal.
  - CancelFailed: the exchange refused to cancel. Fatal; the order keeps its
    previous status.
  - OrderRejected: the exchange refused a new order, or the order was routed
    to the wrong adapter.
  - OrderNotSent: cancel or refresh called on an order with no exchange id.

The "order not visible anywhere yet" reconciliation case is NOT an error; it
is logged as a warning and leaves the order untouched.
"""

from typing import Any, Optional


class BrokerAdapterError(Exception):
    """Base exception for all broker adapter errors."""
    pass


class TransportError(BrokerAdapterError):
    """
    Raised when the exchange could not be reached or answered with an HTTP error.

    Venue clients subclass this with their own, more specific errors.
    """
    pass


class UnexpectedReply(BrokerAdapterError):
    """
    Raised when an exchange reply is inconsistent or malformed.

    Attributes:
        reply: The offending payload (or fragment of it), kept for diagnostics.
    """

    def __init__(self, message: str = "Unexpected reply returned.", reply: Optional[Any] = None):
        super().__init__(message)
        self.reply = reply


class StrategyNotFound(BrokerAdapterError):
    """Raised when no placement strategy is registered for a trading mode."""

    def __init__(self, mode: Any):
        super().__init__(f"Unable to find a strategy for {getattr(mode, 'value', mode)}.")
        self.mode = mode


class CancelFailed(BrokerAdapterError):
    """Raised when the exchange does not acknowledge a cancel request."""

    def __init__(self, order_id: Optional[str]):
        super().__init__(f"Cancel {order_id} failed.")
        self.order_id = order_id


class OrderRejected(BrokerAdapterError):
    """Raised when a new order is refused, locally or by the exchange."""
    pass


class OrderNotSent(BrokerAdapterError):
    """Raised when an operation needs the exchange order id of an order that was never sent."""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} has no broker order id; send it first.")
        self.order_id = order_id


class BrokerMismatch(OrderRejected):
    """Raised when an order tagged for one broker is sent through another broker's adapter."""

    def __init__(self, expected: Any, actual: Any):
        super().__init__(
            f"Order is tagged for broker {getattr(actual, 'value', actual)} but was sent "
            f"to the {getattr(expected, 'value', expected)} adapter."
        )
        self.expected = expected
        self.actual = actual
