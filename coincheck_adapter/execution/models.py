"""
Order, execution and quote models shared by the adapter components.

**Conceptual**: An Order is the local picture of something the exchange owns.
The trading engine creates it, a placement strategy sends it, and the
reconciler keeps its fill state in line with what the exchange reports. The
Order is owned and stored by the caller; this package only updates it in
place through two explicit write paths:

  - Order.apply(update): merge the result of one reconciliation.
  - Order.mark_canceled(at): record an acknowledged cancel.

Reconciliation itself never touches the Order. It returns an immutable
OrderUpdate which the adapter applies, so a failed reconciliation cannot
leave an order half-written.

**Lifecycle**:
    OPEN -> PARTIALLY_FILLED -> FILLED | CANCELED
FILLED and CANCELED are terminal. OPEN can also go straight to a terminal
state when the fills are discovered only through transaction history.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import pandas as pd

from coincheck_adapter.utils.math import e_round


class Broker(str, Enum):
    """Exchange identity. Each adapter serves exactly one broker."""
    BITFLYER = "Bitflyer"
    COINCHECK = "Coincheck"
    QUOINE = "Quoine"


class CashMarginType(str, Enum):
    """
    Position-accounting regime an order is placed under.

    MARGIN_CLOSE is a valid mode in general but has no Coincheck strategy;
    NET_OUT covers closing positions on this exchange.
    """
    CASH = "Cash"
    MARGIN_OPEN = "MarginOpen"
    MARGIN_CLOSE = "MarginClose"
    NET_OUT = "NetOut"


class OrderSide(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, Enum):
    LIMIT = "Limit"
    MARKET = "Market"


class QuoteSide(str, Enum):
    ASK = "Ask"
    BID = "Bid"


class OrderStatus(str, Enum):
    """Order lifecycle status."""
    OPEN = "Open"
    PARTIALLY_FILLED = "PartiallyFilled"
    FILLED = "Filled"
    CANCELED = "Canceled"

    @property
    def is_terminal(self) -> bool:
        """True once no further fills can happen."""
        return self in (OrderStatus.FILLED, OrderStatus.CANCELED)


@dataclass(frozen=True)
class Quote:
    """
    One price level of an order book.

    Attributes:
        broker: Exchange the quote comes from.
        side: ASK (offer to sell) or BID (offer to buy).
        price: Limit price in quote currency (JPY for btc_jpy).
        size: Available amount in base currency (BTC).
    """
    broker: Broker
    side: QuoteSide
    price: float
    size: float


@dataclass(frozen=True)
class Execution:
    """
    A single fill of an order.

    Attributes:
        exec_time: When the exchange recorded the fill (UTC).
        price: Fill price.
        size: Filled amount. Always non-negative; direction lives on the order.
    """
    exec_time: pd.Timestamp
    price: float
    size: float


@dataclass(frozen=True)
class OrderUpdate:
    """
    Result of reconciling one order against the exchange.

    Attributes:
        filled_size: New filled size.
        status: New lifecycle status.
        last_updated: When the reconciliation happened.
        executions: Full replacement execution list, or None to keep the
                   order's current executions (open-order path).
    """
    filled_size: float
    status: OrderStatus
    last_updated: pd.Timestamp
    executions: Optional[Tuple[Execution, ...]] = None


@dataclass
class Order:
    """
    Local representation of an exchange order.

    Attributes:
        broker: Which exchange the order belongs to.
        side: BUY or SELL.
        size: Requested amount in base currency.
        price: Limit price (or reference price for market buys).
        cash_margin_type: Trading mode the order is placed under.
        type: LIMIT or MARKET.
        leverage_level: Leverage multiplier for margin modes.
        id: Local identifier, independent of the exchange.
        broker_order_id: Exchange-assigned id; None until the order is sent.
        creation_time: When the order was created locally (UTC).
        status: Current lifecycle status.
        filled_size: Amount filled so far.
        executions: Fills discovered from transaction history.
        sent_time: When the exchange accepted the order.
        last_updated: When any of the mutable fields last changed.
    """
    broker: Broker
    side: OrderSide
    size: float
    price: float
    cash_margin_type: CashMarginType = CashMarginType.CASH
    type: OrderType = OrderType.LIMIT
    leverage_level: int = 1
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    broker_order_id: Optional[str] = None
    creation_time: pd.Timestamp = field(default_factory=lambda: pd.Timestamp.now(tz="UTC"))
    status: OrderStatus = OrderStatus.OPEN
    filled_size: float = 0.0
    executions: List[Execution] = field(default_factory=list)
    sent_time: Optional[pd.Timestamp] = None
    last_updated: Optional[pd.Timestamp] = None

    @property
    def pending_size(self) -> float:
        """Amount still unfilled according to local state."""
        return e_round(self.size - self.filled_size)

    def apply(self, update: OrderUpdate) -> None:
        """
        Merge a reconciliation result into this order.

        Args:
            update: Result returned by OrderReconciler.reconcile().
        """
        self.filled_size = update.filled_size
        self.status = update.status
        self.last_updated = update.last_updated
        if update.executions is not None:
            self.executions = list(update.executions)

    def mark_canceled(self, at: pd.Timestamp) -> None:
        """Record an exchange-acknowledged cancel."""
        self.status = OrderStatus.CANCELED
        self.last_updated = at
