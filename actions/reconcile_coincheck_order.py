#!/usr/bin/env python3
"""
Reconcile one Coincheck order and print its state.

**Purpose**: Operator tool for checking what the adapter would conclude about
an order (open, partially filled, filled, canceled) from the exchange's
open-orders list and transaction history, without running the trading engine.

**Usage**:
    python actions/reconcile_coincheck_order.py 202835 --side buy --size 0.5 \\
        --created-at 2024-05-01T09:30:00Z
    python actions/reconcile_coincheck_order.py 202835 --side sell --size 0.1 \\
        --created-at 2024-05-01T09:30:00Z --mode NetOut

**Exit codes**:
  - 0: Reconciled (state printed)
  - 1: Bad arguments or configuration
  - 2: Exchange error (unreachable, inconsistent reply)
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path so we can import coincheck_adapter
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from coincheck_adapter.config.settings import get_settings
from coincheck_adapter.execution.models import Broker, CashMarginType, Order, OrderSide
from coincheck_adapter.utils.errors import BrokerAdapterError
from coincheck_adapter.utils.log_setup import configure_logging
from coincheck_adapter.utils.time import to_utc_timestamp
from coincheck_adapter.venues.coincheck_adapter import CoincheckBrokerAdapter


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Reconcile one Coincheck order")
    parser.add_argument("order_id", help="Coincheck order id")
    parser.add_argument("--side", choices=["buy", "sell"], required=True)
    parser.add_argument("--size", type=float, required=True, help="Requested size in base currency")
    parser.add_argument("--price", type=float, default=0.0, help="Limit price (informational)")
    parser.add_argument(
        "--created-at",
        required=True,
        help="Order creation time, ISO-8601 (naive values are taken as UTC)",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in CashMarginType],
        default=CashMarginType.CASH.value,
        help="Trading mode of the order (default: Cash)",
    )
    return parser.parse_args(argv)


def build_order(args) -> Order:
    """Build the local Order the adapter will reconcile."""
    return Order(
        broker=Broker.COINCHECK,
        side=OrderSide.BUY if args.side == "buy" else OrderSide.SELL,
        size=args.size,
        price=args.price,
        cash_margin_type=CashMarginType(args.mode),
        broker_order_id=args.order_id,
        creation_time=to_utc_timestamp(args.created_at),
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        order = build_order(args)
        settings = get_settings(require_coincheck=True)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    with CoincheckBrokerAdapter(settings.for_broker(Broker.COINCHECK)) as adapter:
        try:
            adapter.refresh(order)
        except BrokerAdapterError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

    print(f"Order {order.broker_order_id}: {order.status.value}")
    print(f"  filled {order.filled_size} of {order.size} ({order.pending_size} pending)")
    for execution in order.executions:
        print(f"  {execution.exec_time.isoformat()}  {execution.size} @ {execution.price}")
    if order.last_updated is None:
        print("  not visible on the exchange yet; nothing changed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
