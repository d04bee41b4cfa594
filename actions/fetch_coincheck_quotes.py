#!/usr/bin/env python3
"""
Print the top of the Coincheck order book.

**Usage**:
    python actions/fetch_coincheck_quotes.py
    python actions/fetch_coincheck_quotes.py --levels 10

**What this script does**:
  1. Load Coincheck settings from environment (.env file)
  2. Build a CoincheckBrokerAdapter
  3. Fetch quotes (fail-soft: an unreachable exchange prints a warning)
  4. Print the best N asks (highest first, so the spread sits in the middle)
     and the best N bids

**Requirements**:
  - COINCHECK_API_KEY and COINCHECK_API_SECRET set in .env (the adapter
    needs them even though the order book itself is public)
  - Network access to coincheck.com

**Example output**:
    $ python actions/fetch_coincheck_quotes.py --levels 2
       ASK  4021000.0  0.0200
       ASK  4020000.0  0.1500
    ------------------------
       BID  4019000.0  0.0100
       BID  4018500.0  1.2000
"""

import argparse
import sys
from pathlib import Path
from typing import List

# Add project root to Python path so we can import coincheck_adapter
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from coincheck_adapter.config.settings import get_settings
from coincheck_adapter.execution.models import Broker, Quote, QuoteSide
from coincheck_adapter.utils.log_setup import configure_logging
from coincheck_adapter.venues.coincheck_adapter import CoincheckBrokerAdapter


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Print the top of the Coincheck order book")
    parser.add_argument(
        "--levels",
        type=int,
        default=5,
        help="Number of price levels per side to print (default: 5)",
    )
    return parser.parse_args(argv)


def format_book(quotes: List[Quote], levels: int) -> str:
    """
    Render quotes as a small text ladder, asks above bids.

    Args:
        quotes: Quotes as returned by fetch_quotes (asks then bids, best first).
        levels: Levels per side to show.
    """
    asks = [q for q in quotes if q.side == QuoteSide.ASK][:levels]
    bids = [q for q in quotes if q.side == QuoteSide.BID][:levels]
    lines = [f"{'ASK':>6}  {q.price:>10}  {q.size:.4f}" for q in reversed(asks)]
    lines.append("-" * 24)
    lines.extend(f"{'BID':>6}  {q.price:>10}  {q.size:.4f}" for q in bids)
    return "\n".join(lines)


def main(argv=None) -> int:
    """
    Main entry point.

    **Exit codes**:
      - 0: Quotes printed
      - 1: Configuration error
      - 2: No quotes available (exchange unreachable or empty reply)
    """
    args = parse_args(argv)
    if args.levels <= 0:
        print("Error: --levels must be positive", file=sys.stderr)
        return 1

    try:
        settings = get_settings(require_coincheck=True)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    with CoincheckBrokerAdapter(settings.for_broker(Broker.COINCHECK)) as adapter:
        quotes = adapter.fetch_quotes()

    if not quotes:
        print("Quotes unavailable (see log for details).", file=sys.stderr)
        return 2

    print(format_book(quotes, args.levels))
    return 0


if __name__ == "__main__":
    sys.exit(main())
