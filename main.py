"""
coincheck_adapter – Main entry point.

Loads settings, builds the Coincheck adapter and logs a quick health check:
the position under the configured trading mode and the number of quotes
currently on the book.
"""

import logging
import sys

from coincheck_adapter.config.settings import get_settings
from coincheck_adapter.execution.models import Broker
from coincheck_adapter.utils.errors import BrokerAdapterError
from coincheck_adapter.utils.log_setup import configure_logging
from coincheck_adapter.venues.coincheck_adapter import CoincheckBrokerAdapter

logger = logging.getLogger("coincheck_adapter.main")


def main() -> int:
    """Run the health check. Returns a process exit code."""
    try:
        settings = get_settings(require_coincheck=True)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    coincheck = settings.for_broker(Broker.COINCHECK)

    with CoincheckBrokerAdapter(coincheck) as adapter:
        quotes = adapter.fetch_quotes()
        logger.info("Fetched %d quotes", len(quotes))
        try:
            position = adapter.get_position()
        except BrokerAdapterError as e:
            logger.error("Position query failed: %s", e)
            return 2
        logger.info(
            "%s position (%s): %s",
            coincheck.base_currency.upper(), coincheck.cash_margin_type.value, position,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
