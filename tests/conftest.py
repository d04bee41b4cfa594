"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import coincheck_adapter...'
works without installing, and provides shared fixtures.
"""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from coincheck_adapter.config.settings import CoincheckSettings  # noqa: E402
from coincheck_adapter.execution.models import Broker, CashMarginType, Order, OrderSide  # noqa: E402
from coincheck_adapter.utils.time import FrozenClock  # noqa: E402

NOW = pd.Timestamp("2024-05-01T10:00:00Z")
CREATED = pd.Timestamp("2024-05-01T09:30:00Z")


@pytest.fixture
def coincheck_settings():
    """Coincheck settings with fake credentials."""
    return CoincheckSettings(
        api_key="test_key",
        api_secret="test_secret",
        base_url="https://api.test-coincheck.com",
        timeout_seconds=10,
    )


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def make_order():
    """Factory for sent Coincheck orders with a fixed creation time."""

    def _make(size=5.0, broker_order_id="1001", **kwargs):
        defaults = dict(
            broker=Broker.COINCHECK,
            side=OrderSide.BUY,
            size=size,
            price=4_000_000.0,
            cash_margin_type=CashMarginType.CASH,
            broker_order_id=broker_order_id,
            creation_time=CREATED,
        )
        defaults.update(kwargs)
        return Order(**defaults)

    return _make
