"""
Tests for the trading-mode strategy registry.
"""

from unittest.mock import Mock

import pytest

from coincheck_adapter.execution.models import CashMarginType
from coincheck_adapter.execution.strategy_registry import StrategyRegistry
from coincheck_adapter.utils.errors import StrategyNotFound
from coincheck_adapter.venues.coincheck_strategies import (
    CashStrategy,
    MarginOpenStrategy,
    NetOutStrategy,
)


def test_resolve_returns_registered_strategy():
    cash = Mock()
    registry = StrategyRegistry({CashMarginType.CASH: cash})

    assert registry.resolve(CashMarginType.CASH) is cash


def test_resolve_unknown_mode_raises():
    registry = StrategyRegistry({CashMarginType.CASH: Mock()})

    with pytest.raises(StrategyNotFound) as exc_info:
        registry.resolve(CashMarginType.NET_OUT)

    assert exc_info.value.mode == CashMarginType.NET_OUT
    assert "NetOut" in str(exc_info.value)


def test_table_is_fixed_after_construction():
    source = {CashMarginType.CASH: Mock()}
    registry = StrategyRegistry(source)

    # Mutating the source mapping doesn't leak into the registry
    source[CashMarginType.NET_OUT] = Mock()
    with pytest.raises(StrategyNotFound):
        registry.resolve(CashMarginType.NET_OUT)

    with pytest.raises(TypeError):
        registry._strategies[CashMarginType.NET_OUT] = Mock()


def test_coincheck_table_covers_exactly_three_modes(coincheck_settings):
    client = Mock()
    client.settings = coincheck_settings

    registry = StrategyRegistry.for_coincheck(client)

    assert isinstance(registry.resolve(CashMarginType.CASH), CashStrategy)
    assert isinstance(registry.resolve(CashMarginType.MARGIN_OPEN), MarginOpenStrategy)
    assert isinstance(registry.resolve(CashMarginType.NET_OUT), NetOutStrategy)
    with pytest.raises(StrategyNotFound):
        registry.resolve(CashMarginType.MARGIN_CLOSE)
