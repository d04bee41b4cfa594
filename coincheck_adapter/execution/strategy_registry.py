"""
Trading-mode dispatch: CashMarginType -> placement strategy.

**Conceptual**: Cash, margin-open and net-out orders are placed differently
and report positions differently. The adapter doesn't branch on the mode
itself; it asks the registry for the strategy responsible for a mode and
delegates to it.

**Closed set**: The table is fixed when the registry is built and cannot be
extended afterwards. A mode without an entry is a configuration error
(StrategyNotFound), checked on every lookup because the mode may come from
an order or from config rather than from code.
"""

from types import MappingProxyType
from typing import Mapping, Protocol

from coincheck_adapter.execution.models import CashMarginType, Order
from coincheck_adapter.utils.errors import StrategyNotFound


class CashMarginTypeStrategy(Protocol):
    """
    Contract every placement strategy fulfils.

    Structural typing: anything with these two methods is a strategy, which
    keeps test doubles trivial (a Mock works).
    """

    def query_position(self) -> float:
        """Return the current position size in base currency."""
        ...

    def place(self, order: Order) -> None:
        """Submit the order to the exchange, recording its broker id on success."""
        ...


class StrategyRegistry:
    """Immutable mode -> strategy table."""

    def __init__(self, strategies: Mapping[CashMarginType, CashMarginTypeStrategy]):
        self._strategies = MappingProxyType(dict(strategies))

    @classmethod
    def for_coincheck(cls, client, clock=None) -> "StrategyRegistry":
        """
        Build the fixed Coincheck table: CASH, MARGIN_OPEN and NET_OUT.

        Args:
            client: CoincheckClient shared by all strategies.
            clock: Optional Clock for order timestamps.
        """
        # Imported here so execution stays importable without the venue layer.
        from coincheck_adapter.venues.coincheck_strategies import (
            CashStrategy,
            MarginOpenStrategy,
            NetOutStrategy,
        )

        return cls({
            CashMarginType.CASH: CashStrategy(client, clock=clock),
            CashMarginType.MARGIN_OPEN: MarginOpenStrategy(client, clock=clock),
            CashMarginType.NET_OUT: NetOutStrategy(client, clock=clock),
        })

    def resolve(self, mode: CashMarginType) -> CashMarginTypeStrategy:
        """
        Look up the strategy for a trading mode.

        Raises:
            StrategyNotFound: If no strategy is registered for mode.
        """
        strategy = self._strategies.get(mode)
        if strategy is None:
            raise StrategyNotFound(mode)
        return strategy
