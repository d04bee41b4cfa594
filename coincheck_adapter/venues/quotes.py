"""
Order book -> quote list transformation.

Keeps the first `depth` levels of each side in the exchange's own order
(best price first), tags them with side and broker, and puts asks before
bids. Truncation only: no sampling, merging or re-sorting.
"""

from itertools import islice
from typing import Any, List, Mapping, Sequence

from coincheck_adapter.execution.models import Broker, Quote, QuoteSide

# Max levels kept per side. Downstream consumers expect this bound.
QUOTE_DEPTH = 100


def build_quotes(
    order_books: Mapping[str, Sequence[Sequence[Any]]],
    broker: Broker,
    depth: int = QUOTE_DEPTH,
) -> List[Quote]:
    """
    Convert an order book into a bounded, side-tagged quote list.

    Args:
        order_books: Mapping with "asks" and "bids", each a sequence of
                    [price, size] pairs. A missing side counts as empty.
        broker: Broker tag for every quote.
        depth: Max levels kept per side.

    Returns:
        Up to `depth` ask quotes followed by up to `depth` bid quotes.
    """
    quotes: List[Quote] = []
    for key, side in (("asks", QuoteSide.ASK), ("bids", QuoteSide.BID)):
        for price, size in islice(order_books.get(key) or [], depth):
            quotes.append(Quote(broker, side, float(price), float(size)))
    return quotes
