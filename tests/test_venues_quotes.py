"""
Tests for the order book -> quote transformation.
"""

from coincheck_adapter.execution.models import Broker, Quote, QuoteSide
from coincheck_adapter.venues.quotes import QUOTE_DEPTH, build_quotes


def make_book(n_asks, n_bids):
    return {
        "asks": [[4_000_000.0 + i, 0.01 * (i + 1)] for i in range(n_asks)],
        "bids": [[3_999_999.0 - i, 0.02 * (i + 1)] for i in range(n_bids)],
    }


def test_deep_book_is_truncated_to_depth_per_side():
    book = make_book(250, 180)

    quotes = build_quotes(book, Broker.COINCHECK)

    assert QUOTE_DEPTH == 100
    assert len(quotes) == 200
    asks, bids = quotes[:100], quotes[100:]
    assert all(q.side == QuoteSide.ASK for q in asks)
    assert all(q.side == QuoteSide.BID for q in bids)
    # Input order preserved (first 100 of each side)
    assert [q.price for q in asks] == [p for p, _ in book["asks"][:100]]
    assert [q.price for q in bids] == [p for p, _ in book["bids"][:100]]


def test_shallow_book_is_kept_whole():
    quotes = build_quotes(make_book(3, 2), Broker.COINCHECK)

    assert [q.side for q in quotes] == [QuoteSide.ASK] * 3 + [QuoteSide.BID] * 2


def test_quotes_carry_broker_price_and_size():
    quotes = build_quotes({"asks": [["4000000.0", "0.5"]], "bids": []}, Broker.COINCHECK)

    assert quotes == [Quote(Broker.COINCHECK, QuoteSide.ASK, 4_000_000.0, 0.5)]


def test_empty_or_missing_sides_give_empty_list():
    assert build_quotes({"asks": [], "bids": []}, Broker.COINCHECK) == []
    assert build_quotes({}, Broker.COINCHECK) == []


def test_custom_depth():
    quotes = build_quotes(make_book(10, 10), Broker.COINCHECK, depth=2)

    assert len(quotes) == 4
    assert [q.side for q in quotes] == [QuoteSide.ASK, QuoteSide.ASK, QuoteSide.BID, QuoteSide.BID]


def test_input_is_not_modified():
    book = make_book(150, 150)

    build_quotes(book, Broker.COINCHECK)

    assert len(book["asks"]) == 150
    assert len(book["bids"]) == 150
