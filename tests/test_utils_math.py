"""
Tests for coincheck_adapter/utils/math.py
"""

import pytest

from coincheck_adapter.utils.math import (
    FILL_TOLERANCE_PCT,
    almost_equal,
    e_round,
    signed_position_size,
)


def test_e_round_removes_float_drift():
    assert 0.1 + 0.2 != 0.3
    assert e_round(0.1 + 0.2) == 0.3
    assert e_round(5.0 - 2.0000000000000004) == 3.0


def test_e_round_keeps_satoshi_precision():
    assert e_round(0.12345678) == 0.12345678


def test_e_round_normalises_negative_zero():
    result = e_round(-1e-12)
    assert result == 0.0
    assert str(result) == "0.0"


def test_almost_equal_within_tolerance():
    assert almost_equal(1.0, 1.005, FILL_TOLERANCE_PCT)
    assert almost_equal(1.0, 0.995, FILL_TOLERANCE_PCT)


def test_almost_equal_outside_tolerance():
    assert not almost_equal(1.0, 0.98, FILL_TOLERANCE_PCT)
    assert not almost_equal(0.5, 1.0, FILL_TOLERANCE_PCT)


def test_almost_equal_zero_reference():
    """Relative error is undefined at zero; only exact zero matches."""
    assert almost_equal(0.0, 0.0, 1)
    assert not almost_equal(0.0, 1e-12, 1)


def test_signed_position_size_nets_buys_and_sells():
    positions = [
        {"side": "buy", "amount": 0.3},
        {"side": "buy", "amount": "0.2"},
        {"side": "sell", "amount": 0.1},
    ]
    assert signed_position_size(positions) == pytest.approx(0.4)
    assert signed_position_size(positions) == 0.4


def test_signed_position_size_empty():
    assert signed_position_size([]) == 0.0
