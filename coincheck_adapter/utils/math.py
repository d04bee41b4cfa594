"""
Numeric helpers for order sizes and fills.

Exchange amounts arrive as decimal strings and are handled as Python floats,
so arithmetic like `size - pending_amount` or summing many fills picks up
binary floating-point drift (0.1 + 0.2 == 0.30000000000000004). The helpers
here give the rest of the system one place to round that drift away and one
definition of "close enough" when comparing sizes.
"""

from typing import Iterable, Mapping, Any

# Ten decimals is far below the smallest tradable unit (1e-8 BTC) but well
# above float noise for the magnitudes we trade.
ROUNDING_DECIMALS = 10

# Relative tolerance, in percent, used to decide that two sizes match.
FILL_TOLERANCE_PCT = 1.0


def e_round(value: float, decimals: int = ROUNDING_DECIMALS) -> float:
    """
    Round a size or amount to remove floating-point drift.

    **Conceptual**: Answers "what number did the exchange actually mean?"
    after we have subtracted or summed floats. Rounding to a fixed number of
    decimals collapses values like 2.9999999999999996 back to 3.0.

    **Edge cases**:
      - -0.0 is normalised to 0.0 so comparisons and logs stay clean.

    Args:
        value: The number to round.
        decimals: Number of decimal places to keep (default ROUNDING_DECIMALS).

    Returns:
        The rounded float.
    """
    rounded = round(value, decimals)
    # round(-1e-12, 10) gives -0.0
    return rounded + 0.0


def almost_equal(a: float, b: float, tolerance_pct: float) -> bool:
    """
    Check whether b is within tolerance_pct percent of a.

    **Mathematical**:
        |(a - b) / a| * 100 < tolerance_pct

    The tolerance is relative to `a`, so argument order matters: pass the
    reference value (e.g. the requested order size) first.

    **Edge cases**:
      - a == 0: relative error is undefined; only b == 0 counts as equal.

    Args:
        a: Reference value.
        b: Value being compared against the reference.
        tolerance_pct: Allowed relative difference, in percent.

    Returns:
        True if the values match within tolerance.
    """
    if a == 0:
        return b == 0
    return abs((a - b) / a) * 100 < tolerance_pct


def signed_position_size(positions: Iterable[Mapping[str, Any]]) -> float:
    """
    Net a list of leverage positions into one signed size.

    Buy positions count positive, sell positions negative.

    Args:
        positions: Mappings with at least "side" ("buy"/"sell") and "amount".

    Returns:
        Net position size, rounded with e_round.
    """
    total = 0.0
    for position in positions:
        amount = float(position["amount"])
        total += amount if position["side"] == "buy" else -amount
    return e_round(total)
