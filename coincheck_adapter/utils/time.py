"""
Time sources and timestamp parsing for order bookkeeping.

Orders carry several timestamps (creation, sent, last updated, execution time)
and reconciliation looks back from the creation time. Code that needs "now"
asks a Clock instead of calling the system clock directly, so tests can freeze
time and assert exact last_updated values.

All timestamps in this package are timezone-aware UTC pandas Timestamps.
"""

from typing import Any, Protocol

import pandas as pd


class Clock(Protocol):
    """
    Abstract time source protocol.

    **Conceptual**: A Clock is any object that can answer "what time is it
    right now?". The broker adapter, reconciler and placement strategies all
    accept an optional Clock; production code passes RealClock, tests pass
    FrozenClock.

    **Example**:
        >>> adapter = CoincheckBrokerAdapter(settings, clock=FrozenClock(ts))
        >>> adapter.cancel(order)
        >>> assert order.last_updated == ts
    """

    def now(self) -> pd.Timestamp:
        """Return the current time as a UTC Timestamp."""
        ...


class RealClock:
    """Clock backed by the system wall clock (UTC)."""

    def now(self) -> pd.Timestamp:
        return pd.Timestamp.now(tz="UTC")


class FrozenClock:
    """
    Clock that always returns the same timestamp.

    Useful in tests, and when replaying a reconciliation for a past moment.
    Naive timestamps are interpreted as UTC.
    """

    def __init__(self, fixed_now: Any):
        self._fixed_now = to_utc_timestamp(fixed_now)

    def now(self) -> pd.Timestamp:
        return self._fixed_now


def to_utc_timestamp(value: Any) -> pd.Timestamp:
    """
    Convert an ISO string, datetime or Timestamp into a UTC Timestamp.

    **Conceptual**: Coincheck returns ISO-8601 strings such as
    "2015-12-02T05:27:53.000Z"; callers may also hand us naive datetimes.
    Everything is normalised to tz-aware UTC so timestamps compare safely.

    Args:
        value: Anything pd.Timestamp accepts.

    Returns:
        Timezone-aware UTC Timestamp.

    Raises:
        ValueError: If value is None or cannot be parsed.
    """
    if value is None:
        raise ValueError("Cannot convert None to a timestamp")
    ts = pd.Timestamp(value)
    if ts is pd.NaT:
        raise ValueError(f"Cannot convert {value!r} to a timestamp")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")
