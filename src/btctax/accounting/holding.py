"""Holding period rules for short-term vs long-term classification (IRC §1222)."""

from datetime import datetime, timedelta


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, floored."""
    return (end - start) // timedelta(days=1)


def one_year_after(acquired: datetime) -> datetime:
    """Same month/day one calendar year later.

    A Feb 29 acquisition has no anniversary in a common year and rolls
    forward to Mar 1.
    """
    try:
        return acquired.replace(year=acquired.year + 1)
    except ValueError:
        return acquired.replace(year=acquired.year + 1, month=3, day=1)


def is_long_term(acquired: datetime, sold: datetime) -> bool:
    """Long-term only when sold strictly after the one-year anniversary."""
    return sold > one_year_after(acquired)
