from __future__ import annotations

from datetime import date, timedelta

from .models import Recur


def add_months(base: date, months: int) -> date:
    """Move ``base`` forward by whole months, keeping the day number.

    Days past the end of the target month roll over into the next one, so
    Jan 31 plus one month is Mar 2 in a leap year and Mar 3 otherwise.
    """
    month_index = base.month - 1 + months
    first = date(base.year + month_index // 12, month_index % 12 + 1, 1)
    return first + timedelta(days=base.day - 1)


def next_occurrence(base: date, recur: Recur) -> date | None:
    if recur == Recur.DAILY:
        return base + timedelta(days=1)
    if recur == Recur.WEEKLY:
        return base + timedelta(days=7)
    if recur == Recur.MONTHLY:
        return add_months(base, 1)
    return None
