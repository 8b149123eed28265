from __future__ import annotations

from datetime import date, datetime, timezone


class Clock:
    """Wall clock. Tests substitute a fixed one."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return date.today()
