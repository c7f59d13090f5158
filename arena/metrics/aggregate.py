from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

DEFAULT_WINDOW_DAYS = 28


@dataclass(frozen=True)
class MetricSummary:
    clicks: int
    impressions: int
    ctr: float  # percent
    position: float
    days: int = DEFAULT_WINDOW_DAYS

    @property
    def date_range(self) -> str:
        return f"last_{self.days}_days"


def date_window(days: int = DEFAULT_WINDOW_DAYS, today: date | None = None) -> tuple[str, str]:
    end = today or datetime.now(timezone.utc).date()
    start = end - timedelta(days=days)
    return start.isoformat(), end.isoformat()


def summarize_rows(rows: Iterable[dict[str, Any]] | None, days: int = DEFAULT_WINDOW_DAYS) -> MetricSummary:
    """
    Sum clicks/impressions, derive CTR from the totals and average the
    per-row positions.
    """
    rows = list(rows or [])

    clicks = sum(int(r.get("clicks") or 0) for r in rows)
    impressions = sum(int(r.get("impressions") or 0) for r in rows)

    ctr = (clicks / impressions) * 100 if impressions > 0 else 0.0
    position = (
        sum(float(r.get("position") or 0) for r in rows) / len(rows)
        if rows
        else 0.0
    )
    return MetricSummary(clicks=clicks, impressions=impressions, ctr=ctr, position=position, days=days)
