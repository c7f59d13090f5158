# arena/leaderboard/ranking.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from arena.core.timeutil import as_utc
from arena.metrics.models import Metric
from arena.sites.models import Website

SORT_FIELDS = ("clicks", "impressions", "ctr", "position")


@dataclass
class LeaderboardEntry:
    id: int
    rank: int
    domain: str
    clicks: int
    impressions: int
    ctr: float
    position: float
    last_updated: datetime | None
    anonymous: bool
    favicon_url: str | None
    user_id: int | None = None


def latest_metric(website: Website) -> Metric | None:
    metrics = list(website.metrics or [])
    if not metrics:
        return None
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return max(metrics, key=lambda m: (as_utc(m.last_updated) or epoch, m.id or 0))


def rank_websites(websites: Iterable[Website]) -> list[LeaderboardEntry]:
    """
    Websites without a metric are dropped; the rest are ordered by clicks
    (descending, stable with respect to the input order) and numbered 1..n.
    """
    rows = []
    for w in websites:
        m = latest_metric(w)
        if m is None:
            continue
        rows.append((w, m))

    # sorted() is stable: equal clicks keep fetch order
    rows = sorted(rows, key=lambda wm: wm[1].total_clicks or 0, reverse=True)

    return [
        LeaderboardEntry(
            id=w.id,
            rank=i + 1,
            domain=w.domain,
            clicks=int(m.total_clicks or 0),
            impressions=int(m.total_impressions or 0),
            ctr=float(m.average_ctr or 0.0),
            position=float(m.average_position or 0.0),
            last_updated=as_utc(m.last_updated),
            anonymous=bool(w.anonymous),
            favicon_url=w.favicon_url,
            user_id=w.user_id,
        )
        for i, (w, m) in enumerate(rows)
    ]


def sort_entries(entries: list[LeaderboardEntry], field: str = "clicks", direction: str = "desc") -> list[LeaderboardEntry]:
    """Column sort for display; ranks stay as computed."""
    if field not in SORT_FIELDS:
        raise ValueError(f"Unsupported sort field: {field}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction: {direction}")
    return sorted(entries, key=lambda e: getattr(e, field), reverse=(direction == "desc"))


def public_entry(entry: LeaderboardEntry) -> dict[str, Any]:
    out = asdict(entry)
    out.pop("user_id", None)
    if entry.anonymous:
        out["domain"] = None
        out["favicon_url"] = None
    if entry.last_updated is not None:
        out["last_updated"] = entry.last_updated.isoformat(timespec="seconds")
    return out


def site_stats(websites: Iterable[Website]) -> dict[str, Any]:
    websites = list(websites)
    entries = rank_websites(websites)

    top = public_entry(entries[0]) if entries and entries[0].clicks > 0 else None
    if top is not None:
        top.pop("rank", None)

    return {
        "total_sites": len(websites),
        "total_clicks": sum(e.clicks for e in entries),
        "total_impressions": sum(e.impressions for e in entries),
        "active_players": len({w.user_id for w in websites}),
        "top_performer": top,
    }
