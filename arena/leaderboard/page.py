from __future__ import annotations

from datetime import datetime, timezone
from html import escape

from arena.leaderboard.ranking import LeaderboardEntry

COLUMNS = [
    ("clicks", "Clicks"),
    ("impressions", "Impressions"),
    ("ctr", "AVG CTR"),
    ("position", "AVG Position"),
]

REDACTED = "••••••••••••"


def format_number(num: int) -> str:
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return f"{num:,}"


def format_ctr(ctr: float) -> str:
    return f"{ctr:.2f}%"


def format_position(pos: float) -> str:
    return f"{pos:.1f}"


def time_ago(dt: datetime | None, now: datetime | None = None) -> str:
    if dt is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    secs = int((now - dt).total_seconds())
    if secs < 60:
        return "just now"
    for size, unit in ((86400, "day"), (3600, "hour"), (60, "minute")):
        if secs >= size:
            n = secs // size
            return f"{n} {unit}{'' if n == 1 else 's'} ago"
    return "just now"


def _rank_badge(rank: int) -> str:
    cls = {1: "gold", 2: "silver", 3: "bronze"}.get(rank, "plain")
    return f'<span class="badge {cls}">#{rank}</span>'


def _domain_cell(e: LeaderboardEntry) -> str:
    # anonymous rows keep their rank but never show a domain
    if e.anonymous:
        return f'<span class="redacted">{REDACTED}</span> <span class="anon">(ANONYMOUS)</span>'
    icon = f'<img src="{escape(e.favicon_url)}" alt="" width="16" height="16"> ' if e.favicon_url else ""
    return f"{icon}{escape(e.domain)}"


def _header(field: str, label: str, sort: str, direction: str) -> str:
    next_dir = "asc" if (field == sort and direction == "desc") else "desc"
    active = ' class="active"' if field == sort else ""
    return f'<th{active}><a href="/?sort={field}&amp;dir={next_dir}">{escape(label)} &#8597;</a></th>'


def render_leaderboard(entries: list[LeaderboardEntry], sort: str, direction: str, refresh_seconds: int) -> str:
    head = "".join(_header(f, label, sort, direction) for f, label in COLUMNS)

    if not entries:
        body = (
            '<tr><td colspan="7" class="empty">'
            "<div>NO COMPETITORS YET</div><div>Be the first to enter the arena</div>"
            "</td></tr>"
        )
    else:
        now = datetime.now(timezone.utc)
        body = "".join(
            "<tr>"
            f"<td>{_rank_badge(e.rank)}</td>"
            f'<td class="domain">{_domain_cell(e)}</td>'
            f'<td class="num">{format_number(e.clicks)}</td>'
            f'<td class="num">{format_number(e.impressions)}</td>'
            f'<td class="num">{format_ctr(e.ctr)}</td>'
            f'<td class="num">{format_position(e.position)}</td>'
            f'<td class="num">{escape(time_ago(e.last_updated, now))}</td>'
            "</tr>"
            for e in entries
        )

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="{int(refresh_seconds)}">
<title>Search Console Leaderboard</title>
<style>
body {{ font-family: system-ui, sans-serif; background: #0f172a; color: #e2e8f0; margin: 2rem; }}
table {{ width: 100%; border-collapse: collapse; }}
th, td {{ padding: .6rem; border-bottom: 1px solid #334155; text-align: left; }}
th a {{ color: #94a3b8; text-decoration: none; text-transform: uppercase; font-size: .75rem; }}
th.active a {{ color: #22d3ee; }}
.num {{ text-align: right; font-family: monospace; }}
.badge {{ padding: .2rem .6rem; border-radius: .4rem; border: 1px solid #334155; font-weight: bold; }}
.gold {{ background: #facc15; color: #0f172a; }}
.silver {{ background: #cbd5e1; color: #0f172a; }}
.bronze {{ background: #d97706; color: #0f172a; }}
.redacted {{ filter: blur(3px); }}
.anon {{ color: #c084fc; font-size: .75rem; }}
.empty {{ text-align: center; padding: 3rem; color: #64748b; }}
</style>
</head>
<body>
<h1>Search Console Leaderboard</h1>
<table>
<thead><tr><th>Rank</th><th>Domain</th>{head}<th>Updated</th></tr></thead>
<tbody>{body}</tbody>
</table>
</body>
</html>"""
