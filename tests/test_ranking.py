from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from arena.leaderboard.ranking import latest_metric, public_entry, rank_websites, site_stats, sort_entries

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def metric(mid, clicks, impressions=1000, ctr=1.0, position=10.0, age_hours=0):
    return SimpleNamespace(
        id=mid,
        total_clicks=clicks,
        total_impressions=impressions,
        average_ctr=ctr,
        average_position=position,
        last_updated=NOW - timedelta(hours=age_hours),
    )


def site(sid, *metrics, user_id=1, anonymous=False, domain=None):
    return SimpleNamespace(
        id=sid,
        user_id=user_id,
        domain=domain or f"site{sid}.example",
        anonymous=anonymous,
        favicon_url=None if anonymous else f"https://icons.example/{sid}.png",
        metrics=list(metrics),
    )


def test_sites_without_metrics_are_excluded():
    entries = rank_websites([site(1), site(2, metric(1, 5))])
    assert [e.id for e in entries] == [2]


def test_sorted_by_clicks_descending_with_ranks():
    entries = rank_websites([site(1, metric(1, 5)), site(2, metric(2, 50)), site(3, metric(3, 20))])
    assert [e.id for e in entries] == [2, 3, 1]
    assert [e.rank for e in entries] == [1, 2, 3]
    for a, b in zip(entries, entries[1:]):
        assert a.clicks >= b.clicks


def test_ties_keep_fetch_order():
    entries = rank_websites([site(9, metric(1, 10)), site(4, metric(2, 10)), site(7, metric(3, 10))])
    assert [e.id for e in entries] == [9, 4, 7]


def test_latest_metric_wins():
    s = site(1, metric(1, 100, age_hours=48), metric(2, 3, age_hours=1))
    assert latest_metric(s).id == 2
    assert rank_websites([s])[0].clicks == 3


def test_anonymous_entries_are_ranked_then_redacted():
    entries = rank_websites([site(1, metric(1, 5)), site(2, metric(2, 99), anonymous=True, domain="anonymous-abc")])
    top = entries[0]
    assert top.anonymous and top.rank == 1
    assert top.domain == "anonymous-abc"

    shown = public_entry(top)
    assert shown["domain"] is None
    assert shown["favicon_url"] is None
    assert "user_id" not in shown
    assert shown["last_updated"] == "2024-05-01T12:00:00+00:00"


def test_sort_entries_keeps_rank():
    entries = rank_websites([
        site(1, metric(1, 50, position=3.0)),
        site(2, metric(2, 10, position=1.5)),
    ])
    by_pos = sort_entries(entries, "position", "asc")
    assert [(e.id, e.rank) for e in by_pos] == [(2, 2), (1, 1)]

    with pytest.raises(ValueError):
        sort_entries(entries, "domain")


def test_site_stats():
    sites = [
        site(1, metric(1, 10, impressions=100), user_id=1),
        site(2, metric(2, 40, impressions=400), user_id=1, anonymous=True, domain="anonymous-x"),
        site(3, user_id=2),
    ]
    out = site_stats(sites)
    assert out["total_sites"] == 3
    assert out["total_clicks"] == 50
    assert out["total_impressions"] == 500
    assert out["active_players"] == 2
    assert out["top_performer"]["clicks"] == 40
    assert out["top_performer"]["domain"] is None


def test_site_stats_empty():
    assert site_stats([]) == {
        "total_sites": 0,
        "total_clicks": 0,
        "total_impressions": 0,
        "active_players": 0,
        "top_performer": None,
    }


def test_naive_timestamps_read_as_utc():
    naive = SimpleNamespace(id=1, total_clicks=1, total_impressions=1, average_ctr=1.0,
                            average_position=1.0, last_updated=datetime(2024, 5, 1, 12, 0))
    entry = rank_websites([site(1, naive)])[0]
    assert entry.last_updated == NOW
