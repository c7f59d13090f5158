import pytest
from sqlalchemy.exc import SQLAlchemyError

from arena.metrics.aggregate import MetricSummary
from arena.metrics.models import Metric
from arena.sites import service
from arena.sites.identity import WebsiteConflict, WebsiteForbidden, WebsiteNotFound, site_hash
from arena.sites.models import Website
from arena.users.models import User

URL = "https://example.com/"
SUMMARY = MetricSummary(clicks=120, impressions=4000, ctr=3.0, position=7.5)


@pytest.fixture
def user(db):
    u = User(email="owner@example.com", password_hash="x")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def other(db):
    u = User(email="other@example.com", password_hash="x")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def test_register_public_site(db, user):
    site, metric = service.register_website(db, user.id, URL, False, SUMMARY)

    assert site.domain == "example.com"
    assert site.original_site_url == URL
    assert site.site_hash == site_hash(user.id, URL)
    assert site.favicon_url.startswith("https://www.google.com/s2/favicons?domain=example.com")
    assert metric.website_id == site.id
    assert metric.total_clicks == 120
    assert metric.date_range == "last_28_days"


def test_register_anonymous_site_hides_url(db, user):
    site, _ = service.register_website(db, user.id, URL, True, SUMMARY)

    assert site.anonymous is True
    assert site.original_site_url is None
    assert "example.com" not in site.domain
    assert "example.com" not in site.site_url
    assert site.favicon_url is None


def test_register_twice_conflicts(db, user):
    service.register_website(db, user.id, URL, False, SUMMARY)
    with pytest.raises(WebsiteConflict):
        service.register_website(db, user.id, URL, True, SUMMARY)
    assert db.query(Website).count() == 1


def test_register_conflicts_with_legacy_row(db, user):
    db.add(Website(user_id=user.id, domain="example.com", site_url=URL))
    db.commit()
    with pytest.raises(WebsiteConflict):
        service.register_website(db, user.id, URL, False, SUMMARY)


def test_failed_metric_insert_leaves_no_website(db, user, monkeypatch):
    def boom(*args, **kwargs):
        raise SQLAlchemyError("metrics table unavailable")

    monkeypatch.setattr(service, "_insert_metric", boom)

    with pytest.raises(SQLAlchemyError):
        service.register_website(db, user.id, URL, False, SUMMARY)

    assert db.query(Website).count() == 0
    assert db.query(Metric).count() == 0


def test_metric_rejected_by_database_leaves_no_website(db, user, reject_metric_inserts):
    with pytest.raises(SQLAlchemyError):
        service.register_website(db, user.id, URL, False, SUMMARY)

    assert db.query(Website).count() == 0
    assert db.query(Metric).count() == 0


def test_remove_own_site_cascades_metrics(db, user):
    service.register_website(db, user.id, URL, True, SUMMARY)
    service.remove_website(db, user.id, URL)

    assert db.query(Website).count() == 0
    assert db.query(Metric).count() == 0


def test_remove_someone_elses_legacy_site_is_forbidden(db, user, other):
    db.add(Website(user_id=user.id, domain="example.com", site_url=URL, original_site_url=URL))
    db.commit()
    with pytest.raises(WebsiteForbidden):
        service.remove_website(db, other.id, URL)
    assert db.query(Website).count() == 1


def test_remove_unknown_site(db, user):
    with pytest.raises(WebsiteNotFound):
        service.remove_website(db, user.id, URL)


def test_refresh_replaces_metric_in_place(db, user):
    site, first = service.register_website(db, user.id, URL, False, SUMMARY)
    newer = MetricSummary(clicks=500, impressions=9000, ctr=5.5, position=4.0)

    _, metric = service.refresh_website(db, user.id, URL, newer)

    assert metric.id == first.id
    assert metric.total_clicks == 500
    assert db.query(Metric).filter(Metric.website_id == site.id).count() == 1


def test_refresh_legacy_row_inserts_metric_and_backfills_hash(db, user):
    legacy = Website(user_id=user.id, domain="example.com", site_url=URL)
    db.add(legacy)
    db.commit()

    site, metric = service.refresh_website(db, user.id, URL, SUMMARY)

    assert site.id == legacy.id
    assert site.site_hash == site_hash(user.id, URL)
    assert metric.total_clicks == 120


def test_remove_other_property_on_same_domain_is_not_found(db, user):
    service.register_website(db, user.id, URL, False, SUMMARY)

    with pytest.raises(WebsiteNotFound):
        service.remove_website(db, user.id, "http://www.example.com/")
    assert db.query(Website).count() == 1


def test_refresh_other_property_on_same_domain_is_not_found(db, user):
    _, metric = service.register_website(db, user.id, URL, False, SUMMARY)
    other_property = MetricSummary(clicks=1, impressions=2, ctr=50.0, position=1.0)

    with pytest.raises(WebsiteNotFound):
        service.refresh_website(db, user.id, "sc-domain:example.com", other_property)

    db.refresh(metric)
    assert metric.total_clicks == 120


def test_other_users_fingerprinted_site_is_not_found(db, user, other):
    service.register_website(db, user.id, URL, False, SUMMARY)
    with pytest.raises(WebsiteNotFound):
        service.remove_website(db, other.id, URL)
    assert db.query(Website).count() == 1
