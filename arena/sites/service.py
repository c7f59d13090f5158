# arena/sites/service.py

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arena.metrics.aggregate import MetricSummary
from arena.metrics.models import Metric
from arena.sites.identity import (
    WebsiteConflict,
    WebsiteForbidden,
    find_by_hash,
    resolve_website,
    site_hash,
)
from arena.sites.models import Website
from arena.sites.utils import anonymous_placeholder, clean_domain, favicon_url

log = logging.getLogger(__name__)


def ensure_not_registered(db: Session, user_id: int, site_url: str) -> None:
    if find_by_hash(db, user_id, site_url):
        raise WebsiteConflict("This website is already in the leaderboard")

    legacy = (
        db.query(Website)
        .filter(Website.user_id == user_id, Website.site_hash.is_(None))
        .filter(
            or_(
                Website.original_site_url == site_url,
                Website.site_url == site_url,
                Website.domain == clean_domain(site_url),
            )
        )
        .first()
    )
    if legacy:
        raise WebsiteConflict("This website is already in the leaderboard")


def _insert_metric(db: Session, website_id: int, summary: MetricSummary) -> Metric:
    metric = Metric(
        website_id=website_id,
        total_clicks=summary.clicks,
        total_impressions=summary.impressions,
        average_ctr=summary.ctr,
        average_position=summary.position,
        date_range=summary.date_range,
        last_updated=datetime.now(timezone.utc),
    )
    db.add(metric)
    db.commit()
    db.refresh(metric)
    return metric


def _delete_website(db: Session, website_id: int) -> None:
    db.query(Website).filter(Website.id == website_id).delete(synchronize_session=False)
    db.commit()


def register_website(
    db: Session,
    user_id: int,
    site_url: str,
    anonymous: bool,
    summary: MetricSummary,
) -> tuple[Website, Metric]:
    ensure_not_registered(db, user_id, site_url)

    fingerprint = site_hash(user_id, site_url)
    if anonymous:
        placeholder = anonymous_placeholder(fingerprint)
        site = Website(
            user_id=user_id,
            domain=placeholder,
            site_url=placeholder,
            original_site_url=None,
            site_hash=fingerprint,
            anonymous=True,
            favicon_url=None,
        )
    else:
        domain = clean_domain(site_url)
        site = Website(
            user_id=user_id,
            domain=domain,
            site_url=site_url,
            original_site_url=site_url,
            site_hash=fingerprint,
            anonymous=False,
            favicon_url=favicon_url(domain),
        )

    db.add(site)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise WebsiteConflict("This website is already in the leaderboard")
    db.refresh(site)
    website_id = site.id

    try:
        metric = _insert_metric(db, website_id, summary)
    except Exception:
        db.rollback()
        log.warning("metric insert failed, removing website id=%s", website_id)
        _delete_website(db, website_id)
        raise

    db.refresh(site)
    log.info("registered website id=%s user=%s anonymous=%s", website_id, user_id, anonymous)
    return site, metric


def _owned(db: Session, user_id: int, site_url: str, action: str) -> Website:
    site = resolve_website(db, user_id, site_url)
    if site.user_id != user_id:
        raise WebsiteForbidden(f"You can only {action} your own websites")
    return site


def remove_website(db: Session, user_id: int, site_url: str) -> int:
    site = _owned(db, user_id, site_url, "remove")
    website_id = site.id
    db.delete(site)
    db.commit()
    log.info("removed website id=%s user=%s", website_id, user_id)
    return website_id


def refresh_website(db: Session, user_id: int, site_url: str, summary: MetricSummary) -> tuple[Website, Metric]:
    site = _owned(db, user_id, site_url, "refresh")

    # legacy rows pick up their fingerprint on first refresh
    if site.site_hash is None:
        site.site_hash = site_hash(user_id, site_url)

    now = datetime.now(timezone.utc)
    metric = site.metrics[0] if site.metrics else None
    if metric is None:
        metric = Metric(website_id=site.id)
        db.add(metric)

    metric.total_clicks = summary.clicks
    metric.total_impressions = summary.impressions
    metric.average_ctr = summary.ctr
    metric.average_position = summary.position
    metric.date_range = summary.date_range
    metric.last_updated = now

    db.commit()
    db.refresh(metric)
    log.info("refreshed metrics for website id=%s", site.id)
    return site, metric
