# arena/sites/identity.py

from __future__ import annotations

import hashlib
import logging
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Session

from arena.sites.models import Website
from arena.sites.utils import clean_domain

log = logging.getLogger(__name__)


class WebsiteError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WebsiteNotFound(WebsiteError):
    status_code = 404


class WebsiteForbidden(WebsiteError):
    status_code = 403


class WebsiteConflict(WebsiteError):
    status_code = 409


def site_hash(user_id, site_url: str) -> str:
    """
    SHA-256 hex of "{user_id}:{site_url}".

    The URL is hashed as Search Console reports it (no normalization) so the
    same property always lands on the same row, public or anonymous.
    """
    return hashlib.sha256(f"{user_id}:{site_url}".encode("utf-8")).hexdigest()


def find_by_hash(db: Session, user_id, site_url: str) -> Website | None:
    return db.query(Website).filter(Website.site_hash == site_hash(user_id, site_url)).first()


def _legacy_matches(db: Session, site_url: str) -> list[Website]:
    # only rows created before fingerprinting
    domain = clean_domain(site_url)
    return (
        db.query(Website)
        .filter(Website.site_hash.is_(None))
        .filter(
            or_(
                Website.original_site_url == site_url,
                Website.site_url == site_url,
                Website.domain == domain,
            )
        )
        .order_by(Website.id.asc())
        .all()
    )


def resolve_website(db: Session, user_id, site_url: str) -> Website:
    """
    Fingerprint first, then legacy matching by stored URL/domain.

    Raises WebsiteForbidden when the only matches belong to someone else,
    WebsiteNotFound when nothing matches.
    """
    site = find_by_hash(db, user_id, site_url)
    if site:
        return site

    matches = _legacy_matches(db, site_url)
    for m in matches:
        if m.user_id == user_id:
            log.info("legacy match for website id=%s", m.id)
            return m

    if matches:
        raise WebsiteForbidden("You can only remove your own websites")
    raise WebsiteNotFound("Website not found in the leaderboard")


def identifiers_for(websites: Iterable[Website]) -> set[str]:
    out: set[str] = set()
    for w in websites:
        if w.site_hash:
            out.add(w.site_hash)
        if w.original_site_url:
            out.add(w.original_site_url)
        if w.domain:
            out.add(w.domain)
    return out
