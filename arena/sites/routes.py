# arena/sites/routes.py

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from arena.auth.deps import get_current_user, get_search_console
from arena.core.ratelimit import limiter, WRITE_LIMIT
from arena.db.session import get_db
from arena.gsc.client import SearchConsole, SearchConsoleError
from arena.metrics.models import Metric
from arena.sites.identity import WebsiteError
from arena.sites.models import Website
from arena.sites.service import ensure_not_registered, refresh_website, register_website, remove_website
from arena.sites.utils import normalize_site_url
from arena.users.models import User

router = APIRouter(tags=["websites"])


class AddWebsiteBody(BaseModel):
    site_url: str
    anonymous: bool = False


class SiteUrlBody(BaseModel):
    site_url: str


def _iso(dt):
    return dt.isoformat(timespec="seconds") if dt else None


def website_dict(site: Website) -> dict:
    return {
        "id": site.id,
        "domain": site.domain,
        "site_url": site.site_url,
        "site_hash": site.site_hash,
        "anonymous": bool(site.anonymous),
        "favicon_url": site.favicon_url,
        "created_at": _iso(site.created_at),
    }


def metric_dict(m: Metric) -> dict:
    return {
        "id": m.id,
        "total_clicks": m.total_clicks,
        "total_impressions": m.total_impressions,
        "average_ctr": m.average_ctr,
        "average_position": m.average_position,
        "date_range": m.date_range,
        "last_updated": _iso(m.last_updated),
    }


def _site_url_or_400(raw: str) -> str:
    try:
        return normalize_site_url(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _fetch_summary(gsc: SearchConsole, site_url: str):
    try:
        return gsc.fetch_summary(site_url)
    except SearchConsoleError as e:
        raise HTTPException(status_code=502, detail=f"Search Console request failed: {e}")


@router.post("/websites")
@limiter.limit(WRITE_LIMIT)
def add_website(
    request: Request,
    body: AddWebsiteBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gsc: SearchConsole = Depends(get_search_console),
):
    site_url = _site_url_or_400(body.site_url)

    try:
        ensure_not_registered(db, user.id, site_url)
        summary = _fetch_summary(gsc, site_url)
        site, metric = register_website(db, user.id, site_url, body.anonymous, summary)
    except WebsiteError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "website": {**website_dict(site), "metrics": [metric_dict(metric)]},
        "message": "Website added to leaderboard successfully!",
    }


@router.delete("/websites")
@limiter.limit(WRITE_LIMIT)
def delete_website(
    request: Request,
    body: SiteUrlBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    site_url = _site_url_or_400(body.site_url)

    try:
        website_id = remove_website(db, user.id, site_url)
    except WebsiteError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"success": True, "id": website_id, "message": "Website removed from leaderboard"}


@router.post("/websites/refresh")
@limiter.limit(WRITE_LIMIT)
def refresh_website_metrics(
    request: Request,
    body: SiteUrlBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gsc: SearchConsole = Depends(get_search_console),
):
    site_url = _site_url_or_400(body.site_url)

    try:
        summary = _fetch_summary(gsc, site_url)
        site, metric = refresh_website(db, user.id, site_url, summary)
    except WebsiteError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"success": True, "website": {**website_dict(site), "metrics": [metric_dict(metric)]}}


@router.get("/my-websites")
def my_websites(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    sites = db.query(Website).filter(Website.user_id == user.id).order_by(Website.id.desc()).all()
    items = [
        {
            "id": s.id,
            "site_hash": s.site_hash,
            "original_site_url": s.original_site_url,
            "domain": s.domain,
            "anonymous": bool(s.anonymous),
        }
        for s in sites
    ]
    return {"data": items}
