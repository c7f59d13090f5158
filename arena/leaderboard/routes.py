from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session, selectinload

from arena.core.config import LEADERBOARD_REFRESH_SECONDS
from arena.db.session import get_db
from arena.leaderboard.page import render_leaderboard
from arena.leaderboard.ranking import public_entry, rank_websites, site_stats, sort_entries
from arena.sites.models import Website

router = APIRouter(tags=["leaderboard"])


def _all_websites(db: Session) -> list[Website]:
    # newest first; ranking ties keep this order
    return (
        db.query(Website)
        .options(selectinload(Website.metrics))
        .order_by(Website.created_at.desc(), Website.id.desc())
        .all()
    )


@router.get("/websites")
def leaderboard(db: Session = Depends(get_db)):
    entries = rank_websites(_all_websites(db))
    return {"data": [public_entry(e) for e in entries]}


@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    return site_stats(_all_websites(db))


@router.get("/", response_class=HTMLResponse)
def leaderboard_page(
    sort: str = Query("clicks"),
    direction: str = Query("desc", alias="dir"),
    db: Session = Depends(get_db),
):
    entries = rank_websites(_all_websites(db))
    try:
        entries = sort_entries(entries, sort, direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return HTMLResponse(render_leaderboard(entries, sort, direction, LEADERBOARD_REFRESH_SECONDS))
