from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from arena.auth.deps import get_current_user, get_search_console
from arena.db.session import get_db
from arena.gsc.client import SearchConsole, SearchConsoleError
from arena.sites.identity import identifiers_for, site_hash
from arena.sites.models import Website
from arena.users.models import User

router = APIRouter(prefix="/gsc", tags=["gsc"])


@router.get("/sites")
def list_gsc_sites(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gsc: SearchConsole = Depends(get_search_console),
):
    try:
        entries = gsc.list_sites()
    except SearchConsoleError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch sites: {e}")

    mine = db.query(Website).filter(Website.user_id == user.id).all()
    known = identifiers_for(mine)

    sites = []
    for entry in entries:
        url = entry.get("siteUrl") or ""
        h = site_hash(user.id, url)
        sites.append(
            {
                "site_url": url,
                "permission_level": entry.get("permissionLevel"),
                "site_hash": h,
                "registered": h in known or url in known,
            }
        )
    return {"sites": sites}
