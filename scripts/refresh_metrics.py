"""
Re-fetch Search Console metrics for every public website using its owner's
stored Google credentials.

Anonymous rows keep no site URL, so their owners refresh them through
POST /websites/refresh.

    python -m scripts.refresh_metrics
"""

import logging

from arena.core.logging import configure_logging
from arena.db.session import SessionLocal
from arena.gsc.client import MissingCredentialsError, SearchConsoleError, search_console_for
from arena.sites.identity import WebsiteError
from arena.sites.models import Website
from arena.sites.service import refresh_website

log = logging.getLogger("scripts.refresh_metrics")


def main():
    configure_logging()
    db = SessionLocal()
    ok = failed = 0
    try:
        sites = (
            db.query(Website)
            .filter(Website.anonymous.is_(False), Website.original_site_url.isnot(None))
            .order_by(Website.id.asc())
            .all()
        )
        for site in sites:
            site_url = site.original_site_url
            try:
                gsc = search_console_for(db, site.user_id)
                summary = gsc.fetch_summary(site_url)
                refresh_website(db, site.user_id, site_url, summary)
                ok += 1
            except (MissingCredentialsError, SearchConsoleError, WebsiteError) as e:
                log.warning("skip website id=%s: %s", site.id, e)
                failed += 1
    finally:
        db.close()

    print(f"OK: refreshed={ok} failed={failed}")


if __name__ == "__main__":
    main()
