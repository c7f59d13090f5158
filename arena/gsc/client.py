# arena/gsc/client.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import httpx
from sqlalchemy.orm import Session

from arena.core.config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI, METRICS_WINDOW_DAYS
from arena.core.timeutil import as_utc
from arena.metrics.aggregate import MetricSummary, date_window, summarize_rows
from arena.users.models import UserToken

log = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/webmasters/v3"
TOKEN_URL = "https://oauth2.googleapis.com/token"
SCOPE = "https://www.googleapis.com/auth/webmasters.readonly"

DEFAULT_TIMEOUT = 15.0


class SearchConsoleError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MissingCredentialsError(RuntimeError):
    pass


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "")[:200] or f"HTTP {resp.status_code}"
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return str(err.get("message") or err.get("status") or resp.status_code)
    if isinstance(err, str):
        return str(body.get("error_description") or err)
    return f"HTTP {resp.status_code}"


class SearchConsole:
    """
    Thin Search Console (webmasters v3) client over a bearer access token.
    Pass `client` to reuse a connection pool or inject a transport in tests.
    """

    def __init__(self, access_token: str, client: httpx.Client | None = None):
        self.access_token = access_token
        self._client = client

    def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            if self._client is not None:
                r = self._client.request(method, API_BASE + path, json=json, headers=headers)
            else:
                with httpx.Client(timeout=DEFAULT_TIMEOUT) as c:
                    r = c.request(method, API_BASE + path, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise SearchConsoleError(f"Search Console unreachable: {e}") from e

        if r.status_code >= 400:
            raise SearchConsoleError(_error_message(r), status_code=r.status_code)
        return r.json() if r.content else {}

    def list_sites(self) -> list[dict[str, Any]]:
        return self._request("GET", "/sites").get("siteEntry") or []

    def search_analytics(self, site_url: str, start: str, end: str) -> list[dict[str, Any]]:
        path = f"/sites/{quote(site_url, safe='')}/searchAnalytics/query"
        body = {"startDate": start, "endDate": end, "dimensions": []}
        return self._request("POST", path, json=body).get("rows") or []

    def fetch_summary(self, site_url: str, days: int = METRICS_WINDOW_DAYS) -> MetricSummary:
        start, end = date_window(days)
        rows = self.search_analytics(site_url, start, end)
        return summarize_rows(rows, days=days)


def _token_request(data: dict[str, str], client: httpx.Client | None = None) -> dict[str, Any]:
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise SearchConsoleError("Google OAuth client is not configured")

    payload = {"client_id": GOOGLE_CLIENT_ID, "client_secret": GOOGLE_CLIENT_SECRET, **data}
    try:
        if client is not None:
            r = client.post(TOKEN_URL, data=payload)
        else:
            r = httpx.post(TOKEN_URL, data=payload, timeout=DEFAULT_TIMEOUT)
    except httpx.HTTPError as e:
        raise SearchConsoleError(f"Google token endpoint unreachable: {e}") from e

    if r.status_code >= 400:
        raise SearchConsoleError(_error_message(r), status_code=r.status_code)
    return r.json()


def refresh_access_token(refresh_token: str, client: httpx.Client | None = None) -> dict[str, Any]:
    return _token_request({"grant_type": "refresh_token", "refresh_token": refresh_token}, client)


def exchange_code(code: str, redirect_uri: str | None = None, client: httpx.Client | None = None) -> dict[str, Any]:
    return _token_request(
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri or GOOGLE_REDIRECT_URI,
        },
        client,
    )


def store_tokens(db: Session, user_id: int, access_token: str, refresh_token: str | None, expires_in: int | None) -> UserToken:
    tok = db.query(UserToken).filter(UserToken.user_id == user_id).first()
    if not tok:
        tok = UserToken(user_id=user_id)
        db.add(tok)

    tok.google_access_token = access_token
    # Google only returns a refresh token on first consent
    if refresh_token:
        tok.google_refresh_token = refresh_token
    tok.expires_at = (
        datetime.now(timezone.utc) + timedelta(seconds=int(expires_in)) if expires_in else None
    )
    db.commit()
    db.refresh(tok)
    return tok


def ensure_fresh_token(db: Session, tok: UserToken, client: httpx.Client | None = None) -> str:
    """
    Return a usable access token, refreshing it first when the stored one has
    expired and a refresh token is available.
    """
    expires_at = as_utc(tok.expires_at)
    expired = expires_at is not None and expires_at <= datetime.now(timezone.utc) + timedelta(seconds=30)

    if expired and tok.google_refresh_token:
        data = refresh_access_token(tok.google_refresh_token, client)
        store_tokens(db, tok.user_id, data["access_token"], data.get("refresh_token"), data.get("expires_in"))
        log.info("refreshed google access token for user id=%s", tok.user_id)

    return tok.google_access_token


def search_console_for(db: Session, user_id: int) -> SearchConsole:
    tok = db.query(UserToken).filter(UserToken.user_id == user_id).first()
    if not tok or not tok.google_access_token:
        raise MissingCredentialsError("No Google access token found. Please sign in with Google.")
    return SearchConsole(ensure_fresh_token(db, tok))
