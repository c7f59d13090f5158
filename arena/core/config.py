# arena/core/config.py

from __future__ import annotations

import os
from pathlib import Path
from dotenv import load_dotenv


def _load_env():
    """
    Load .env from the project root (local dev). Real env vars always win.
    """
    # This file: arena/core/config.py -> parents[2] = project root
    root_dir = Path(__file__).resolve().parents[2]
    env_path = root_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)


_load_env()


def _clean(s: str | None) -> str:
    s = (s or "").strip()
    if len(s) >= 2 and ((s[0] == s[-1] == '"') or (s[0] == s[-1] == "'")):
        s = s[1:-1].strip()
    return s


def _int(name: str, default: int) -> int:
    try:
        return int(_clean(os.getenv(name)) or str(default))
    except ValueError:
        return default


DATABASE_URL = _clean(os.getenv("DATABASE_URL")) or "sqlite:///./arena.db"

JWT_SECRET = _clean(os.getenv("JWT_SECRET")) or "dev-secret"
JWT_EXPIRE_MIN = _int("JWT_EXPIRE_MIN", 60)

GOOGLE_CLIENT_ID = _clean(os.getenv("GOOGLE_CLIENT_ID"))
GOOGLE_CLIENT_SECRET = _clean(os.getenv("GOOGLE_CLIENT_SECRET"))
GOOGLE_REDIRECT_URI = _clean(os.getenv("GOOGLE_REDIRECT_URI"))

METRICS_WINDOW_DAYS = _int("METRICS_WINDOW_DAYS", 28)
LEADERBOARD_REFRESH_SECONDS = _int("LEADERBOARD_REFRESH_SECONDS", 30)

RATELIMIT_ENABLED = (_clean(os.getenv("RATELIMIT_ENABLED")) or "1") == "1"

FRONTEND_ORIGIN = _clean(os.getenv("FRONTEND_ORIGIN")) or "*"

LOG_LEVEL = (_clean(os.getenv("LOG_LEVEL")) or "INFO").upper()
