# arena/auth/deps.py

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from arena.db.session import get_db
from arena.core.security import decode_token
from arena.gsc.client import SearchConsole, SearchConsoleError, MissingCredentialsError, search_console_for
from arena.users.models import User

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = (creds.credentials or "").strip()
    try:
        user_id = decode_token(token)
    except (JWTError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return user


def get_search_console(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SearchConsole:
    try:
        return search_console_for(db, user.id)
    except MissingCredentialsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SearchConsoleError as e:
        raise HTTPException(status_code=502, detail=f"Google token refresh failed: {e}")
