from pydantic import BaseModel, EmailStr
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from arena.db.session import get_db
from arena.auth.deps import get_current_user
from arena.users.models import User
from arena.core.security import hash_password, verify_password, create_access_token
from arena.gsc.client import SCOPE, SearchConsoleError, exchange_code, store_tokens

router = APIRouter(prefix="/auth", tags=["auth"])


class AuthBody(BaseModel):
    email: EmailStr
    password: str


class GoogleTokenBody(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class GoogleCodeBody(BaseModel):
    code: str
    redirect_uri: str | None = None


@router.post("/register")
def register(body: AuthBody, db: Session = Depends(get_db)):
    email = body.email.lower().strip()

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already exists")

    try:
        pwd_hash = hash_password(body.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = User(email=email, password_hash=pwd_hash)
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"access_token": create_access_token(user.id)}


@router.post("/login")
def login(body: AuthBody, db: Session = Depends(get_db)):
    email = body.email.lower().strip()

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {"access_token": create_access_token(user.id)}


@router.put("/google/token")
def link_google_token(body: GoogleTokenBody, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    access_token = body.access_token.strip()
    if not access_token:
        raise HTTPException(status_code=400, detail="access_token is required")

    tok = store_tokens(db, user.id, access_token, body.refresh_token, body.expires_in)
    return {"linked": True, "has_refresh_token": bool(tok.google_refresh_token), "scope": SCOPE}


@router.post("/google/callback")
def google_callback(body: GoogleCodeBody, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        data = exchange_code(body.code, body.redirect_uri)
    except SearchConsoleError as e:
        raise HTTPException(status_code=502, detail=f"Google sign-in failed: {e}")

    tok = store_tokens(db, user.id, data["access_token"], data.get("refresh_token"), data.get("expires_in"))
    return {"linked": True, "has_refresh_token": bool(tok.google_refresh_token), "scope": SCOPE}
