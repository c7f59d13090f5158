# arena/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from arena.core.config import FRONTEND_ORIGIN
from arena.core.logging import configure_logging
from arena.core.ratelimit import limiter, rate_limit_exceeded_handler
from arena.db.init_db import init_db

from arena.auth.routes import router as auth_router
from arena.gsc.routes import router as gsc_router
from arena.sites.routes import router as sites_router
from arena.leaderboard.routes import router as leaderboard_router

configure_logging()
log = logging.getLogger(__name__)

app = FastAPI(title="Search Console Leaderboard")


# FRONTEND_ORIGIN: "*" or a comma-separated list of origins
raw_origins = FRONTEND_ORIGIN.strip()

if raw_origins == "*":
    allow_origins = ["*"]
    allow_credentials = False  # can't use credentials with "*"
else:
    allow_origins = [o.strip().rstrip("/") for o in raw_origins.split(",") if o.strip()]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    log.error("database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database error. Please try again later."})


@app.on_event("startup")
def on_startup():
    init_db()
    log.info("database ready")


app.include_router(auth_router)
app.include_router(gsc_router)
app.include_router(sites_router)
app.include_router(leaderboard_router)


@app.get("/health")
def health():
    return {"ok": True}
