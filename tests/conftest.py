import os
import tempfile

# must happen before anything under arena/ reads its config
_TMP_DIR = tempfile.mkdtemp(prefix="arena-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/test.db"
os.environ["RATELIMIT_ENABLED"] = "0"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from arena.auth.deps import get_search_console
from arena.db.base import Base
from arena.db.init_db import init_db  # noqa: F401  (registers models)
from arena.db.session import SessionLocal, engine
from arena.gsc.client import SearchConsole, SearchConsoleError
from arena.main import app


class FakeSearchConsole(SearchConsole):
    """Search Console stand-in: serves canned sites and analytics rows."""

    def __init__(self):
        super().__init__("fake-token")
        self.sites = []
        self.rows = {}
        self.fail = False
        self.queries = []

    def list_sites(self):
        if self.fail:
            raise SearchConsoleError("quota exceeded", status_code=429)
        return list(self.sites)

    def search_analytics(self, site_url, start, end):
        self.queries.append((site_url, start, end))
        if self.fail:
            raise SearchConsoleError("quota exceeded", status_code=429)
        return list(self.rows.get(site_url, []))


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def reject_metric_inserts():
    """Make the database itself refuse metric rows."""
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TRIGGER reject_metric_insert BEFORE INSERT ON metrics "
            "BEGIN SELECT RAISE(ABORT, 'metrics store unavailable'); END"
        ))
    yield


@pytest.fixture
def fake_gsc():
    return FakeSearchConsole()


@pytest.fixture
def client(fake_gsc):
    app.dependency_overrides[get_search_console] = lambda: fake_gsc
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    def _signup(email="player@gscarena.io", password="correct-horse"):
        r = client.post("/auth/register", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _signup
