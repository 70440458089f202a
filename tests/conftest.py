"""
Pytest fixtures: settings with static tokens, an in-memory database, the app
and an async client bound to it.
"""

import json
from urllib.parse import parse_qs
from uuid import UUID

import httpx
import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from core.config import Settings, get_settings
from db.persistence import Database
from db.session import create_database, set_database
from services.credentials import sync_static_tokens
from services.identity import set_identity_provider

ADMIN_TOKEN_ID = UUID("00000000-0000-4000-8000-000000000001")
OPERATOR_TOKEN_ID = UUID("00000000-0000-4000-8000-000000000002")
TESTER_TOKEN_ID = UUID("00000000-0000-4000-8000-000000000003")
ADMIN_KEY = "admin-key-for-tests"
OPERATOR_KEY = "operator-key-for-tests"
TESTER_KEY = "tester-key-for-tests"
PROFILE_ID = UUID("11111111-2222-4333-8444-555555555555")

# The PostgreSQL schema (schema.sql) in the types sqlite understands.
SQLITE_SCHEMA = (
    """
    CREATE TABLE users (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL,
        display_name TEXT NOT NULL DEFAULT '',
        email_address TEXT NOT NULL DEFAULT '',
        role TEXT NOT NULL DEFAULT 'participant'
    )
    """,
    """
    CREATE TABLE access_tokens (
        id TEXT PRIMARY KEY,
        key TEXT NOT NULL UNIQUE,
        owner_user TEXT,
        non_user_role TEXT,
        creation_time TEXT NOT NULL,
        expiration_time TEXT NOT NULL,
        static INTEGER NOT NULL DEFAULT 0,
        comment TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE tracks (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        station_permanent INTEGER,
        station_count_max INTEGER
    )
    """,
)


def bearer(key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {key}"}


def idp_handler(request: httpx.Request) -> httpx.Response:
    """Stub identity provider: accepts "good-code" and knows one profile."""
    if request.url.path == "/token":
        form = parse_qs(request.content.decode())
        if form.get("code") != ["good-code"]:
            return httpx.Response(400, json={"error": "invalid_grant"})
        assert form["grant_type"] == ["authorization_code"]
        assert form["client_secret"] == ["techo-secret"]
        return httpx.Response(200, json={"access_token": "idp-access", "token_type": "bearer"})
    if request.url.path == "/profile":
        if request.headers.get("Authorization") != "Bearer idp-access":
            return httpx.Response(401)
        return httpx.Response(200, json={
            "uuid": str(PROFILE_ID),
            "username": "alice",
            "display_name": "Alice",
            "email": "alice@example.com",
        })
    return httpx.Response(404)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings from a test environment. The cache is cleared on both ends."""
    get_settings.cache_clear()
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("STATIC_ACCESS_TOKENS", json.dumps({
        str(ADMIN_TOKEN_ID): {"key": ADMIN_KEY, "role": "admin", "comment": "admin script"},
        str(OPERATOR_TOKEN_ID): {"key": OPERATOR_KEY, "role": "operator", "comment": "operator script"},
        str(TESTER_TOKEN_ID): {"key": TESTER_KEY, "role": "tester", "comment": "status script"},
    }))
    monkeypatch.setenv("OAUTH2_CLIENT_ID", "techo-client")
    monkeypatch.setenv("OAUTH2_CLIENT_SECRET", "techo-secret")
    monkeypatch.setenv("OAUTH2_AUTH_URL", "https://idp.example.com/authorize")
    monkeypatch.setenv("OAUTH2_TOKEN_URL", "https://idp.example.com/token")
    monkeypatch.setenv("OAUTH2_REDIRECT_URL", "https://techo.example.com/login/")
    monkeypatch.setenv("IDP_PROFILE_URL", "https://idp.example.com/profile")
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
async def database(settings: Settings) -> Database:
    """Fresh in-memory database with the schema, installed as the app database."""
    db = create_database(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with db.engine.begin() as conn:
        for ddl in SQLITE_SCHEMA:
            await conn.execute(text(ddl))
    set_database(db)
    yield db
    set_database(None)
    set_identity_provider(None)
    await db.dispose()


@pytest.fixture
async def app(database: Database, settings: Settings):
    """App with static tokens synced. The lifespan sees the installed database."""
    from main import create_app

    await sync_static_tokens(database, settings)
    return create_app()


@pytest.fixture
async def client(app) -> httpx.AsyncClient:
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer(ADMIN_KEY)


@pytest.fixture
def operator_headers() -> dict[str, str]:
    return bearer(OPERATOR_KEY)
