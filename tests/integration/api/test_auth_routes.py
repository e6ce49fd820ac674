from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.adapters.fs.post_store import FileSystemPostStore
from src.api.deps import (
    Settings,
    get_post_store,
    get_rate_limiter,
    get_rules,
    get_settings,
)
from src.api.main import app
from src.app_shell.rate_limit import LoginRateLimiter
from src.rules.loader import load_rules

ADMIN_KEY = "test-admin-key"
RULES_PATH = Path(__file__).resolve().parents[3] / "blog_rules.yaml"


# --- Fixtures ---
@pytest.fixture
def client(tmp_path):
    rules = load_rules(RULES_PATH)
    limiter = LoginRateLimiter(rules.rate_limits)
    store = FileSystemPostStore(tmp_path / "blogs")

    def _settings():
        s = Settings()
        s.admin_secret = ADMIN_KEY
        s.rules_path = RULES_PATH
        return s

    app.dependency_overrides[get_settings] = _settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_post_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, key=ADMIN_KEY, **kwargs):
    return client.post("/api/auth/login", json={"adminKey": key}, **kwargs)


def test_login_sets_session_cookie(client):
    res = login(client)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["token"]

    set_cookie = res.headers["set-cookie"]
    assert set_cookie.startswith("admin-session=")
    assert "HttpOnly" in set_cookie
    assert "samesite=strict" in set_cookie.lower()


def test_cookie_session_is_authenticated(client):
    assert client.get("/api/auth/verify").json() == {"success": True, "authenticated": False}

    login(client)
    assert client.get("/api/auth/verify").json()["authenticated"] is True

    res = client.post("/api/blogs", json={"title": "t", "description": "d"})
    assert res.status_code == 201


def test_bearer_token_is_authenticated(client):
    token = login(client).json()["token"]
    client.cookies.clear()

    res = client.post(
        "/api/blogs",
        json={"title": "t", "description": "d"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert res.status_code == 201


def test_forged_token_rejected(client):
    res = client.get("/api/auth/verify", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.json()["authenticated"] is False


def test_admin_key_header_verifies(client):
    res = client.get("/api/auth/verify", headers={"x-admin-key": ADMIN_KEY})
    assert res.json()["authenticated"] is True


def test_wrong_key_is_401(client):
    res = login(client, key="guess")
    assert res.status_code == 401
    assert res.json() == {"success": False, "error": "Invalid admin key"}
    assert "set-cookie" not in res.headers


def test_missing_key_is_400(client):
    res = client.post("/api/auth/login", json={})
    assert res.status_code == 400
    assert res.json()["error"] == "Admin key is required"


def test_rate_limited_after_five_attempts(client):
    for _ in range(5):
        assert login(client, key="guess").status_code == 401

    res = login(client)
    assert res.status_code == 429
    assert int(res.headers["Retry-After"]) > 0
    assert res.json()["retryAfter"] == int(res.headers["Retry-After"])


def test_rate_limit_is_per_client(client):
    for _ in range(5):
        login(client, key="guess", headers={"x-forwarded-for": "10.0.0.1"})

    assert login(client, key="guess", headers={"x-forwarded-for": "10.0.0.1"}).status_code == 429
    assert login(client, headers={"x-forwarded-for": "10.0.0.2, 172.16.0.1"}).status_code == 200


def test_successful_login_resets_attempts(client):
    for _ in range(4):
        login(client, key="guess")
    assert login(client).status_code == 200

    for _ in range(4):
        assert login(client, key="guess").status_code == 401


def test_logout_clears_cookie(client):
    login(client)
    res = client.post("/api/auth/logout")
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert client.get("/api/auth/verify").json()["authenticated"] is False
