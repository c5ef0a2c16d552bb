"""HTTP contract tests for the identity API"""

import pytest
from fastapi.testclient import TestClient

from identity.auth.service import AuthService
from identity.housekeeping import cache_cleaner
from identity_web.main import create_app


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


def _login(client, code="emp001", password="secret1"):
    res = client.post("/auth/login", json={"code": code, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["token"]


def test_login_returns_token_and_user(client):
    res = client.post("/auth/login", json={"code": "emp001", "password": "secret1"})
    assert res.status_code == 200
    body = res.json()
    assert body["user"] == {"code": "emp001", "name": "Alice", "branch": "Downtown", "role": "Admin"}
    assert body["token"]
    assert res.cookies.get("session_token") == body["token"]


def test_login_rejects_bad_credentials(client):
    res = client.post("/auth/login", json={"code": "emp003", "password": "gone33"})
    assert res.status_code == 401
    assert "detail" in res.json()


def test_session_via_bearer_header(service):
    client = TestClient(create_app(service))
    token = _login(client)
    fresh = TestClient(create_app(service))
    res = fresh.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json()["user"]["code"] == "emp001"


def test_session_via_cookie(client):
    _login(client, "emp002", "pass22")
    res = client.get("/auth/session")
    assert res.status_code == 200
    assert res.json()["user"]["name"] == "Bob"


def test_session_missing_or_expired(client, clock):
    assert client.get("/auth/session").status_code == 401
    token = _login(client)
    clock.advance(3601)
    res = client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_change_password_flow(client):
    token = _login(client)
    headers = {"Authorization": f"Bearer {token}"}

    res = client.post("/auth/change-password", json={"old_password": "secret1", "new_password": "abc"}, headers=headers)
    assert res.status_code == 400

    res = client.post("/auth/change-password", json={"old_password": "wrong1", "new_password": "newpass"}, headers=headers)
    assert res.status_code == 400

    res = client.post("/auth/change-password", json={"old_password": "secret1", "new_password": "newpass"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["success"] is True

    assert client.post("/auth/login", json={"code": "emp001", "password": "secret1"}).status_code == 401
    assert client.post("/auth/login", json={"code": "emp001", "password": "newpass"}).status_code == 200


def test_change_password_needs_session(service):
    client = TestClient(create_app(service))
    res = client.post("/auth/change-password", json={"old_password": "secret1", "new_password": "newpass"})
    assert res.status_code == 401


def test_handshake_is_redeemed_once(client):
    token = _login(client)
    res = client.post("/auth/handshake", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    handshake = res.json()["handshakeToken"]

    peer = {"action": "verifyHandshakeToken", "token": handshake}
    first = client.post("/exec", json=peer)
    assert first.status_code == 200
    assert first.json() == {"user": {"code": "emp001", "name": "Alice", "branch": "Downtown", "role": "Admin"}}

    second = client.post("/exec", json=peer)
    assert second.json() == {"user": None}


def test_handshake_requires_session(service):
    client = TestClient(create_app(service))
    assert client.post("/auth/handshake").status_code == 401


def test_action_endpoint_errors(client):
    assert client.post("/exec", json={"action": "dropTables"}).json() == {"error": "Unknown action"}
    res = client.post("/exec", content=b"not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 200
    assert "error" in res.json()
    assert "error" in client.post("/exec", json=["verifyHandshakeToken"]).json()


def test_admin_cache_clear(client, service):
    admin_token = _login(client)
    sales_token = _login(client, "emp002", "pass22")

    res = client.post("/api/admin/cache/clear", headers={"Authorization": f"Bearer {sales_token}"})
    assert res.status_code == 403

    res = client.post("/api/admin/cache/clear", headers={"Authorization": f"Bearer {admin_token}"})
    assert res.status_code == 200
    assert res.json()["status"] == "success"

    res = client.get("/auth/session", headers={"Authorization": f"Bearer {admin_token}"})
    assert res.status_code == 401


def test_peer_handoff_url(settings, store, cache):
    settings.peer.contract_app_url = "https://contracts.example.com/app?lang=en"
    client = TestClient(create_app(AuthService(settings, store, cache)))
    token = _login(client)
    res = client.get("/auth/handoff", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    url = res.json()["url"]
    assert url.startswith("https://contracts.example.com/app?")
    assert "lang=en" in url
    assert "handshakeToken=" in url


def test_peer_handoff_without_url_configured(client):
    token = _login(client)
    res = client.get("/auth/handoff", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 500


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_startup_starts_and_stops_cache_cleaner(service):
    app = create_app(service)
    with TestClient(app) as client:
        assert cache_cleaner.is_running()
        assert client.get("/api/health").status_code == 200
    assert not cache_cleaner.is_running()


def test_numeric_login_code(client, store):
    store.table("Employees").append_row(
        {"Code": 4711, "Password": 123456, "Name": "Dina", "Branch": "Harbor", "Role": "Sales", "IsActive": "yes"}
    )
    res = client.post("/auth/login", json={"code": 4711, "password": 123456})
    assert res.status_code == 200
    assert res.json()["user"]["code"] == "4711"

    res = client.post("/auth/login", json={"code": 4712, "password": "secret1"})
    assert res.status_code == 401


def test_numeric_action_token(client):
    res = client.post("/exec", json={"action": "verifyHandshakeToken", "token": 12345})
    assert res.json() == {"user": None}


def test_session_cookie_is_secure_in_production(settings, store, cache):
    settings.app.environment = "production"
    client = TestClient(create_app(AuthService(settings, store, cache)))
    res = client.post("/auth/login", json={"code": "emp001", "password": "secret1"})
    assert "secure" in res.headers["set-cookie"].lower()


def test_session_cookie_is_not_secure_in_development(client):
    res = client.post("/auth/login", json={"code": "emp001", "password": "secret1"})
    assert "secure" not in res.headers["set-cookie"].lower()
