import os
from datetime import timedelta

from sqlalchemy.exc import OperationalError

from recipeshare import config, session_guard
from recipeshare.database import Session as DBSession
from recipeshare.session_guard import resolve_identity
from recipeshare.utils_time import get_now

from conftest import JSON_HEADERS


def test_bearer_token_authenticates(client, register):
    user_id, headers = register("alice")
    res = client.get("/api/auth/me", headers=headers)
    assert res.status_code == 200
    assert res.json()["user"]["id"] == user_id
    assert "password_hash" not in res.json()["user"]


def test_login_sets_session_cookie(client, register):
    register("alice")
    res = client.post("/api/auth/login", json={
        "email": "ALICE@example.com", "password": "secret123", "return_to": "/recipes/new",
    }, headers=JSON_HEADERS)
    assert res.status_code == 200
    assert res.json()["redirect_url"] == "/recipes/new"
    assert config.SESSION_COOKIE_NAME in res.cookies

    check = client.get("/api/auth/check", headers=JSON_HEADERS).json()
    assert check["is_logged_in"] is True
    assert check["username"] == "alice"


def test_login_ignores_offsite_return_to(client, register):
    register("alice")
    res = client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "secret123", "return_to": "//evil.example.com",
    }, headers=JSON_HEADERS)
    assert res.json()["redirect_url"] == "/"


def test_login_with_wrong_password(client, register):
    register("alice")
    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"},
                      headers=JSON_HEADERS)
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Invalid email or password"}


def test_logout_deactivates_session(client, register):
    _, headers = register("alice")
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_expired_session_is_rejected(client, register, db):
    _, headers = register("alice")
    db.query(DBSession).update({DBSession.expires_at: get_now() - timedelta(minutes=1)})
    db.commit()
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_garbage_token_reads_as_anonymous(client):
    res = client.get("/api/auth/check", headers={**JSON_HEADERS, "Authorization": "Bearer garbage"})
    assert res.status_code == 200
    assert res.json()["is_logged_in"] is False


def test_resolve_identity_without_token(db):
    assert resolve_identity(db, None) is None
    assert resolve_identity(db, "") is None


def test_json_client_gets_401(client):
    res = client.get("/api/recipes/my-recipes", headers=JSON_HEADERS)
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_xhr_client_gets_401(client):
    res = client.get("/api/recipes/my-recipes", headers={"X-Requested-With": "XMLHttpRequest"})
    assert res.status_code == 401


def test_browser_is_redirected_to_login_with_return_path(browser_client):
    res = browser_client.get("/api/recipes/my-recipes?page=2")
    assert res.status_code == 303
    assert res.headers["location"] == "/login.html?returnTo=%2Fapi%2Frecipes%2Fmy-recipes%3Fpage%3D2"


def test_login_page_sends_signed_in_users_home(browser_client, register):
    _, headers = register("alice")
    res = browser_client.get("/login.html", headers={"Authorization": headers["Authorization"]})
    assert res.status_code == 303
    assert res.headers["location"] == "/"


def test_login_page_served_to_anonymous_users(browser_client):
    with open(os.path.join(config.STATIC_DIR, "login.html"), "w") as f:
        f.write("<html><body>Login</body></html>")
    res = browser_client.get("/login.html")
    assert res.status_code == 200
    assert "Login" in res.text


def test_change_password_requires_current_password(client, register):
    _, headers = register("alice")
    res = client.put("/api/auth/password", json={"current_password": "wrong", "new_password": "newsecret"},
                     headers=headers)
    assert res.status_code == 401

    res = client.put("/api/auth/password", json={"current_password": "secret123", "new_password": "newsecret"},
                     headers=headers)
    assert res.status_code == 200
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "newsecret"},
                        headers=JSON_HEADERS)
    assert login.status_code == 200


def _failing_resolve(db, token):
    raise OperationalError("SELECT", {}, Exception("store unavailable"))


def test_identity_failure_leaves_public_request_anonymous(client, register, create_recipe, monkeypatch):
    _, headers = register("alice")
    recipe = create_recipe(headers)
    monkeypatch.setattr(session_guard, "resolve_identity", _failing_resolve)

    res = client.get(f"/api/recipes/{recipe['id']}", headers=headers)
    assert res.status_code == 200
    check = client.get("/api/auth/check", headers=headers).json()
    assert check["is_logged_in"] is False


def test_identity_failure_on_protected_request_is_401(client, register, monkeypatch):
    _, headers = register("alice")
    monkeypatch.setattr(session_guard, "resolve_identity", _failing_resolve)
    assert client.get("/api/auth/me", headers=headers).status_code == 401
