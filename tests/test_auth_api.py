from conftest import JSON_HEADERS


def _register(client, **overrides):
    body = {
        "username": "alice",
        "email": "alice@example.com",
        "password": "secret123",
        "confirm_password": "secret123",
        **overrides,
    }
    return client.post("/api/auth/register", json=body, headers=JSON_HEADERS)


def test_register_returns_user_and_starts_session(client):
    res = _register(client, first_name="Alice")
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["user"]["username"] == "alice"
    assert body["user"]["first_name"] == "Alice"
    assert "password_hash" not in body["user"]
    assert client.get("/api/auth/check", headers=JSON_HEADERS).json()["is_logged_in"] is True


def test_register_duplicate_email_conflicts(client):
    assert _register(client).status_code == 201
    res = _register(client, username="alice2", email="Alice@Example.com")
    assert res.status_code == 409
    assert res.json()["success"] is False


def test_register_duplicate_username_conflicts(client):
    assert _register(client).status_code == 201
    assert _register(client, email="other@example.com").status_code == 409


def test_register_validation(client):
    res = _register(client, confirm_password="different")
    assert res.status_code == 400
    assert res.json()["message"] == "Validation failed"

    res = _register(client, username="bad name!")
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "username"


def test_update_profile(client, register):
    _, headers = register("alice")
    res = client.put("/api/auth/profile", json={"first_name": " Alice ", "bio": "I like soup."}, headers=headers)
    assert res.status_code == 200
    user = res.json()["user"]
    assert user["first_name"] == "Alice"
    assert user["bio"] == "I like soup."


def test_profile_requires_login(client):
    assert client.put("/api/auth/profile", json={"bio": "x"}, headers=JSON_HEADERS).status_code == 401


def test_logout_without_session_still_succeeds(client):
    res = client.post("/api/auth/logout", headers=JSON_HEADERS)
    assert res.status_code == 200
    assert res.json()["success"] is True
