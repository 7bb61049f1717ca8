import os
import tempfile

# Configure before any recipeshare module reads the environment
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="recipeshare-uploads-")
os.environ["STATIC_DIR"] = tempfile.mkdtemp(prefix="recipeshare-static-")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from recipeshare.app import app
from recipeshare.database import Base, SessionLocal, engine

JSON_HEADERS = {"Accept": "application/json"}

RECIPE_PAYLOAD = {
    "title": "Lemon Garlic Pasta",
    "description": "Quick weeknight pasta with lemon, garlic and parmesan.",
    "category": "dinner",
    "cuisine": "Italian",
    "difficulty": "easy",
    "prep_time": 10,
    "cook_time": 15,
    "servings": 2,
    "ingredients": [
        {"name": "Spaghetti", "amount": "200", "unit": "g"},
        {"name": "Garlic", "amount": "3", "unit": "cloves"},
    ],
    "instructions": [
        {"step_number": 2, "instruction": "Toss pasta with garlic oil and lemon."},
        {"step_number": 1, "instruction": "Boil the spaghetti until al dente."},
    ],
    "tags": ["pasta", "quick", "pasta"],
    "dietary_info": {"vegetarian": True},
}


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def browser_client():
    """Client that behaves like a browser page load: no JSON Accept, redirects not followed."""
    return TestClient(app, follow_redirects=False)


def auth_headers(token):
    return {**JSON_HEADERS, "Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a user and return (user_id, auth headers)."""
    def _register(username, password="secret123"):
        res = client.post("/api/auth/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "confirm_password": password,
        }, headers=JSON_HEADERS)
        assert res.status_code == 201, res.text
        body = res.json()
        client.cookies.clear()
        return body["user"]["id"], auth_headers(body["token"])
    return _register


@pytest.fixture
def create_recipe(client):
    def _create(headers, **overrides):
        payload = {**RECIPE_PAYLOAD, **overrides}
        res = client.post("/api/recipes", json=payload, headers=headers)
        assert res.status_code == 201, res.text
        return res.json()["recipe"]
    return _create
