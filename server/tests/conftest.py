"""
Pytest configuration: test settings, an in-memory database and a client
signed in through the real session cookie.
"""
import os
import random

os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["SECRET_KEY"] = "test-token-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAIL"] = "admin@example.org"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["ADMIN_NAME"] = "Ada Admin"
os.environ["ORGANIZATION_NAME"] = "Connect Club"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from database.DB import Database
from fakes import FakeMotorClient, FakeNotifier
from main import app

ADMIN_EMAIL = "admin@example.org"
ADMIN_PASSWORD = "admin-password"
VOLUNTEER_PASSWORD = "volunteer-password"


@pytest.fixture
def db():
    """Database wrapper over an in-memory motor client"""
    database = Database(client=FakeMotorClient())
    database.connect()
    return database


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(db, notifier):
    """Create a test client; https so the secure session cookie is sent back"""
    app.state.db = db
    app.state.notifier = notifier
    app.state.rng = random.Random(7)
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
    app.state.db = None
    app.state.notifier = None
    app.state.rng = None


def sign_in(client, email, password):
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["user"]


def sign_in_admin(client):
    return sign_in(client, ADMIN_EMAIL, ADMIN_PASSWORD)


def add_volunteer(client, name, email, team=None, role="Volunteer"):
    """Create a volunteer account; the client must be signed in as admin."""
    response = client.post("/api/volunteers", json={
        "name": name,
        "email": email,
        "password": VOLUNTEER_PASSWORD,
        "role": role,
        "team": team,
    })
    assert response.status_code == 201, response.text
    return response.json()["volunteer"]


def create_event(client, name="Beach Cleanup", date="2099-06-01"):
    response = client.post("/api/events", json={"name": name, "description": "Annual drive", "date": date})
    assert response.status_code == 201, response.text
    return response.json()["event"]


def create_task(client, event_id, assignees, task_type="Individual", name="Set up stalls"):
    response = client.post("/api/tasks", json={
        "event_id": event_id,
        "name": name,
        "deadline": "2099-05-30",
        "type": task_type,
        "assigned_volunteer_ids": assignees,
    })
    assert response.status_code == 201, response.text
    return response.json()["task"]


def another_client():
    """A second browser: same app and database, separate session cookie."""
    return TestClient(app, base_url="https://testserver")
