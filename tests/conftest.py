"""
Pytest configuration and fixtures for the Swing service.
"""
import pytest
from fastapi.testclient import TestClient

from dependencies import get_current_user
from fake_firestore import FakeFirestoreClient
from main import app
from models.user import User
from services.firestore import FirestoreDB


class Session:
    """The user the tests are currently signed in as"""

    def __init__(self):
        self.user = User(user_id="alice", email="alice@example.com")

    def sign_in_as(self, user_id: str):
        self.user = User(user_id=user_id, email=f"{user_id}@example.com")


@pytest.fixture
def store():
    return FakeFirestoreClient()


@pytest.fixture
def db(store):
    firestore_db = FirestoreDB(store)
    firestore_db.create_profile("alice", "alice_dev", "alice@example.com")
    firestore_db.create_profile("bob", "bob_codes", "bob@example.com")
    return firestore_db


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def client(db, session):
    app.state.firestore = db
    app.dependency_overrides[get_current_user] = lambda: session.user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(db):
    app.state.firestore = db
    app.dependency_overrides.clear()
    yield TestClient(app)


@pytest.fixture
def seed_post(store):
    """Insert a post row directly, with a fixed timestamp"""
    def _seed(post_id, title, content="", tags=None, author_id="alice", created_at="2026-01-01T00:00:00+00:00"):
        store.collection("posts").document(post_id).set({
            "title": title,
            "content": content,
            "tags": tags or [],
            "author_id": author_id,
            "created_at": created_at,
        })
        return post_id
    return _seed
