import mongomock
import pytest
from fastapi.testclient import TestClient

from moodjournal import database
from moodjournal.crud import posts as crud_posts
from moodjournal.crud import users as crud_users
from moodjournal.main import app
from moodjournal.models.post import PostCreate
from moodjournal.utils.security import create_access_token, hash_password


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    db = client["moodjournal_test"]
    database.ensure_indexes(db)
    yield db
    client.close()


@pytest.fixture
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email="writer@example.com", password="secret123", is_admin=False):
        return crud_users.create_user(db, email, hash_password(password), is_admin=is_admin)
    return _make_user


@pytest.fixture
def auth_header():
    def _auth_header(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return _auth_header


@pytest.fixture
def make_post(db):
    def _make_post(owner, when, description="A quiet day", location=None,
                   is_public=False, is_approved=False, mood=5, temperature=20.0):
        data = PostCreate(
            description=description,
            location=location,
            mood=mood,
            temperature=temperature,
            isPublic=is_public,
        )
        post = crud_posts.create_post(db, owner["_id"], data, now=when)
        if is_approved:
            db.posts.update_one({"_id": post["_id"]}, {"$set": {"isApproved": True}})
            post["isApproved"] = True
        return post
    return _make_post
