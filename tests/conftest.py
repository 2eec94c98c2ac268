# tests/conftest.py
import mongomock
import pytest
from fastapi.testclient import TestClient

from campus_placement.core.auth import create_access_token, hash_password
from campus_placement.db.mongodb import get_database, init_mongo_indexes
from campus_placement.main import app
from campus_placement.services import llm_client
from campus_placement.services.cache_service import invalidate_analysis_caches
from campus_placement.services.mongo_service import StudentService, UserService


@pytest.fixture(autouse=True)
def clean_state():
    invalidate_analysis_caches()
    # no API key -> the analysis service always uses the rule-based responder
    llm_client._llm_client = llm_client.LLMClient(api_key="")
    yield
    invalidate_analysis_caches()
    llm_client._llm_client = None


@pytest.fixture
def db():
    database = mongomock.MongoClient().campus_placement_test
    init_mongo_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _headers(user):
    token = create_access_token({"sub": user["_id"], "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def officer_headers(db):
    user = UserService(db).create("officer@college.edu", hash_password("Officer123@"), "placement_officer", "Officer")
    return _headers(user)


@pytest.fixture
def admin_headers(db):
    user = UserService(db).create("admin@college.edu", hash_password("Admin123@"), "admin", "Admin")
    return _headers(user)


@pytest.fixture
def make_student(db):
    """Create a student login + linked profile; returns (headers, profile)."""
    def factory(email="asha@college.edu", **profile):
        user = UserService(db).create(email, hash_password("Student123@"), "student", profile.get("name"))
        data = {"name": "Asha Rao", "email": email}
        data.update(profile)
        student = StudentService(db).create(data, user_id=user["_id"])
        return _headers(user), student
    return factory
