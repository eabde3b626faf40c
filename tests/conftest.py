"""
Shared fixtures: an in-memory stand-in for the Motor database and a TestClient
with auth, database and settings dependencies overridden.
"""

import copy
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from database.mongodb import get_database
from models.user import User, UserRole
from server import app
from services.auth_deps import get_current_user


# ============================================================
# IN-MEMORY MONGO
# ============================================================

_MISSING = object()


def _lookup(doc: dict, dotted_key: str):
    value = doc
    for part in dotted_key.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(doc: dict, query: dict) -> bool:
    for key, expected in query.items():
        actual = _lookup(doc, key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual is _MISSING or actual not in expected["$in"]:
                return False
        elif expected is None:
            # Mongo: {field: None} also matches a missing field
            if actual is not _MISSING and actual is not None:
                return False
        elif actual is _MISSING or actual != expected:
            return False
    return True


class FakeResult:
    def __init__(self, matched_count=0, inserted_id=None):
        self.matched_count = matched_count
        self.modified_count = matched_count
        self.deleted_count = matched_count
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        keys = key if isinstance(key, list) else [(key, direction)]
        # Stable sorts, least significant key first
        for field, field_direction in reversed(keys):
            present = [d for d in self._docs if d.get(field) is not None]
            absent = [d for d in self._docs if d.get(field) is None]
            present.sort(key=lambda d: d[field], reverse=field_direction == -1)
            self._docs = present + absent
        return self

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    def __init__(self):
        self.docs = []

    def seed(self, *docs):
        for doc in docs:
            self.docs.append(copy.deepcopy(doc))

    def get(self, _id):
        """Stored document by id (test inspection only)"""
        for doc in self.docs:
            if doc["_id"] == _id:
                return doc
        return None

    def find(self, query=None):
        query = query or {}
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def find_one(self, query):
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        self.docs.append(copy.deepcopy(doc))
        return FakeResult(inserted_id=doc["_id"])

    async def update_one(self, query, update):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                return FakeResult(matched_count=1)
        return FakeResult()

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return FakeResult(matched_count=1)
        return FakeResult()


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection()
        return self._collections[name]


# ============================================================
# FIXTURES
# ============================================================

STAFF_USER = User(id="staff-1", email="ops@flightschool.co.nz", first_name="Olive", last_name="Ops",
                  role=UserRole.ADMIN, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
MEMBER_USER = User(id="member-1", email="pilot@flightschool.co.nz", first_name="Pat", last_name="Pilot",
                   role=UserRole.MEMBER, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def settings():
    return Settings(school_timezone="UTC", environment="test")


@pytest.fixture
def auth_state():
    """Mutable holder for the user the API sees"""
    return {"user": STAFF_USER}


@pytest.fixture
def client(fake_db, settings, auth_state):
    async def override_db():
        return fake_db

    async def override_user():
        return auth_state["user"]

    app.dependency_overrides[get_database] = override_db
    app.dependency_overrides[get_current_user] = override_user
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_member(auth_state):
    auth_state["user"] = MEMBER_USER
    return MEMBER_USER


@pytest.fixture
def aircraft(fake_db):
    doc = {
        "_id": "ac-1",
        "registration": "ZK-ABC",
        "aircraft_type": "C172",
        "total_hours": 1005.0,
        "status": "active",
        "order": 0,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    fake_db.aircrafts.seed(doc)
    return doc
