"""
pytest fixtures: an in-memory stand-in for the pymongo async database, a test
config, and a TestClient wired to both.
"""

import asyncio
import copy
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from portfolio_api.api.server import create_app
from portfolio_api.auth import create_user
from portfolio_api.config import Config


ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-pass-123"


# ---------------------------------------------------------------------------
# Fake MongoDB (only the calls the services make)
# ---------------------------------------------------------------------------


def _matches(doc, query):
    for key, cond in (query or {}).items():
        value = doc.get(key)
        if isinstance(cond, dict) and any(str(k).startswith("$") for k in cond):
            # Only literal equality is expected from the services; anything else
            # reaching the store is a bug worth failing loudly on.
            assert set(cond) == {"$eq"}, f"unexpected operator in query: {cond!r}"
            if value != cond["$eq"]:
                return False
        elif value != cond:
            return False
    return True


def _sort_value(value):
    # MongoDB orders null/missing before any value.
    return (value is not None, value if value is not None else 0)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        for field, d in reversed(keys):
            self._docs.sort(key=lambda doc: _sort_value(doc.get(field)), reverse=d < 0)
        return self

    async def to_list(self, length=None):
        return copy.deepcopy(self._docs[:length] if length else self._docs)


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = []
        self.unique_fields = set()

    async def create_index(self, keys, unique=False):
        if unique:
            for field, _ in keys:
                self.unique_fields.add(field)
        return "_".join(f"{f}_{d}" for f, d in keys)

    async def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        for field in self.unique_fields:
            if any(d.get(field) == doc.get(field) for d in self.docs):
                raise DuplicateKeyError(f"duplicate key: {field}")
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        for d in self.docs:
            if _matches(d, query):
                return copy.deepcopy(d)
        return None

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        assert set(update) == {"$set"}, f"unexpected update document: {update!r}"
        for d in self.docs:
            if _matches(d, query):
                before = copy.deepcopy(d)
                d.update(copy.deepcopy(update["$set"]))
                return copy.deepcopy(d) if return_document == ReturnDocument.AFTER else before
        return None

    async def delete_one(self, query):
        for i, d in enumerate(self.docs):
            if _matches(d, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def distinct(self, key, query=None):
        out = []
        for d in self.docs:
            if _matches(d, query) and key in d and d[key] not in out:
                out.append(d[key])
        return out

    async def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))


class FakeDatabase:
    def __init__(self):
        self._collections = {}
        self.down = False
        self.ping_delay = 0.0

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    async def command(self, name):
        if self.ping_delay:
            await asyncio.sleep(self.ping_delay)
        if self.down:
            raise ConnectionFailure("connection refused")
        return {"ok": 1.0}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cfg():
    return Config(
        JWT_SECRET="test-secret-key",
        APP_ENV="test",
        ADMIN_USERNAME=ADMIN_USERNAME,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        CORS_ALLOW_ORIGINS="",
        HEALTH_DB_TIMEOUT_SECONDS=0.2,
    )


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def notifier():
    n = Mock()
    n.send_contact_notification = AsyncMock(return_value=True)
    return n


@pytest.fixture
def app(cfg, database, notifier):
    return create_app(cfg, database=database, notifier=notifier)


@pytest.fixture
def client(app):
    # Context manager runs the lifespan (indexes + admin bootstrap).
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_token(client):
    r = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


@pytest.fixture
def editor_token(client, database):
    asyncio.run(create_user(database, username="editor", password="editor-pass", role="editor"))
    r = client.post("/api/auth/login", json={"username": "editor", "password": "editor-pass"})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
