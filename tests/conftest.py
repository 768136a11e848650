"""
Root conftest.py for plan-catalog tests.

This file provides:
1. A Motor-shaped async facade over mongomock, so repositories and routes run
   against an in-memory MongoDB.
2. An app wired to that database with uploads under a per-test directory.
3. Seed helpers and an authenticated admin client.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable

import mongomock
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from plan_catalog.api.fastapi import create_app
from plan_catalog.app.settings import AppSettings
from plan_catalog.auth.passwords import hash_password
from plan_catalog.auth.settings import AuthSettings, get_auth_settings
from plan_catalog.auth.tokens import create_access_token
from plan_catalog.db.client import MongoDatabase
from plan_catalog.db.integration import get_mongo
from plan_catalog.plans.files import PlanFileStore
from plan_catalog.plans.repository import PlanRepository

from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD, BASE_TIME, PDF_BYTES, TEST_SECRET


def pytest_configure(config):
    for name, desc in [
        ("security", "Auth and upload hardening tests"),
        ("concurrency", "Atomic counter and idempotency tests"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


# =============================================================================
# ASYNC MONGO FACADE
# =============================================================================


class AsyncCursor:
    """Async iteration over a mongomock cursor or aggregate result."""

    def __init__(self, cursor):
        self._it = iter(cursor)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._it)
        except StopIteration:
            raise StopAsyncIteration from None

    async def to_list(self, length=None):
        return list(self._it)


class AsyncCollection:
    """Motor-shaped collection: awaitable operations, cursor-returning find/aggregate.

    ``sync`` exposes the underlying mongomock collection for direct seeding.
    """

    def __init__(self, collection):
        self.sync = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self.sync.find(*args, **kwargs))

    def aggregate(self, pipeline, **kwargs):
        return AsyncCursor(self.sync.aggregate(pipeline, **kwargs))

    def __getattr__(self, name):
        method = getattr(self.sync, name)

        async def call(*args, **kwargs):
            # yield once so gathered coroutines interleave like real I/O
            await asyncio.sleep(0)
            return method(*args, **kwargs)

        return call


class AsyncDatabase:
    def __init__(self, database):
        self._database = database

    @property
    def name(self) -> str:
        return self._database.name

    def __getitem__(self, name: str) -> AsyncCollection:
        return AsyncCollection(self._database[name])

    async def command(self, command, **kwargs):
        return self._database.command(command, **kwargs)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def mongo() -> MongoDatabase:
    """In-memory catalog database."""
    client = mongomock.MongoClient(tz_aware=True)
    return MongoDatabase(client, AsyncDatabase(client["plan_catalog_test"]))


@pytest.fixture
def upload_root(tmp_path: Path, monkeypatch) -> Path:
    """Run each test from its own working directory; uploads land in ./uploads."""
    monkeypatch.chdir(tmp_path)
    return tmp_path / "uploads"


@pytest.fixture
def file_store(upload_root: Path) -> PlanFileStore:
    return PlanFileStore("uploads", max_bytes=1024 * 1024)


@pytest.fixture
def plan_repo(mongo: MongoDatabase) -> PlanRepository:
    return PlanRepository(mongo.plans)


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(jwt_secret=TEST_SECRET, cookie_secure=False, bcrypt_rounds=4)


@pytest.fixture
def app(mongo, upload_root, auth_settings):
    """FastAPI app bound to the in-memory database and the per-test upload dir."""
    app = create_app(AppSettings(upload_dir="uploads", max_upload_mb=1, cors_origins="http://testserver"))
    app.dependency_overrides[get_mongo] = lambda: mongo
    app.dependency_overrides[get_auth_settings] = lambda: auth_settings
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


@pytest.fixture
def admin_doc(mongo) -> dict[str, Any]:
    doc = {
        "email": ADMIN_EMAIL,
        "password": hash_password(ADMIN_PASSWORD, rounds=4),
        "createdAt": BASE_TIME,
    }
    mongo.admins.sync.insert_one(doc)
    return doc


@pytest_asyncio.fixture
async def admin_client(client, admin_doc, auth_settings):
    """The same client, carrying a valid admin session cookie."""
    token = create_access_token(str(admin_doc["_id"]), admin_doc["email"], auth_settings)
    client.cookies.set(auth_settings.cookie_name, token)
    return client


@pytest.fixture
def seed_plan(mongo, upload_root) -> Callable[..., dict[str, Any]]:
    """Insert a plan document directly; each call is one minute newer than the last."""
    counter = itertools.count()

    def _seed(*, with_file: bool = True, **fields: Any) -> dict[str, Any]:
        n = next(counter)
        created = BASE_TIME + timedelta(minutes=n)
        file_path = None
        if with_file:
            upload_root.mkdir(parents=True, exist_ok=True)
            name = f"seed-{n}.pdf"
            (upload_root / name).write_bytes(PDF_BYTES)
            file_path = f"uploads/{name}"
        doc: dict[str, Any] = {
            "title": f"Plan {n}",
            "description": None,
            "fileName": f"plan-{n}.pdf",
            "filePath": file_path,
            "fileSize": len(PDF_BYTES),
            "storeys": 1,
            "bedrooms": 3,
            "toilets": 2,
            "livingAreas": 1,
            "constructionType": [],
            "outdoorFeatures": [],
            "indoorFeatures": [],
            "extractedKeywords": [],
            "status": "active",
            "downloadCount": 0,
            "createdAt": created,
            "updatedAt": created,
        }
        doc.update(fields)
        mongo.plans.sync.insert_one(doc)
        return doc

    return _seed
