"""Shared fixtures: an in-memory async stand-in for a Motor collection."""
from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import ServerSelectionTimeoutError

from app.api.routes import Services, get_services
from app.config import Settings
from app.main import app
from app.services.property_service import PropertyService
from app.services.search_resolver import SearchConfig, SearchCriteriaResolver


# ---------------------------------------------------------------------------
# Fake Motor collection
# ---------------------------------------------------------------------------


@dataclass
class InsertResult:
    inserted_id: ObjectId


@dataclass
class DeleteResult:
    deleted_count: int


class FakeCursor:
    """Records sort/skip/limit and returns the stored documents unfiltered."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents
        self.sort_spec: Any = None
        self.skip_count = 0
        self.limit_count = 0

    def sort(self, spec: Any) -> "FakeCursor":
        self.sort_spec = spec
        return self

    def skip(self, count: int) -> "FakeCursor":
        self.skip_count = count
        return self

    def limit(self, count: int) -> "FakeCursor":
        self.limit_count = count
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        docs = self._documents[self.skip_count:]
        if length:
            docs = docs[:length]
        return copy.deepcopy(docs)


class FakeCollection:
    """Just enough of AsyncIOMotorCollection for PropertyService.

    Queries are recorded, not evaluated: ``find`` returns every stored
    document and ``count_documents`` counts them all.
    """

    name = "properties"

    def __init__(self, documents: list[dict[str, Any]] | None = None, *, fail: bool = False) -> None:
        self.documents = list(documents or [])
        self.fail = fail
        self.queries: list[dict[str, Any]] = []
        self.cursors: list[FakeCursor] = []
        self.indexes: list[Any] = []
        self.updates: list[dict[str, Any]] = []

    def _check(self) -> None:
        if self.fail:
            raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    def _by_id(self, oid: ObjectId) -> dict[str, Any] | None:
        return next((d for d in self.documents if d["_id"] == oid), None)

    def find(self, query: dict[str, Any]) -> FakeCursor:
        self.queries.append(query)
        cursor = FakeCursor(self.documents)
        self.cursors.append(cursor)
        return cursor

    async def count_documents(self, query: dict[str, Any]) -> int:
        self._check()
        return len(self.documents)

    async def create_index(self, keys: Any) -> str:
        self._check()
        self.indexes.append(keys)
        return "_".join(f"{k}_{d}" for k, d in keys)

    async def insert_one(self, document: dict[str, Any]) -> InsertResult:
        self._check()
        stored = dict(document, _id=ObjectId())
        self.documents.append(stored)
        return InsertResult(stored["_id"])

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        return_document: Any = ReturnDocument.BEFORE,
    ) -> dict[str, Any] | None:
        self._check()
        self.updates.append(update)
        doc = self._by_id(query["_id"])
        if doc is None:
            return None
        before = copy.deepcopy(doc)
        for key, amount in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + amount
        doc.update(update.get("$set", {}))
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def delete_one(self, query: dict[str, Any]) -> DeleteResult:
        self._check()
        doc = self._by_id(query["_id"])
        if doc is None:
            return DeleteResult(0)
        self.documents.remove(doc)
        return DeleteResult(1)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


def listing_payload(**overrides: Any) -> dict[str, Any]:
    """A valid create/update request body (camelCase, as sent by clients)."""
    payload: dict[str, Any] = {
        "title": "Industrial Loft Conversion",
        "description": "Industrial Loft space with exposed brick and high ceilings.",
        "price": 450000,
        "location": {
            "address": "12 Mill Street",
            "city": "Chicago",
            "state": "IL",
            "zipCode": "60607",
        },
        "propertyType": "apartment",
        "listingType": "sale",
        "features": {"bedrooms": 2, "bathrooms": 1.5, "area": 1100, "amenities": ["Gym"]},
        "agent": {"name": "Mike Wilson", "email": "mike@estatehub.com", "phone": "(555) 123-4567"},
        "featured": True,
    }
    payload.update(overrides)
    return payload


def make_document(**overrides: Any) -> dict[str, Any]:
    """A stored listing document as MongoDB would return it."""
    now = datetime(2024, 1, 15, tzinfo=timezone.utc)
    doc = dict(
        listing_payload(),
        _id=ObjectId(),
        status="active",
        images=[],
        views=0,
        createdBy=ObjectId("507f1f77bcf86cd799439011"),
        createdAt=now,
        updatedAt=now,
    )
    doc.update(overrides)
    return doc


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def resolver() -> SearchCriteriaResolver:
    return SearchCriteriaResolver(SearchConfig())


@pytest.fixture()
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture()
def service(collection: FakeCollection) -> PropertyService:
    return PropertyService(collection)


@pytest.fixture()
def settings() -> Settings:
    return Settings(admin_default_limit=20, admin_max_limit=100)


@pytest.fixture()
def client(service: PropertyService, settings: Settings) -> Any:
    app.dependency_overrides[get_services] = lambda: Services(
        resolver=SearchCriteriaResolver(SearchConfig.from_settings(settings)),
        properties=service,
        settings=settings,
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
