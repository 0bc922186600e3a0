"""
MongoDB-backed property listing service.

Executes compiled search queries against the properties collection and
implements create/read/update/delete for individual listings. Storage
errors (pymongo.errors.PyMongoError) are not caught here; callers decide
how to report them.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.config import Settings
from app.models.property import Property, PropertyCreate
from app.services.search_resolver import CompiledQuery

logger = logging.getLogger(__name__)

# Index definitions for the properties collection
INDEXES: List[List[Tuple[str, int]]] = [
    [("location.city", ASCENDING), ("propertyType", ASCENDING), ("listingType", ASCENDING)],
    [("price", ASCENDING)],
    [("status", ASCENDING)],
    [("featured", DESCENDING), ("createdAt", DESCENDING)],
]

ADMIN_SORT_ORDER: List[Tuple[str, int]] = [("createdAt", DESCENDING)]


class InvalidPropertyIdError(ValueError):
    """The supplied listing id is not a valid ObjectId."""


class PropertyNotFoundError(LookupError):
    """No listing exists with the supplied id."""

    def __init__(self, property_id: str) -> None:
        super().__init__(f"Property not found: {property_id}")
        self.property_id = property_id


def _object_id(property_id: str) -> ObjectId:
    if not property_id or len(property_id) != 24 or not ObjectId.is_valid(property_id):
        raise InvalidPropertyIdError(f"Invalid property ID: {property_id!r}")
    return ObjectId(property_id)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PropertyService:
    """Service for reading and writing property listings in MongoDB."""

    def __init__(self, collection: Any, client: Optional[AsyncIOMotorClient] = None) -> None:
        """
        Initialize the property service.

        Args:
            collection: Motor collection (or a compatible async fake) holding listings.
            client: Owning Motor client, closed by close() when given.
        """
        self.collection = collection
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "PropertyService":
        client = AsyncIOMotorClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        )
        collection = client[settings.mongodb_database][settings.mongodb_collection]
        return cls(collection, client=client)

    def close(self) -> None:
        """Close the MongoDB client."""
        if self.client is not None:
            self.client.close()

    async def ensure_indexes(self) -> None:
        for keys in INDEXES:
            await self.collection.create_index(keys)
        logger.info("Ensured %d indexes on %s", len(INDEXES), self.collection.name)

    async def _find_page(
        self,
        query: Dict[str, Any],
        sort: List[Tuple[str, int]],
        skip: int,
        limit: int,
    ) -> Tuple[List[Property], int]:
        cursor = self.collection.find(query).sort(sort).skip(skip).limit(limit)
        documents, total_count = await asyncio.gather(
            cursor.to_list(length=limit),
            self.collection.count_documents(query),
        )
        return [Property.from_document(doc) for doc in documents], total_count

    async def search(self, compiled: CompiledQuery) -> Tuple[List[Property], int]:
        """
        Run a compiled public search.

        Args:
            compiled: Filter, sort and paging values from SearchCriteriaResolver.

        Returns:
            The listings on the requested page and the total match count.
        """
        properties, total_count = await self._find_page(
            compiled.filter, compiled.sort, compiled.skip, compiled.limit
        )
        logger.info("Search matched %d listings (page %d)", total_count, compiled.page)
        return properties, total_count

    async def list_for_admin(
        self,
        search: Optional[str] = None,
        status: str = "all",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Property], int]:
        """
        List listings in any status for the admin dashboard, newest first.

        Args:
            search: Case-insensitive substring matched against title or city.
            status: A listing status, or "all" for no status restriction.
            page: 1-based page number.
            limit: Page size.
        """
        query: Dict[str, Any] = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"location.city": pattern}]
        if status != "all":
            query["status"] = status

        return await self._find_page(query, ADMIN_SORT_ORDER, (page - 1) * limit, limit)

    async def get_property(self, property_id: str) -> Property:
        """Fetch one listing and count the view."""
        document = await self.collection.find_one_and_update(
            {"_id": _object_id(property_id)},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            raise PropertyNotFoundError(property_id)
        return Property.from_document(document)

    async def create_property(self, data: PropertyCreate, owner_id: str) -> Property:
        now = _utcnow()
        document: Dict[str, Any] = data.model_dump(by_alias=True, mode="json")
        document.update(
            views=0,
            createdBy=ObjectId(owner_id) if ObjectId.is_valid(owner_id) else owner_id,
            createdAt=now,
            updatedAt=now,
        )
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("Created property %s", result.inserted_id)
        return Property.from_document(document)

    async def update_property(self, property_id: str, data: PropertyCreate) -> Property:
        # Fields omitted from the request keep their stored values
        changes = data.model_dump(by_alias=True, mode="json", include=data.model_fields_set)
        changes["updatedAt"] = _utcnow()
        document = await self.collection.find_one_and_update(
            {"_id": _object_id(property_id)},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            raise PropertyNotFoundError(property_id)
        logger.info("Updated property %s", property_id)
        return Property.from_document(document)

    async def delete_property(self, property_id: str) -> None:
        result = await self.collection.delete_one({"_id": _object_id(property_id)})
        if result.deleted_count == 0:
            raise PropertyNotFoundError(property_id)
        logger.info("Deleted property %s", property_id)


# Dependency injection helper for FastAPI
_property_service: Optional[PropertyService] = None


def get_property_service(settings: Settings) -> PropertyService:
    """
    Get or create the property service singleton.

    This allows for dependency injection in FastAPI routes while
    maintaining a single MongoDB client per process.
    """
    global _property_service
    if _property_service is None:
        _property_service = PropertyService.from_settings(settings)
    return _property_service


def close_property_service() -> None:
    global _property_service
    if _property_service is not None:
        _property_service.close()
        _property_service = None
