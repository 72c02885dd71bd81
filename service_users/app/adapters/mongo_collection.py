"""
MongoDB-backed record collection.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from shared.errors import UpstreamFailure
from shared.logging import get_logger
from service_users.app.query.builder import RecordFilter, SortDirection
from .record_store import Record, RecordCollection


# Store-internal identifiers never leave this adapter
_PROJECTION = {"_id": 0}


def to_mongo_filter(record_filter: RecordFilter) -> Dict[str, Any]:
    """Translate a store-agnostic filter into a MongoDB query document."""
    if record_filter.is_empty:
        return {}
    clauses = [
        {predicate.field: {"$regex": re.escape(predicate.contains), "$options": "i"}}
        for predicate in record_filter.predicates
    ]
    return {f"${record_filter.operator}": clauses}


class MongoRecordCollection(RecordCollection):
    """Record collection over PyMongo's asyncio client."""

    def __init__(self, mongo_uri: str, db_name: str, collection_name: str, *, client: Optional[AsyncMongoClient] = None):
        self.name = collection_name
        self.logger = get_logger("users.mongo")
        self._client = client or AsyncMongoClient(mongo_uri)
        self._collection = self._client[db_name][collection_name]
        self.logger.info("Mongo collection configured", db_name=db_name, collection=collection_name)

    async def find(
        self,
        record_filter: RecordFilter,
        sort_field: str,
        sort_direction: SortDirection,
        skip: int,
        limit: int,
    ) -> List[Record]:
        query = to_mongo_filter(record_filter)
        try:
            cursor = (
                self._collection.find(query, _PROJECTION)
                .sort(sort_field, sort_direction.sign)
                .skip(skip)
                .limit(limit)
            )
            return await cursor.to_list()
        except PyMongoError as exc:
            raise self._failure("find", exc) from exc

    async def count(self, record_filter: RecordFilter) -> int:
        try:
            return await self._collection.count_documents(to_mongo_filter(record_filter))
        except PyMongoError as exc:
            raise self._failure("count", exc) from exc

    async def find_one(self, identity: Mapping[str, Any]) -> Optional[Record]:
        try:
            return await self._collection.find_one(dict(identity), _PROJECTION)
        except PyMongoError as exc:
            raise self._failure("find_one", exc) from exc

    async def insert_one(self, record: Mapping[str, Any]) -> None:
        # insert_one adds _id to the document it is given
        try:
            await self._collection.insert_one(dict(record))
        except PyMongoError as exc:
            raise self._failure("insert_one", exc) from exc

    async def delete_one(self, identity: Mapping[str, Any]) -> int:
        try:
            result = await self._collection.delete_one(dict(identity))
            return result.deleted_count
        except PyMongoError as exc:
            raise self._failure("delete_one", exc) from exc

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as exc:
            self.logger.warning("Mongo ping failed", error=str(exc))
            return False

    async def close(self) -> None:
        await self._client.close()

    def _failure(self, operation: str, exc: Exception) -> UpstreamFailure:
        self.logger.error("Mongo operation failed", operation=operation, collection=self.name, error=str(exc))
        return UpstreamFailure(
            service="mongodb",
            message=str(exc),
            details={"operation": operation, "collection": self.name},
        )
