"""
Unit tests for the record collections.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from pymongo.errors import PyMongoError

from service_users.app.adapters.mongo_collection import MongoRecordCollection, to_mongo_filter
from service_users.app.adapters.record_store import InMemoryRecordCollection
from service_users.app.query.builder import FieldPredicate, RecordFilter, SortDirection
from shared.errors import UpstreamFailure


SAMPLE_USERS = [
    {"id": 3, "name": "Clementine Bauch", "username": "Samantha", "email": "nathan@yesenia.net"},
    {"id": 1, "name": "Leanne Graham", "username": "Bret", "email": "sincere@april.biz"},
    {"id": 2, "name": "Ervin Howell", "username": "Antonette", "email": "shanna@melissa.tv"},
]


class TestInMemoryRecordCollection:
    """Test cases for InMemoryRecordCollection."""

    @pytest.fixture
    def collection(self):
        return InMemoryRecordCollection("users", SAMPLE_USERS)

    @pytest.mark.asyncio
    async def test_find_sorted_ascending(self, collection):
        records = await collection.find(RecordFilter(), "id", SortDirection.ASCENDING, 0, 10)

        assert [r["id"] for r in records] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_find_sorted_descending_by_name(self, collection):
        records = await collection.find(RecordFilter(), "name", SortDirection.DESCENDING, 0, 10)

        assert [r["name"] for r in records] == ["Leanne Graham", "Ervin Howell", "Clementine Bauch"]

    @pytest.mark.asyncio
    async def test_find_skip_and_limit(self, collection):
        records = await collection.find(RecordFilter(), "id", SortDirection.ASCENDING, 1, 1)

        assert [r["id"] for r in records] == [2]

    @pytest.mark.asyncio
    async def test_find_and_count_with_filter(self, collection):
        record_filter = RecordFilter("or", (FieldPredicate("name", "leanne"), FieldPredicate("email", "leanne")))

        records = await collection.find(record_filter, "id", SortDirection.ASCENDING, 0, 10)

        assert [r["id"] for r in records] == [1]
        assert await collection.count(record_filter) == 1
        assert await collection.count(RecordFilter()) == 3

    @pytest.mark.asyncio
    async def test_find_one_insert_delete(self, collection):
        assert await collection.find_one({"id": 4}) is None

        await collection.insert_one({"id": 4, "name": "Patricia"})
        assert (await collection.find_one({"id": 4}))["name"] == "Patricia"

        assert await collection.delete_one({"id": 4}) == 1
        assert await collection.delete_one({"id": 4}) == 0
        assert len(collection) == 3

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, collection):
        record = await collection.find_one({"id": 1})
        record["name"] = "changed"

        assert (await collection.find_one({"id": 1}))["name"] == "Leanne Graham"

    @pytest.mark.asyncio
    async def test_missing_sort_field_sorts_first(self, collection):
        await collection.insert_one({"id": 9})

        records = await collection.find(RecordFilter(), "name", SortDirection.ASCENDING, 0, 10)

        assert records[0]["id"] == 9


class TestMongoFilterTranslation:
    """Test cases for the MongoDB filter translation."""

    def test_empty_filter(self):
        assert to_mongo_filter(RecordFilter()) == {}

    def test_or_filter_escapes_regex(self):
        record_filter = RecordFilter("or", (FieldPredicate("name", "a.b"), FieldPredicate("email", "a.b")))

        assert to_mongo_filter(record_filter) == {
            "$or": [
                {"name": {"$regex": r"a\.b", "$options": "i"}},
                {"email": {"$regex": r"a\.b", "$options": "i"}},
            ]
        }


class TestMongoRecordCollection:
    """Test cases for MongoRecordCollection with a mocked driver."""

    @pytest.fixture
    def mongo_collection(self):
        return MagicMock()

    @pytest.fixture
    def collection(self, mongo_collection):
        client = MagicMock()
        client.__getitem__.return_value.__getitem__.return_value = mongo_collection
        return MongoRecordCollection("mongodb://localhost", "db", "users", client=client)

    @pytest.mark.asyncio
    async def test_find_builds_cursor(self, collection, mongo_collection):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[{"id": 1}])
        mongo_collection.find.return_value = cursor

        records = await collection.find(RecordFilter(), "name", SortDirection.DESCENDING, 5, 5)

        assert records == [{"id": 1}]
        mongo_collection.find.assert_called_once_with({}, {"_id": 0})
        cursor.sort.assert_called_once_with("name", -1)
        cursor.skip.assert_called_once_with(5)
        cursor.limit.assert_called_once_with(5)

    @pytest.mark.asyncio
    async def test_delete_returns_count(self, collection, mongo_collection):
        mongo_collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        assert await collection.delete_one({"id": 1}) == 1
        mongo_collection.delete_one.assert_awaited_once_with({"id": 1})

    @pytest.mark.asyncio
    async def test_insert_does_not_mutate_caller_record(self, collection, mongo_collection):
        mongo_collection.insert_one = AsyncMock()
        record = {"id": 1}

        await collection.insert_one(record)

        assert record == {"id": 1}

    @pytest.mark.asyncio
    async def test_driver_errors_become_upstream_failure(self, collection, mongo_collection):
        mongo_collection.count_documents = AsyncMock(side_effect=PyMongoError("connection refused"))

        with pytest.raises(UpstreamFailure) as exc_info:
            await collection.count(RecordFilter())

        assert exc_info.value.service == "mongodb"
        assert exc_info.value.details["operation"] == "count"
