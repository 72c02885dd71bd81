"""
Record access contract and the in-memory collection.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

from shared.logging import get_logger
from service_users.app.query.builder import RecordFilter, SortDirection


Record = Dict[str, Any]


class RecordCollection(ABC):
    """Async document collection used by the directory.

    Implementations guarantee single-document atomicity only.
    """

    name: str = "records"

    @abstractmethod
    async def find(
        self,
        record_filter: RecordFilter,
        sort_field: str,
        sort_direction: SortDirection,
        skip: int,
        limit: int,
    ) -> List[Record]:
        """Return one ordered page of records matching the filter."""

    @abstractmethod
    async def count(self, record_filter: RecordFilter) -> int:
        """Count records matching the filter."""

    @abstractmethod
    async def find_one(self, identity: Mapping[str, Any]) -> Optional[Record]:
        """Return the first record whose fields equal ``identity``."""

    @abstractmethod
    async def insert_one(self, record: Mapping[str, Any]) -> None:
        """Insert a single record."""

    @abstractmethod
    async def delete_one(self, identity: Mapping[str, Any]) -> int:
        """Delete the first matching record; return 0 or 1."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def _sort_key(value: Any) -> Tuple[int, Any]:
    # Missing < numbers < strings < everything else, like document stores order mixed types
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (3, int(value))
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (4, str(value))


class InMemoryRecordCollection(RecordCollection):
    """List-backed collection for local runs and tests."""

    def __init__(self, name: str = "users", records: Optional[List[Mapping[str, Any]]] = None):
        self.name = name
        self.logger = get_logger("users.record_store")
        self._records: List[Record] = [copy.deepcopy(dict(r)) for r in records or []]
        self._lock = asyncio.Lock()

    async def find(
        self,
        record_filter: RecordFilter,
        sort_field: str,
        sort_direction: SortDirection,
        skip: int,
        limit: int,
    ) -> List[Record]:
        async with self._lock:
            matched = [r for r in self._records if record_filter.matches(r)]
            matched.sort(
                key=lambda r: _sort_key(r.get(sort_field)),
                reverse=sort_direction is SortDirection.DESCENDING,
            )
            page = matched[skip:skip + limit]
            return copy.deepcopy(page)

    async def count(self, record_filter: RecordFilter) -> int:
        async with self._lock:
            return sum(1 for r in self._records if record_filter.matches(r))

    async def find_one(self, identity: Mapping[str, Any]) -> Optional[Record]:
        async with self._lock:
            index = self._index_of(identity)
            return copy.deepcopy(self._records[index]) if index is not None else None

    async def insert_one(self, record: Mapping[str, Any]) -> None:
        async with self._lock:
            self._records.append(copy.deepcopy(dict(record)))

    async def delete_one(self, identity: Mapping[str, Any]) -> int:
        async with self._lock:
            index = self._index_of(identity)
            if index is None:
                return 0
            del self._records[index]
            return 1

    def __len__(self) -> int:
        return len(self._records)

    def _index_of(self, identity: Mapping[str, Any]) -> Optional[int]:
        for index, record in enumerate(self._records):
            if all(record.get(key) == value for key, value in identity.items()):
                return index
        return None
