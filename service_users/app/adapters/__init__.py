"""
Adapters package for the Users Service.

Wraps the two external collaborators:

- the record store (in-memory or MongoDB collection)
- the ingestion source API (HTTP client)

Adapters translate driver and transport failures into shared errors and
keep store-internal details (such as Mongo ``_id``) from leaking out.
"""

from .record_store import InMemoryRecordCollection, Record, RecordCollection
from .mongo_collection import MongoRecordCollection
from .placeholder_client import PlaceholderClient

__all__ = [
    "InMemoryRecordCollection",
    "MongoRecordCollection",
    "PlaceholderClient",
    "Record",
    "RecordCollection",
]
