"""
Cached reads and invalidating writes over the users collection.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

from shared.errors import AccessLayerException, ConflictError, NotFoundError, UpstreamFailure
from shared.logging import get_logger
from service_users.app.adapters.record_store import RecordCollection
from service_users.app.caching.keys import CacheKeyPolicy
from service_users.app.caching.response_cache import ResponseCache
from service_users.app.query.builder import QueryBuilder, total_pages
from .ingestion import UserLoader
from .models import validate_new_user


USERS_NAMESPACE = "/users"


class UserDirectory:
    """Serves user reads through the response cache and purges it on writes.

    Reads consult the cache first and populate it on a miss. Every write
    (insert, delete, load) invalidates the whole ``/users`` namespace, so
    both single-user and list entries are dropped together. A read that
    started before a write may still repopulate a purged key; that window
    is accepted.
    """

    def __init__(
        self,
        collection: RecordCollection,
        cache: ResponseCache,
        *,
        loader: Optional[UserLoader] = None,
        query_builder: Optional[QueryBuilder] = None,
        key_policy: Optional[CacheKeyPolicy] = None,
    ):
        self.collection = collection
        self.cache = cache
        self.loader = loader
        self.query_builder = query_builder or QueryBuilder()
        self.keys = key_policy or CacheKeyPolicy(USERS_NAMESPACE)
        self.logger = get_logger("users.directory")

    async def get_user(self, user_id: int) -> Dict[str, Any]:
        """Return ``{"user", "cached"}`` for one user or raise NotFoundError."""
        cache_key = self.keys.entity_key(user_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return {**cached, "cached": True}

        with self._store_errors("Failed to fetch user"):
            user = await self.collection.find_one({"id": user_id})

        if user is None:
            raise NotFoundError("User not found", details={"userId": user_id})

        payload = {"user": user, "cached": False}
        self.cache.put(cache_key, payload)
        return payload

    async def list_users(self, params: Mapping[str, Optional[str]]) -> Dict[str, Any]:
        """Return one page of users for raw query-string parameters."""
        query = self.query_builder.parse(params)
        cache_key = self.keys.collection_key(query.cache_params())
        cached = self.cache.get(cache_key)
        if cached is not None:
            return {**cached, "cached": True}

        descriptor = self.query_builder.to_descriptor(query)
        with self._store_errors("Failed to fetch users"):
            users = await self.collection.find(
                descriptor.filter,
                descriptor.sort_field,
                descriptor.sort_direction,
                descriptor.skip,
                descriptor.limit,
            )
            total_users = await self.collection.count(descriptor.filter)

        payload = {
            "page": query.page,
            "limit": query.limit,
            "totalUsers": total_users,
            "totalPages": total_pages(total_users, query.limit),
            "users": users,
            "cached": False,
        }
        self.cache.put(cache_key, payload)
        return payload

    async def create_user(self, document: Any) -> Dict[str, Any]:
        """Insert a new user; duplicates are rejected with ConflictError."""
        user = validate_new_user(document)

        with self._store_errors("Failed to add user"):
            existing = await self.collection.find_one({"id": user["id"]})
            if existing is not None:
                raise ConflictError("User already exists.", details={"userId": user["id"]})
            await self.collection.insert_one(user)

        self.cache.invalidate_prefix(self.keys.prefix)
        self.logger.info("User created", user_id=user["id"])
        return user

    async def delete_user(self, user_id: int) -> Dict[str, str]:
        with self._store_errors("Failed to delete user"):
            deleted = await self.collection.delete_one({"id": user_id})

        if deleted == 0:
            raise NotFoundError("User not found", details={"userId": user_id})

        self.cache.invalidate_prefix(self.keys.prefix)
        self.logger.info("User deleted", user_id=user_id)
        return {"message": "User deleted successfully"}

    async def load(self) -> Dict[str, int]:
        """Ingest the source API into the collection."""
        if self.loader is None:
            raise UpstreamFailure(service="placeholder_api", message="Failed to load data")

        # A partial load may already have replaced some users
        try:
            with self._store_errors("Failed to load data"):
                summary = await self.loader.load()
        finally:
            self.cache.invalidate_prefix(self.keys.prefix)
        return summary

    @contextmanager
    def _store_errors(self, message: str) -> Iterator[None]:
        """Report any store or source failure as UpstreamFailure(message)."""
        try:
            yield
        except UpstreamFailure as exc:
            raise UpstreamFailure(service=exc.service, message=message, details={"cause": exc.message}) from exc
        except AccessLayerException:
            raise
        except Exception as exc:
            self.logger.error("Record access failed", operation=message, error=str(exc), exc_info=True)
            raise UpstreamFailure(service=self.collection.name, message=message, details={"cause": str(exc)}) from exc
