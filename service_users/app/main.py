"""
Users service for the Users Access Layer.

Serves paginated, searchable user reads through an in-process response
cache and ingests users/posts/comments from the source API.
"""

import json
import re
from typing import Callable, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ClientInputError, NotFoundError
from service_users.app.adapters.mongo_collection import MongoRecordCollection
from service_users.app.adapters.placeholder_client import PlaceholderClient
from service_users.app.adapters.record_store import InMemoryRecordCollection, RecordCollection
from service_users.app.caching.response_cache import ResponseCache
from service_users.app.caching.sweeper import CacheSweeper
from service_users.app.domain.directory import UserDirectory
from service_users.app.domain.ingestion import UserLoader
from service_users.app.domain.models import parse_user_id


LIST_PARAMS = ("page", "limit", "search", "sortBy", "order")
_NUMERIC_ID = re.compile(r"\d+", re.ASCII)


def _reject_constant(token: str):
    # json.loads accepts NaN and Infinity, which are not JSON
    raise ValueError(f"Invalid JSON constant {token}")


class UsersService(BaseService):
    """Users service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        collection: Optional[RecordCollection] = None,
        source_client: Optional[PlaceholderClient] = None,
        cache_clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__("users", 3000, config=config)

        self.collection = collection or self._create_collection()
        self.source_client = source_client or PlaceholderClient(
            self.config.source_api_url,
            timeout=self.config.source_timeout_seconds,
        )

        cache_kwargs = {"clock": cache_clock} if cache_clock is not None else {}
        self.cache = ResponseCache(self.config.cache_ttl_millis, metrics=self.metrics, **cache_kwargs)
        self.cache_sweeper = CacheSweeper(self.cache, self.config.cache_sweep_interval_seconds)

        self.loader = UserLoader(
            self.source_client,
            self.collection,
            concurrency=self.config.ingestion_concurrency,
            metrics=self.metrics,
        )
        self.directory = UserDirectory(self.collection, self.cache, loader=self.loader)

        self._setup_user_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.users_service = self

    def _create_collection(self) -> RecordCollection:
        if self.config.record_store_backend == "mongodb":
            return MongoRecordCollection(
                self.config.mongo_uri,
                self.config.db_name,
                self.config.users_collection,
            )
        return InMemoryRecordCollection(self.config.users_collection)

    async def _on_startup(self) -> None:
        await self.cache_sweeper.start()
        self.logger.info(
            "Users service started",
            record_store=type(self.collection).__name__,
            cache_ttl_millis=self.cache.ttl_millis,
        )

    async def _on_shutdown(self) -> None:
        await self.cache_sweeper.stop()
        await self.source_client.close()
        await self.collection.close()

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check users service dependencies."""
        return {
            "record_store": "ok" if await self.collection.ping() else "error",
            "cache": "ok",
        }

    def _setup_user_routes(self):
        """Set up user routes."""

        @self.app.get("/load")
        async def load_users():
            """Ingest users, posts and comments from the source API."""
            await self.directory.load()
            return Response(status_code=200)

        @self.app.get("/users")
        async def list_users(request: Request):
            """List users with pagination, search and sorting."""
            params = {name: request.query_params.get(name) for name in LIST_PARAMS}
            return await self.directory.list_users(params)

        @self.app.get("/users/{user_id}")
        async def get_user(user_id: str):
            """Get a single user by numeric id."""
            if not _NUMERIC_ID.fullmatch(user_id):
                raise NotFoundError("User not found", details={"userId": user_id})
            return await self.directory.get_user(int(user_id))

        @self.app.delete("/users/{user_id}")
        async def delete_user(user_id: str):
            """Delete a user by id."""
            return await self.directory.delete_user(parse_user_id(user_id))

        @self.app.put("/users", status_code=201)
        async def create_user(request: Request):
            """Insert a new user document."""
            body = await request.body()
            try:
                document = json.loads(body, parse_constant=_reject_constant)
            except (ValueError, UnicodeDecodeError):
                raise ClientInputError("Invalid user data") from None

            user = await self.directory.create_user(document)
            return JSONResponse(
                status_code=201,
                content=user,
                headers={"Location": f"/users/{user['id']}"},
            )

        @self.app.get("/cache/stats")
        async def cache_stats():
            """Response cache statistics."""
            return self.cache.stats()


def create_app():
    """Create FastAPI application."""
    service = UsersService()
    return service.app


if __name__ == "__main__":
    service = UsersService(get_config("users"))
    service.run()
