"""
Ingestion of users, posts and comments from the source API into the record store.
"""

import asyncio
from typing import Any, Awaitable, Dict, Iterable, List, Optional, TYPE_CHECKING

from shared.errors import UpstreamFailure
from shared.logging import get_logger
from service_users.app.adapters.placeholder_client import PlaceholderClient
from service_users.app.adapters.record_store import RecordCollection
from .models import SourceComment, SourcePost, SourceUser, parse_source_records

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


async def _gather_or_cancel(coros: Iterable[Awaitable[Any]]) -> List[Any]:
    """Run ``coros`` concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # Collect the siblings so none is left running or unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class UserLoader:
    """Builds denormalized user documents (user -> posts -> comments) and stores them."""

    def __init__(
        self,
        source: PlaceholderClient,
        collection: RecordCollection,
        *,
        concurrency: int = 5,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.source = source
        self.collection = collection
        self.metrics = metrics
        self.logger = get_logger("users.loader")
        self._semaphore = asyncio.Semaphore(max(1, concurrency))

    async def load(self) -> Dict[str, int]:
        """
        Fetch every user with posts and comments, then upsert each user.

        Returns a summary with the number of users, posts and comments stored.
        Source failures propagate as UpstreamFailure; nothing is retried.
        """
        users = self._parse(SourceUser, await self.source.get_users())
        documents = await _gather_or_cancel(self._assemble_user(user) for user in users)

        summary = {"users": 0, "posts": 0, "comments": 0}
        for document in documents:
            await self._upsert(document)
            summary["users"] += 1
            summary["posts"] += len(document["posts"])
            summary["comments"] += sum(len(post["comments"]) for post in document["posts"])

        self._record_ingested(summary)
        self.logger.info("Source data loaded", **summary)
        return summary

    async def _assemble_user(self, user: SourceUser) -> Dict[str, Any]:
        async with self._semaphore:
            posts = self._parse(SourcePost, await self.source.get_posts(user.id))

        comment_lists = await _gather_or_cancel(self._fetch_comments(post.id) for post in posts)
        for post, comments in zip(posts, comment_lists):
            post.comments = comments

        posts.sort(key=lambda post: post.title.casefold())
        user.posts = posts
        return user.model_dump()

    async def _fetch_comments(self, post_id: int) -> List[SourceComment]:
        async with self._semaphore:
            return self._parse(SourceComment, await self.source.get_comments(post_id))

    async def _upsert(self, document: Dict[str, Any]) -> None:
        # Replacing by id keeps repeated loads from duplicating users
        await self.collection.delete_one({"id": document["id"]})
        await self.collection.insert_one(document)

    def _parse(self, model: type, payload: List[Any]) -> List[Any]:
        try:
            return parse_source_records(model, payload)
        except ValueError as exc:
            self.logger.error("Malformed source payload", model=model.__name__, error=str(exc))
            raise UpstreamFailure(service="placeholder_api", message=str(exc)) from exc

    def _record_ingested(self, summary: Dict[str, int]) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter("records_ingested_total", summary["users"], record_type="user")
        self.metrics.increment_counter("records_ingested_total", summary["posts"], record_type="post")
        self.metrics.increment_counter("records_ingested_total", summary["comments"], record_type="comment")
