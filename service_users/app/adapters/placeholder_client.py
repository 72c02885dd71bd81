"""
Client for the JSONPlaceholder-style source API.
"""

from typing import Any, Dict, List, Optional

import httpx

from shared.errors import UpstreamFailure
from shared.logging import get_logger


class PlaceholderClient:
    """Fetches raw users, posts and comments from the ingestion source.

    Requests are not retried; any transport error or non-2xx status is
    surfaced as UpstreamFailure.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("users.placeholder_client")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_users(self) -> List[Dict[str, Any]]:
        return await self._fetch_list("/users")

    async def get_posts(self, user_id: int) -> List[Dict[str, Any]]:
        return await self._fetch_list("/posts", {"userId": user_id})

    async def get_comments(self, post_id: int) -> List[Dict[str, Any]]:
        return await self._fetch_list("/comments", {"postId": post_id})

    async def _fetch_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Source request failed", path=path, params=params, error=str(exc))
            raise UpstreamFailure(
                service="placeholder_api",
                message=str(exc),
                details={"path": path, "params": params},
            ) from exc

        if response.status_code != 200:
            self.logger.error(
                "Source request returned unexpected status",
                path=path,
                params=params,
                status_code=response.status_code,
            )
            raise UpstreamFailure(
                service="placeholder_api",
                message=f"Unexpected status {response.status_code}",
                details={"path": path, "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFailure(service="placeholder_api", message="Invalid JSON payload", details={"path": path}) from exc

        if not isinstance(payload, list):
            raise UpstreamFailure(
                service="placeholder_api",
                message="Expected a JSON array",
                details={"path": path},
            )

        self.logger.debug("Source payload retrieved", path=path, params=params, count=len(payload))
        return payload
