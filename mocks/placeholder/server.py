"""
Mock JSONPlaceholder server providing users, posts and comments.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException, Query

from shared.logging import get_logger


@dataclass
class MockDataset:
    """In-memory source records."""
    users: List[Dict[str, Any]] = field(default_factory=list)
    posts: List[Dict[str, Any]] = field(default_factory=list)
    comments: List[Dict[str, Any]] = field(default_factory=list)


class MockPlaceholderServer:
    """Mock source API implementation."""

    def __init__(
        self,
        user_count: int = 3,
        posts_per_user: int = 2,
        comments_per_post: int = 2,
        dataset: Optional[MockDataset] = None,
    ):
        self.logger = get_logger("mock.placeholder")
        self.app = FastAPI(title="Mock JSONPlaceholder", version="1.0.0")
        self.dataset = dataset or self._generate(user_count, posts_per_user, comments_per_post)
        # Paths listed here answer 503 to simulate an unavailable source
        self.failing_paths: Set[str] = set()
        self.request_log: List[str] = []

        self._setup_routes()

    @staticmethod
    def _generate(user_count: int, posts_per_user: int, comments_per_post: int) -> MockDataset:
        """Create deterministic sample data."""
        names = ["Leanne Graham", "Ervin Howell", "Clementine Bauch", "Patricia Lebsack", "Chelsey Dietrich"]
        dataset = MockDataset()
        post_id = 0
        comment_id = 0

        for user_id in range(1, user_count + 1):
            name = names[(user_id - 1) % len(names)]
            handle = name.split()[0].lower()
            dataset.users.append({
                "id": user_id,
                "name": name,
                "username": f"{handle}{user_id}",
                "email": f"{handle}{user_id}@example.org",
            })

            # Titles are generated in reverse order so loaders must sort them
            for index in range(posts_per_user, 0, -1):
                post_id += 1
                dataset.posts.append({
                    "userId": user_id,
                    "id": post_id,
                    "title": f"post {chr(ord('a') + index - 1)} by {handle}",
                    "body": f"body of post {post_id}",
                })
                for _ in range(comments_per_post):
                    comment_id += 1
                    dataset.comments.append({
                        "postId": post_id,
                        "id": comment_id,
                        "name": f"comment {comment_id}",
                        "email": f"reader{comment_id}@example.org",
                        "body": f"body of comment {comment_id}",
                    })

        return dataset

    def _check_available(self, path: str) -> None:
        self.request_log.append(path)
        if path in self.failing_paths:
            self.logger.info("Simulating source failure", path=path)
            raise HTTPException(status_code=503, detail="Source unavailable")

    def _setup_routes(self):
        """Set up mock routes."""

        @self.app.get("/users")
        async def list_users():
            self._check_available("/users")
            return self.dataset.users

        @self.app.get("/posts")
        async def list_posts(userId: Optional[int] = Query(None)):
            self._check_available("/posts")
            return [p for p in self.dataset.posts if userId is None or p["userId"] == userId]

        @self.app.get("/comments")
        async def list_comments(postId: Optional[int] = Query(None)):
            self._check_available("/comments")
            return [c for c in self.dataset.comments if postId is None or c["postId"] == postId]


def create_app():
    """Create mock source application."""
    server = MockPlaceholderServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8090)
