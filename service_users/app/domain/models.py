"""
Record schemas for the users namespace.
"""

import math
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.errors import ClientInputError


class SourceComment(BaseModel):
    """Comment as served by the source API."""

    model_config = ConfigDict(extra="allow")

    id: int
    postId: int
    name: Optional[str] = None
    email: Optional[str] = None
    body: Optional[str] = None


class SourcePost(BaseModel):
    """Post as served by the source API, with its comments attached on load."""

    model_config = ConfigDict(extra="allow")

    id: int
    userId: int
    title: str = ""
    body: Optional[str] = None
    comments: List[SourceComment] = Field(default_factory=list)


class SourceUser(BaseModel):
    """User as served by the source API, with its posts attached on load."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    posts: List[SourcePost] = Field(default_factory=list)


def parse_source_records(model: type, payload: List[Any]) -> List[Any]:
    """Validate a list payload from the source API."""
    try:
        return [model.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ValueError(f"Malformed {model.__name__} payload: {exc.error_count()} error(s)") from exc


def validate_new_user(payload: Any) -> Dict[str, Any]:
    """
    Check a client-supplied user document.

    The document must be a JSON object with a numeric ``id``. Integral
    floats are normalized to int; any other id is rejected.
    """
    if not isinstance(payload, dict):
        raise ClientInputError("Invalid user data")

    user_id = payload.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, (int, float)):
        raise ClientInputError("Invalid user data")
    if isinstance(user_id, float):
        if not math.isfinite(user_id) or not user_id.is_integer():
            raise ClientInputError("Invalid user data")
        user_id = int(user_id)

    return {**payload, "id": user_id}


def parse_user_id(raw: Any) -> int:
    """Parse a user id taken from a URL path segment; only ASCII digits are accepted."""
    text = str(raw)
    if not re.fullmatch(r"\d+", text, re.ASCII):
        raise ClientInputError("Invalid userId", details={"userId": text})
    return int(text)
