"""
Translation of list-request parameters into store-agnostic query descriptors.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from shared.errors import ClientInputError


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 5
DEFAULT_SORT_FIELD = "id"
SORT_FIELDS: Tuple[str, ...] = ("id", "name", "username", "email")
SEARCH_FIELDS: Tuple[str, ...] = ("name", "username", "email")

_DIGITS = re.compile(r"\d+", re.ASCII)


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def from_token(cls, token: Optional[str]) -> "SortDirection":
        # Only the exact "desc" token flips the order
        return cls.DESCENDING if token == "desc" else cls.ASCENDING

    @property
    def sign(self) -> int:
        return -1 if self is SortDirection.DESCENDING else 1


@dataclass(frozen=True)
class FieldPredicate:
    """Case-insensitive substring match of ``value`` against ``field``."""

    field: str
    contains: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        candidate = record.get(self.field)
        if candidate is None:
            return False
        return self.contains.lower() in str(candidate).lower()


@dataclass(frozen=True)
class RecordFilter:
    """Predicates combined with a single logical operator.

    An empty filter matches every record.
    """

    operator: str = "or"
    predicates: Tuple[FieldPredicate, ...] = ()

    def __post_init__(self):
        if self.operator not in ("or", "and"):
            raise ValueError(f"Unsupported filter operator: {self.operator}")

    @property
    def is_empty(self) -> bool:
        return not self.predicates

    def matches(self, record: Mapping[str, Any]) -> bool:
        if self.is_empty:
            return True
        results = (predicate.matches(record) for predicate in self.predicates)
        return any(results) if self.operator == "or" else all(results)


@dataclass(frozen=True)
class QueryDescriptor:
    """Normalized description of a collection read."""

    filter: RecordFilter = field(default_factory=RecordFilter)
    sort_field: str = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = SortDirection.ASCENDING
    skip: int = 0
    limit: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class ListQuery:
    """Validated list parameters with defaults substituted."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    search: str = ""
    sort_field: str = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = SortDirection.ASCENDING

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def cache_params(self) -> Dict[str, Any]:
        """Parameters that identify this read in the cache."""
        return {
            "page": self.page,
            "limit": self.limit,
            "search": self.search,
            "sortBy": self.sort_field,
            "order": self.sort_direction.value,
        }


class QueryBuilder:
    """Parses raw list parameters and builds query descriptors."""

    def __init__(
        self,
        sort_fields: Sequence[str] = SORT_FIELDS,
        search_fields: Sequence[str] = SEARCH_FIELDS,
        default_sort_field: str = DEFAULT_SORT_FIELD,
        default_limit: int = DEFAULT_LIMIT,
    ):
        if default_sort_field not in sort_fields:
            raise ValueError(f"Default sort field {default_sort_field!r} is not sortable")
        self.sort_fields = tuple(sort_fields)
        self.search_fields = tuple(search_fields)
        self.default_sort_field = default_sort_field
        self.default_limit = default_limit

    def parse(self, params: Mapping[str, Optional[str]]) -> ListQuery:
        """
        Validate raw query-string values.

        Raises ClientInputError for a non-integer or non-positive page/limit,
        or for a sort field outside the allow-list.
        """
        page = self._parse_positive_int(params.get("page"), DEFAULT_PAGE)
        limit = self._parse_positive_int(params.get("limit"), self.default_limit)
        if page is None or limit is None:
            raise ClientInputError("Invalid page or limit value")

        sort_field = params.get("sortBy") or self.default_sort_field
        if sort_field not in self.sort_fields:
            raise ClientInputError(
                f"Invalid sortBy field. Must be one of: {', '.join(self.sort_fields)}",
                details={"sortBy": sort_field, "valid": list(self.sort_fields)},
            )

        return ListQuery(
            page=page,
            limit=limit,
            search=(params.get("search") or "").lower(),
            sort_field=sort_field,
            sort_direction=SortDirection.from_token(params.get("order")),
        )

    def build_filter(self, search: str) -> RecordFilter:
        if not search:
            return RecordFilter()
        return RecordFilter(
            operator="or",
            predicates=tuple(FieldPredicate(name, search) for name in self.search_fields),
        )

    def to_descriptor(self, query: ListQuery) -> QueryDescriptor:
        return QueryDescriptor(
            filter=self.build_filter(query.search),
            sort_field=query.sort_field,
            sort_direction=query.sort_direction,
            skip=query.skip,
            limit=query.limit,
        )

    @staticmethod
    def _parse_positive_int(raw: Optional[str], default: int) -> Optional[int]:
        # Missing or empty values fall back to the default
        if raw is None or raw == "":
            return default
        if not _DIGITS.fullmatch(str(raw)):
            return None
        value = int(raw)
        return value if value >= 1 else None


def total_pages(total_records: int, limit: int) -> int:
    """Number of pages needed to show ``total_records`` at ``limit`` per page."""
    return math.ceil(total_records / limit)
