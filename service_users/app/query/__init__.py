"""
Query construction for paginated, searchable, sortable collection reads.
"""

from .builder import (
    FieldPredicate,
    ListQuery,
    QueryBuilder,
    QueryDescriptor,
    RecordFilter,
    SORT_FIELDS,
    SortDirection,
    total_pages,
)

__all__ = [
    "FieldPredicate",
    "ListQuery",
    "QueryBuilder",
    "QueryDescriptor",
    "RecordFilter",
    "SORT_FIELDS",
    "SortDirection",
    "total_pages",
]
