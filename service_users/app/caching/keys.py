"""
Cache key derivation for a record namespace.

Keys are grouped under a namespace root such as ``/users``:

- single records:  ``/users/<id>``
- collection reads: ``/users?<canonical json of the normalized parameters>``

Invalidating the namespace root therefore purges both kinds at once.
"""

import json
from typing import Any, Mapping


class CacheKeyPolicy:
    """Derives deterministic cache keys for one namespace."""

    def __init__(self, namespace: str):
        if not namespace.startswith("/"):
            namespace = f"/{namespace}"
        self.namespace = namespace.rstrip("/")

    @property
    def prefix(self) -> str:
        """Invalidation prefix covering every key of the namespace."""
        return self.namespace

    def entity_key(self, identifier: Any) -> str:
        return f"{self.namespace}/{identifier}"

    def collection_key(self, params: Mapping[str, Any]) -> str:
        # Sorted keys make the key independent of parameter order
        canonical = json.dumps(dict(params), sort_keys=True, separators=(",", ":"), default=str)
        return f"{self.namespace}?{canonical}"

    def owns(self, key: str) -> bool:
        return key.startswith(self.prefix)
