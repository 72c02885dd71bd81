"""
Domain layer for the Users Service: cached directory reads, writes and ingestion.
"""

from .directory import UserDirectory, USERS_NAMESPACE
from .ingestion import UserLoader

__all__ = ["UserDirectory", "UserLoader", "USERS_NAMESPACE"]
