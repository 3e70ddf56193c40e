"""
Server-side state management.

This module holds the conversation store and its collaborators for the
server layer. They are created at startup (see main.py) and injected here.
"""

from collections.abc import AsyncIterator

import httpx

from config.defaults import SHARE_FETCH_TIMEOUT_SECONDS
from core import BlobGarbageCollector, ConversationStore, PersistenceAdapter


# =============================================================================
# Store Management
# =============================================================================

_store: ConversationStore | None = None


def set_store(new_store: ConversationStore | None) -> None:
    """Set the conversation store instance. Called at startup."""
    global _store
    _store = new_store


def get_store() -> ConversationStore:
    """
    Get the current conversation store, creating an in-memory one if unset.
    """
    global _store
    if _store is None:
        _store = ConversationStore()
    return _store


def has_store() -> bool:
    return _store is not None


# =============================================================================
# Persistence Management
# =============================================================================

_persistence: PersistenceAdapter | None = None


def set_persistence(adapter: PersistenceAdapter | None) -> None:
    """Set the persistence adapter instance."""
    global _persistence
    _persistence = adapter


def get_persistence() -> PersistenceAdapter | None:
    """Get the current persistence adapter instance."""
    return _persistence


def get_gc() -> BlobGarbageCollector | None:
    """The blob collector attached to the current store, if any."""
    return get_store().gc


# =============================================================================
# HTTP Clients
# =============================================================================


async def get_share_client() -> AsyncIterator[httpx.AsyncClient]:
    """FastAPI dependency: a short-lived client for the link storage service."""
    async with httpx.AsyncClient(timeout=SHARE_FETCH_TIMEOUT_SECONDS) as client:
        yield client
