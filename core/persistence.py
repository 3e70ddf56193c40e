"""
Persistence of the conversation store to a local JSON document.

In-memory state is authoritative. The PersistenceAdapter subscribes to the
store and writes a filtered snapshot in the background, coalescing bursts
of changes into a single write of the latest state.

Load order: version check and legacy migration (with a backup of the raw
file), in-memory normalization, then a blob GC pass.
"""

import asyncio
import json
import logging
import os
import shutil
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

from config.defaults import PERSIST_DEBOUNCE_SECONDS

from .blobs import BlobStore
from .constants import CHAT_STORE_VERSION, LEGACY_BACKUP_SUFFIX
from .converters import in_mem_head_clean_conversations, migrate_persisted_state, recreate_conversations
from .gc import BlobGarbageCollector
from .models import Conversation
from .store import ConversationStore
from .tokens import TokenEstimator
from .workspace import ClientWorkspace

logger = logging.getLogger(__name__)


# =============================================================================
# Document store
# =============================================================================


class ChatDocumentStore:
    """A versioned JSON document: {"state": {...}, "version": N}."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + LEGACY_BACKUP_SUFFIX)

    def load(self) -> tuple[dict[str, Any], int] | None:
        """
        Read the document.

        Returns:
            (state, version), or None if the file is missing or unreadable
        """
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to read chat document %s: %s", self.path, e)
            return None
        if not isinstance(document, dict) or not isinstance(document.get("state"), dict):
            logger.error("Chat document %s has no state, ignoring it", self.path)
            return None
        version = document.get("version")
        return document["state"], version if isinstance(version, int) else 0

    def save(self, state: dict[str, Any], version: int = CHAT_STORE_VERSION) -> None:
        """Write the document atomically (temp file then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps({"state": state, "version": version}), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def backup(self) -> Path | None:
        """Copy the raw document aside before migrating it; keeps an existing backup."""
        if not self.path.exists():
            return None
        if not self.backup_path.exists():
            shutil.copyfile(self.path, self.backup_path)
            logger.info("Backed up legacy chat document to %s", self.backup_path)
        return self.backup_path


def snapshot_for_storage(conversations: Iterable[Conversation]) -> dict[str, Any]:
    """Serializable state without incognito or empty conversations (abort handles are never dumped)."""
    return {
        "conversations": [
            c.model_dump(mode="json", by_alias=True, exclude_none=True)
            for c in conversations
            if not c.is_incognito and c.messages
        ]
    }


def load_conversations(
    document_store: ChatDocumentStore, valid_live_file_ids: Iterable[str] | None = None
) -> list[Conversation] | None:
    """
    Load, migrate and normalize the persisted conversations.

    Returns:
        The conversations, or None if there is no usable document
    """
    loaded = document_store.load()
    if loaded is None:
        return None
    state, version = loaded
    if version < CHAT_STORE_VERSION:
        document_store.backup()
        state = migrate_persisted_state(state, version)
    elif version > CHAT_STORE_VERSION:
        logger.warning("Chat document version %s is newer than %s, loading anyway", version, CHAT_STORE_VERSION)

    raw = state.get("conversations")
    valid_ids = frozenset(valid_live_file_ids) if valid_live_file_ids is not None else None
    cleaned = in_mem_head_clean_conversations(raw if isinstance(raw, list) else [], valid_ids)
    conversations = recreate_conversations(cleaned, valid_ids)
    logger.info("Loaded %d conversations from %s", len(conversations), document_store.path)
    return conversations


# =============================================================================
# Adapter
# =============================================================================


class PersistenceAdapter:
    """Writes store snapshots to the document store in the background."""

    def __init__(
        self,
        store: ConversationStore,
        document_store: ChatDocumentStore,
        debounce_seconds: float = PERSIST_DEBOUNCE_SECONDS,
    ):
        self.store = store
        self.document_store = document_store
        self.debounce_seconds = debounce_seconds
        self._latest: Sequence[Conversation] | None = None
        self._dirty = False
        self._task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self.writes = 0

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)

    def _on_change(self, conversations: tuple[Conversation, ...]) -> None:
        self._latest = conversations
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write_latest()
            return
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._drain())

    def _write_latest(self) -> None:
        if not self._dirty or self._latest is None:
            return
        self._dirty = False
        self.document_store.save(snapshot_for_storage(self._latest))
        self.writes += 1

    async def _drain(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        while self._dirty and self._latest is not None:
            self._dirty = False
            snapshot = snapshot_for_storage(self._latest)
            try:
                await asyncio.to_thread(self.document_store.save, snapshot)
                self.writes += 1
            except OSError as e:
                logger.error("Failed to persist conversations to %s: %s", self.document_store.path, e)

    async def flush(self) -> None:
        """Wait for pending background writes, then write anything left."""
        if self._task is not None and not self._task.done():
            await self._task
        if self._dirty and self._latest is not None:
            self._dirty = False
            await asyncio.to_thread(self.document_store.save, snapshot_for_storage(self._latest))
            self.writes += 1

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.flush()


# =============================================================================
# Bootstrap
# =============================================================================


async def open_store(
    document_store: ChatDocumentStore,
    blob_store: BlobStore | None = None,
    estimator: TokenEstimator | None = None,
    chat_model_id: str | None = None,
    workspace: ClientWorkspace | None = None,
) -> ConversationStore:
    """
    Rehydrate a store from disk and schedule the post-load blob GC.

    Args:
        document_store: Where conversations are persisted
        blob_store: Blob store to garbage-collect, if any
        estimator: Token estimator for the store
        chat_model_id: Model used to price messages
        workspace: Live-file workspace used to validate references

    Returns:
        The ready store (not yet persisting; attach a PersistenceAdapter)
    """
    workspace = workspace or ClientWorkspace()
    conversations = await asyncio.to_thread(
        load_conversations, document_store, workspace.valid_live_file_ids()
    )
    gc = BlobGarbageCollector(blob_store) if blob_store is not None else None
    store = ConversationStore(
        estimator=estimator,
        chat_model_id=chat_model_id,
        workspace=workspace,
        gc=gc,
        conversations=conversations,
    )
    if gc is not None:
        gc.schedule(lambda: store.conversations)
    return store
