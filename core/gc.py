"""
Blob garbage collection.

Deletes blobs that no conversation references. Runs opportunistically
after rehydration and after destructive edits, as a fire-and-forget
background task; never on a timer and never concurrently with itself.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from config.features import feature_manager

from .blobs import BlobStore
from .models import BlobDataRef, Conversation, ImageRefPart, ReferencePart

logger = logging.getLogger(__name__)


def _image_ref_blob_id(part: ImageRefPart) -> str | None:
    if isinstance(part.data_ref, BlobDataRef):
        return part.data_ref.dblob_asset_id
    return None


def collect_referenced_blob_ids(conversations: Iterable[Conversation]) -> set[str]:
    """Collect blob ids referenced by image-like parts of content and attachment fragments."""
    referenced: set[str] = set()
    for conversation in conversations:
        for message in conversation.messages:
            for fragment in message.fragments:
                if fragment.ft == "void":
                    continue
                part = fragment.part
                if isinstance(part, ImageRefPart):
                    blob_id = _image_ref_blob_id(part)
                    if blob_id:
                        referenced.add(blob_id)
                elif isinstance(part, ReferencePart):
                    referenced.add(part.asset_uuid)
                    if part.legacy_image_ref is not None:
                        blob_id = _image_ref_blob_id(part.legacy_image_ref)
                        if blob_id:
                            referenced.add(blob_id)
    return referenced


class BlobGarbageCollector:
    """Single-flight collector of unreferenced blobs."""

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store
        self._running = False
        self._task: asyncio.Task[Any] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def collect_unreferenced(self, conversations: Sequence[Conversation]) -> list[str]:
        """
        Delete every stored blob that no conversation references.

        An empty referenced set never deletes anything: it is more likely an
        incomplete read of the conversations than a true "nothing is used".

        Args:
            conversations: Snapshot of all conversations

        Returns:
            The ids that were deleted
        """
        if not feature_manager.is_enabled("blob_gc"):
            logger.debug("Blob GC disabled by feature flag")
            return []
        if self._running:
            logger.debug("Blob GC already in progress, skipping")
            return []

        self._running = True
        try:
            referenced = collect_referenced_blob_ids(conversations)
            if not referenced:
                logger.warning("No referenced blobs found, skipping blob GC")
                return []
            stored = await self.blob_store.list_ids()
            unreferenced = [blob_id for blob_id in stored if blob_id not in referenced]
            if unreferenced:
                await self.blob_store.delete_many(unreferenced)
                logger.info("Blob GC removed %d of %d blobs", len(unreferenced), len(stored))
            return unreferenced
        finally:
            self._running = False

    def schedule(self, get_conversations: Callable[[], Sequence[Conversation]]) -> asyncio.Task[Any] | None:
        """
        Run a collection in the background without blocking the caller.

        Returns:
            The background task, or None when no event loop is running
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, blob GC not scheduled")
            return None
        if self._task is not None and not self._task.done():
            return self._task
        self._task = loop.create_task(self._run_in_background(get_conversations))
        return self._task

    async def _run_in_background(self, get_conversations: Callable[[], Sequence[Conversation]]) -> None:
        try:
            await self.collect_unreferenced(get_conversations())
        except Exception as e:
            logger.error("Background blob GC failed: %s", e, exc_info=True)

    async def wait_idle(self) -> None:
        """Wait for a scheduled collection, if any, to finish."""
        if self._task is not None:
            await asyncio.shield(self._task)
