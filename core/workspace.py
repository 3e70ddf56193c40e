"""
Client workspace: live files and their conversation bindings.

A workspace holds only weak references (ids). Each conversation is its own
workspace; deleting the conversation releases its bindings.
"""

import logging
from collections.abc import Iterable

from .models import Message

logger = logging.getLogger(__name__)


class ClientWorkspace:
    """Registry of live files and per-conversation assignments."""

    def __init__(self, live_file_ids: Iterable[str] = ()):
        self._live_files: set[str] = set(live_file_ids)
        self._bindings: dict[str, tuple[str, ...]] = {}

    # Live files

    def register_live_file(self, file_id: str) -> None:
        self._live_files.add(file_id)

    def remove_live_file(self, file_id: str) -> None:
        """Forget a live file and unassign it everywhere."""
        self._live_files.discard(file_id)
        for workspace_id, file_ids in list(self._bindings.items()):
            if file_id in file_ids:
                self._bindings[workspace_id] = tuple(f for f in file_ids if f != file_id)

    def valid_live_file_ids(self) -> frozenset[str]:
        return frozenset(self._live_files)

    # Bindings

    def bind(self, workspace_id: str, file_id: str) -> None:
        current = self._bindings.get(workspace_id, ())
        if file_id not in current:
            self._bindings[workspace_id] = (*current, file_id)

    def unbind(self, workspace_id: str, file_id: str) -> None:
        current = self._bindings.get(workspace_id, ())
        if file_id in current:
            self._bindings[workspace_id] = tuple(f for f in current if f != file_id)

    def bound_files(self, workspace_id: str) -> tuple[str, ...]:
        return self._bindings.get(workspace_id, ())

    def copy_bindings(self, source_id: str, target_id: str) -> None:
        for file_id in self.bound_files(source_id):
            self.bind(target_id, file_id)

    def import_bindings_from_messages(self, workspace_id: str, messages: Iterable[Message]) -> None:
        for message in messages:
            for fragment in message.fragments:
                live_file_id = getattr(fragment, "live_file_id", None)
                if live_file_id:
                    self.bind(workspace_id, live_file_id)

    def release(self, workspace_id: str) -> None:
        if self._bindings.pop(workspace_id, None) is not None:
            logger.debug("Released workspace bindings for %s", workspace_id)
