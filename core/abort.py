"""
Cooperative cancellation for in-flight generations.

A handle lives on a Conversation only while a generation streams into it.
Writers must check ``aborted`` before every write.
"""

import asyncio
import logging
from typing import Any

logger = logging.getLogger(__name__)


class AbortHandle:
    """Transient cancellation token, never persisted."""

    def __init__(self, task: asyncio.Task[Any] | None = None):
        self._aborted = False
        self._task = task

    @property
    def aborted(self) -> bool:
        return self._aborted

    def bind(self, task: asyncio.Task[Any]) -> None:
        """Attach the task to cancel on abort."""
        self._task = task
        if self._aborted and not task.done():
            task.cancel()

    def abort(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        if self._task is not None and not self._task.done():
            # Cancelling the running task from inside itself would raise
            # at its next await, after the caller's structural mutation.
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if self._task is not current:
                self._task.cancel()
        logger.debug("Abort handle %s triggered", id(self))

    def __repr__(self) -> str:
        return f"AbortHandle(aborted={self._aborted})"
