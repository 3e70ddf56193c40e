"""
Blob store for binary attachments.

Blobs live outside the conversation records and are referenced by id from
image and asset parts. The garbage collector depends only on the narrow
BlobStore protocol.
"""

import asyncio
import base64
import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from .models import gen_uuid, now_ms

logger = logging.getLogger(__name__)

PAYLOAD_SUFFIX = ".bin"
SIDECAR_SUFFIX = ".json"


class BlobItem(BaseModel):
    """A binary payload and its metadata."""

    data: bytes
    mime_type: str
    label: str | None = None
    width: int | None = None
    height: int | None = None
    created: int = Field(default_factory=now_ms)


class BlobStore(Protocol):
    async def put(self, item: BlobItem) -> str: ...

    async def get_url_by_id(self, blob_id: str) -> str | None: ...

    async def list_ids(self) -> list[str]: ...

    async def delete_many(self, blob_ids: list[str]) -> None: ...


class FileBlobStore:
    """Blob store on a directory: one payload file plus a JSON sidecar per blob."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _payload_path(self, blob_id: str) -> Path:
        return self.root / f"{blob_id}{PAYLOAD_SUFFIX}"

    def _sidecar_path(self, blob_id: str) -> Path:
        return self.root / f"{blob_id}{SIDECAR_SUFFIX}"

    # Blocking helpers, run through asyncio.to_thread

    def _write(self, blob_id: str, item: BlobItem) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._payload_path(blob_id).write_bytes(item.data)
        sidecar = item.model_dump(exclude={"data"})
        sidecar["bytes_size"] = len(item.data)
        self._sidecar_path(blob_id).write_text(json.dumps(sidecar))

    def _read_url(self, blob_id: str) -> str | None:
        payload = self._payload_path(blob_id)
        sidecar = self._sidecar_path(blob_id)
        if not payload.exists() or not sidecar.exists():
            return None
        try:
            mime_type = json.loads(sidecar.read_text())["mime_type"]
        except (json.JSONDecodeError, KeyError, OSError) as e:
            logger.warning("Unreadable sidecar for blob %s: %s", blob_id, e)
            return None
        encoded = base64.b64encode(payload.read_bytes()).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"

    def _list(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(p.stem for p in self.root.glob(f"*{PAYLOAD_SUFFIX}"))

    def _delete(self, blob_ids: list[str]) -> None:
        for blob_id in blob_ids:
            self._payload_path(blob_id).unlink(missing_ok=True)
            self._sidecar_path(blob_id).unlink(missing_ok=True)

    # BlobStore protocol

    async def put(self, item: BlobItem) -> str:
        blob_id = gen_uuid()
        await asyncio.to_thread(self._write, blob_id, item)
        logger.debug("Stored blob %s (%s, %d bytes)", blob_id, item.mime_type, len(item.data))
        return blob_id

    async def get_url_by_id(self, blob_id: str) -> str | None:
        return await asyncio.to_thread(self._read_url, blob_id)

    async def list_ids(self) -> list[str]:
        return await asyncio.to_thread(self._list)

    async def delete_many(self, blob_ids: list[str]) -> None:
        if not blob_ids:
            return
        await asyncio.to_thread(self._delete, list(blob_ids))
        logger.info("Deleted %d blobs", len(blob_ids))
