"""
Blob garbage collection endpoint.
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..logging_config import log_timing
from ..state import get_gc, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


class BlobGCResult(BaseModel):
    deleted: list[str]


@router.post("/blobs/gc")
async def collect_blobs_route() -> BlobGCResult:
    """
    Run a blob GC pass now and wait for it.

    A pass already in flight is not doubled; this one then deletes nothing.
    """
    gc = get_gc()
    if gc is None:
        raise HTTPException(status_code=503, detail="No blob store configured")
    with log_timing(logger, "Blob GC", level=logging.INFO):
        deleted = await gc.collect_unreferenced(get_store().conversations)
    return BlobGCResult(deleted=deleted)
