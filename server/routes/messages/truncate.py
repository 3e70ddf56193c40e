"""
Truncate history endpoint.
"""

from fastapi import APIRouter, HTTPException

from ...requests import TruncateRequest
from ...serializers import dump_message
from ...state import get_store


router = APIRouter()


@router.post("/conversation/{conversationID}/truncate")
async def truncate_history_route(conversationID: str, request: TruncateRequest) -> list[dict]:
    """Keep messages up to and including messageID (shifted by offset)."""
    store = get_store()
    if not store.history_truncate_to_included(conversationID, request.messageID, request.offset):
        raise HTTPException(status_code=404, detail="Message not found")
    return [dump_message(m) for m in store.require_conversation(conversationID).messages]
