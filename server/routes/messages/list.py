"""
List messages endpoint.
"""

from fastapi import APIRouter, HTTPException, Query

from core import NotFoundError

from ...serializers import dump_message
from ...state import get_store


router = APIRouter()


@router.get("/conversation/{conversationID}/message")
async def list_messages_route(conversationID: str, limit: int | None = Query(None)) -> list[dict]:
    """List messages in a conversation, optionally only the last `limit`."""
    try:
        messages = get_store().require_conversation(conversationID).messages
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if limit is not None:
        messages = messages[-limit:] if limit > 0 else ()
    return [dump_message(m) for m in messages]
