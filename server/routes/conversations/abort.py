"""
Abort generation endpoint.
"""

from fastapi import APIRouter, HTTPException

from ...state import get_store


router = APIRouter()


@router.post("/conversation/{conversationID}/abort")
async def abort_generation_route(conversationID: str) -> bool:
    """Abort the in-flight generation of a conversation, if any."""
    store = get_store()
    conversation = store.get_conversation(conversationID)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    was_generating = conversation.is_generating
    store.abort_generation(conversationID)
    return was_generating
