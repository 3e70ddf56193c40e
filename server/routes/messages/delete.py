"""
Delete message endpoint.
"""

from fastapi import APIRouter, HTTPException

from ...state import get_store


router = APIRouter()


@router.delete("/conversation/{conversationID}/message/{messageID}")
async def delete_message_route(conversationID: str, messageID: str) -> bool:
    """Delete one message. Any generation in flight is aborted first."""
    if not get_store().delete_message(conversationID, messageID):
        raise HTTPException(status_code=404, detail="Message not found")
    return True
