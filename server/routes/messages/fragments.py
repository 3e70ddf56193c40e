"""
Delete fragment endpoint.
"""

from fastapi import APIRouter, HTTPException

from ...state import get_store


router = APIRouter()


@router.delete("/conversation/{conversationID}/message/{messageID}/fragment/{fragmentID}")
async def delete_fragment_route(conversationID: str, messageID: str, fragmentID: str) -> bool:
    if not get_store().delete_message_fragment(conversationID, messageID, fragmentID):
        raise HTTPException(status_code=404, detail="Fragment not found")
    return True
