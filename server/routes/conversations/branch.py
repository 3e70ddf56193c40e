"""
Branch conversation endpoint.
"""

from fastapi import APIRouter, HTTPException

from ...requests import BranchRequest
from ...serializers import dump_conversation
from ...state import get_store


router = APIRouter()


@router.post("/conversation/{conversationID}/branch")
async def branch_conversation_route(conversationID: str, request: BranchRequest) -> dict:
    """Branch a conversation up to and including a message."""
    store = get_store()
    branched_id = store.branch_conversation(conversationID, request.messageID)
    if branched_id is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return dump_conversation(store.require_conversation(branched_id))
