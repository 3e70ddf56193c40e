"""
Delete conversation endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException

from ...requests import DeleteConversationsRequest, DeleteConversationsResult
from ...state import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/conversation/delete")
async def delete_conversations_route(request: DeleteConversationsRequest) -> DeleteConversationsResult:
    """Delete several conversations; returns the conversation to activate next."""
    next_id = get_store().delete_conversations(request.conversationIDs, request.fallbackPersonaID)
    return DeleteConversationsResult(nextConversationID=next_id)


@router.delete("/conversation/{conversationID}")
async def delete_conversation_route(conversationID: str) -> DeleteConversationsResult:
    """Delete one conversation."""
    store = get_store()
    if store.get_conversation(conversationID) is None:
        logger.debug("Conversation not found for deletion: %s", conversationID)
        raise HTTPException(status_code=404, detail="Conversation not found")
    return DeleteConversationsResult(nextConversationID=store.delete_conversations([conversationID]))
