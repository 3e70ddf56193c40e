"""
Get conversation endpoint.
"""

import logging

from fastapi import APIRouter, HTTPException

from core import NotFoundError

from ...serializers import dump_conversation
from ...state import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/conversation/{conversationID}")
async def get_conversation_route(conversationID: str) -> dict:
    """Get a conversation with all of its messages."""
    try:
        return dump_conversation(get_store().require_conversation(conversationID))
    except NotFoundError:
        logger.debug("Conversation not found: %s", conversationID)
        raise HTTPException(status_code=404, detail="Conversation not found")
