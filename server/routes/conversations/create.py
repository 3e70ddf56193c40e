"""
Create conversation endpoint.
"""

from fastapi import APIRouter

from ...requests import CreateConversationRequest
from ...serializers import dump_conversation
from ...state import get_store


router = APIRouter()


@router.post("/conversation")
async def create_conversation_route(request: CreateConversationRequest) -> dict:
    """Create an empty conversation at the front of the list."""
    store = get_store()
    conversation_id = store.create_conversation(request.personaID, request.incognito)
    return dump_conversation(store.require_conversation(conversation_id))
