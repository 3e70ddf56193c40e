"""
Update conversation endpoint.
"""

from fastapi import APIRouter, HTTPException

from core import NotFoundError

from ...requests import UpdateConversationRequest
from ...serializers import dump_conversation
from ...state import get_store


router = APIRouter()


@router.patch("/conversation/{conversationID}")
async def update_conversation_route(conversationID: str, request: UpdateConversationRequest) -> dict:
    """Update titles or persona. Only the fields present in the body are applied."""
    store = get_store()
    try:
        store.require_conversation(conversationID)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")

    fields = request.model_fields_set
    if "personaID" in fields:
        if not request.personaID:
            raise HTTPException(status_code=400, detail="personaID cannot be empty")
        store.set_persona_id(conversationID, request.personaID)
    if "autoTitle" in fields and request.autoTitle is not None:
        store.set_auto_title(conversationID, request.autoTitle)
    if "userTitle" in fields:
        store.set_user_title(conversationID, request.userTitle)

    return dump_conversation(store.require_conversation(conversationID))
