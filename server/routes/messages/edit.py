"""
Edit message endpoint.
"""

from fastapi import APIRouter, HTTPException

from core.fragments import replace_last_content_text
from core.messages import message_toggle_user_flag

from ...requests import EditMessageRequest
from ...serializers import dump_message
from ...state import get_store


router = APIRouter()


@router.patch("/conversation/{conversationID}/message/{messageID}")
async def edit_message_route(conversationID: str, messageID: str, request: EditMessageRequest) -> dict:
    """Replace the message text and/or toggle a user flag."""
    store = get_store()

    def update(message):
        values = {}
        if request.text is not None:
            values["fragments"] = replace_last_content_text(message.fragments, request.text)
        if request.toggleFlag:
            values["user_flags"] = message_toggle_user_flag(message, request.toggleFlag)
        return values

    # Flag toggles do not count as content edits
    touch = request.text is not None
    if not store.edit_message(conversationID, messageID, update, touch_updated=touch):
        raise HTTPException(status_code=404, detail="Message not found")
    conversation = store.require_conversation(conversationID)
    return dump_message(next(m for m in conversation.messages if m.id == messageID))
