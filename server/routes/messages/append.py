"""
Append message endpoint.
"""

from fastapi import APIRouter, HTTPException

from core import create_text_message, recreate_message
from core.models import gen_uuid, now_ms

from ...requests import AppendMessageRequest
from ...serializers import dump_message
from ...state import get_store


router = APIRouter()


@router.post("/conversation/{conversationID}/message")
async def append_message_route(conversationID: str, request: AppendMessageRequest) -> dict:
    """
    Append a message. Any generation in flight is aborted first.

    Raw fragments go through the same normalization as imported data.
    """
    store = get_store()
    if request.fragments:
        message = recreate_message(
            {"id": gen_uuid(), "role": request.role, "fragments": request.fragments, "created": now_ms()},
            store.workspace.valid_live_file_ids(),
        )
    else:
        message = create_text_message(request.role, request.text or "")

    if not store.append_message(conversationID, message):
        raise HTTPException(status_code=404, detail="Conversation not found")
    appended = store.require_conversation(conversationID).messages[-1]
    return dump_message(appended)
