"""
Import, export and shared-link endpoints.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from config import get_config
from core import (
    NotFoundError,
    conversation_to_markdown,
    fetch_shared_conversation,
    format_all_to_records,
    format_conversation_to_record,
    load_all_conversations_from_json,
)
from core.trade import import_outcome_into_store

from ...requests import ImportRequest
from ...serializers import dump_conversation
from ...state import get_share_client, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/conversation/import")
async def import_conversations_route(request: ImportRequest) -> dict:
    """
    Import conversations from a parsed JSON file.

    Returns:
        Per-conversation results and the id to activate
    """
    store = get_store()
    outcome = load_all_conversations_from_json(
        request.fileName, request.data, valid_live_file_ids=store.workspace.valid_live_file_ids()
    )
    import_outcome_into_store(store, outcome, request.preventIdClash)
    return {
        "activateConversationID": outcome.activate_conversation_id,
        "results": [
            {
                "success": r.success,
                "fileName": r.file_name,
                "error": r.error,
                "conversationID": r.imported_conversation_id,
            }
            for r in outcome.conversations
        ],
    }


@router.get("/conversation/export")
async def export_all_conversations_route() -> dict:
    """Backup of every conversation in the data-at-rest format."""
    return format_all_to_records(get_store().conversations)


@router.get("/conversation/{conversationID}/export")
async def export_conversation_route(conversationID: str) -> dict:
    try:
        return format_conversation_to_record(get_store().require_conversation(conversationID))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")


@router.get("/conversation/{conversationID}/markdown", response_class=PlainTextResponse)
async def conversation_markdown_route(conversationID: str, hideSystem: bool = False) -> str:
    try:
        conversation = get_store().require_conversation(conversationID)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation_to_markdown(conversation, hide_system_message=hideSystem)


@router.post("/conversation/shared/{objectID}")
async def import_shared_conversation_route(
    objectID: str, client: httpx.AsyncClient = Depends(get_share_client)
) -> dict:
    """Fetch a shared conversation and import it under a fresh id on clash."""
    conversation = await fetch_shared_conversation(client, get_config().share_base_url, objectID)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Shared conversation not available")
    store = get_store()
    conversation_id = store.import_conversation(conversation, prevent_id_clash=True)
    logger.info("Imported shared conversation %s as %s", objectID, conversation_id)
    return dump_conversation(store.require_conversation(conversation_id))
