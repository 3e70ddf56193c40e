"""
Import, export and link sharing of conversations.

Everything here goes through the data-at-rest record format and the
migration converters; the store is only touched through its public
operations.
"""

import json
import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel, Field

from .conversations import conversation_title, exclude_system_messages
from .converters import format_all_to_records, format_conversation_to_record, recreate_conversation_from_record
from .fragments import fragments_reduce_text
from .models import Conversation
from .store import ConversationStore

logger = logging.getLogger(__name__)

SHARED_CHAT_DATA_TYPE = "CHAT_V1"
MARKDOWN_TITLE_FALLBACK = "Chat"


# =============================================================================
# Import
# =============================================================================


class ImportResult(BaseModel):
    """Outcome of loading one conversation from a file."""

    success: bool
    file_name: str
    conversation: Conversation | None = None
    error: str | None = None
    imported_conversation_id: str | None = None


class ImportOutcome(BaseModel):
    conversations: list[ImportResult] = Field(default_factory=list)
    activate_conversation_id: str | None = None


def _load_single(
    file_name: str, record: Any, outcome: ImportOutcome, valid_live_file_ids: Iterable[str] | None
) -> None:
    conversation = recreate_conversation_from_record(record, valid_live_file_ids)
    if conversation is None:
        record_id = record.get("id") if isinstance(record, dict) else None
        outcome.conversations.append(
            ImportResult(success=False, file_name=file_name, error=f"Invalid conversation: {record_id}")
        )
    else:
        outcome.conversations.append(ImportResult(success=True, file_name=file_name, conversation=conversation))


def load_all_conversations_from_json(
    file_name: str,
    obj: Any,
    outcome: ImportOutcome | None = None,
    valid_live_file_ids: Iterable[str] | None = None,
) -> ImportOutcome:
    """
    Load conversations from a parsed JSON file.

    Accepts either a backup of all conversations ({"conversations": [...]})
    or a single conversation record.

    Args:
        file_name: Name used in the outcome entries
        obj: Parsed JSON content
        outcome: Outcome to extend (a new one by default)
        valid_live_file_ids: Live files that still exist; None skips the check

    Returns:
        The outcome, one entry per conversation found
    """
    outcome = outcome or ImportOutcome()
    has_conversations = isinstance(obj, dict) and "conversations" in obj
    has_messages = isinstance(obj, dict) and "messages" in obj

    if has_conversations and not has_messages and isinstance(obj["conversations"], list):
        for record in obj["conversations"]:
            _load_single(file_name, record, outcome, valid_live_file_ids)
    elif has_messages and not has_conversations:
        _load_single(file_name, obj, outcome, valid_live_file_ids)
    else:
        outcome.conversations.append(ImportResult(success=False, file_name=file_name, error=f"Invalid file: {file_name}"))
    return outcome


def import_outcome_into_store(
    store: ConversationStore, outcome: ImportOutcome, prevent_id_clash: bool = False
) -> ImportOutcome:
    """Import every successful result; the first one in the file ends up first and active."""
    for result in reversed(outcome.conversations):
        if not result.success or result.conversation is None:
            continue
        result.imported_conversation_id = store.import_conversation(result.conversation, prevent_id_clash)
        outcome.activate_conversation_id = result.imported_conversation_id
    return outcome


# =============================================================================
# Export
# =============================================================================


def export_all_conversations_json(conversations: Iterable[Conversation]) -> str:
    return json.dumps(format_all_to_records(conversations))


def export_conversation_json(conversation: Conversation) -> str:
    return json.dumps(format_conversation_to_record(conversation), indent=2)


def export_file_name(conversation: Conversation, extension: str) -> str:
    title = re.sub(r"[^a-z0-9]", "-", conversation_title(conversation), flags=re.IGNORECASE).lower() or "untitled"
    return f"conversation_{title}_{datetime.now():%Y-%m-%d-%H%M}{extension}"


def conversation_to_markdown(
    conversation: Conversation,
    hide_system_message: bool = False,
    export_title: bool = True,
    sender_wrap: Callable[[str], str] | None = None,
) -> str:
    """Render a conversation as simple Markdown."""
    header = ""
    if export_title:
        title = conversation_title(conversation, MARKDOWN_TITLE_FALLBACK)
        when = datetime.fromtimestamp((conversation.updated or conversation.created) / 1000)
        header = f"# {title[:1].upper()}{title[1:]}\nA conversation, updated on {when:%Y-%m-%d %H:%M}.\n\n"

    blocks = []
    for message in exclude_system_messages(conversation.messages, show_all=not hide_system_message):
        text = fragments_reduce_text(message.fragments)
        if message.role == "system":
            sender = "✨ System message"
            text = f"*{text}*"
        elif message.role == "assistant":
            purpose = message.purpose_id or conversation.persona_id or "Assistant"
            model = message.generator.name if message.generator else ""
            sender = f"{purpose} · *{model}*" if model else purpose
        else:
            sender = "👤 You"
        wrapped = sender_wrap(sender) if sender_wrap else f"### {sender}"
        blocks.append(f"{wrapped}\n\n{text}\n\n")
    return header + "---\n\n".join(blocks)


# =============================================================================
# Link sharing
# =============================================================================


async def fetch_shared_conversation(
    client: httpx.AsyncClient, base_url: str, object_id: str
) -> Conversation | None:
    """
    Fetch a shared conversation record from the remote key-value store.

    Args:
        client: HTTP client to use
        base_url: Base URL of the link storage service
        object_id: Id of the stored object

    Returns:
        The recreated conversation, or None on any failure
    """
    url = f"{base_url.rstrip('/')}/link/{object_id}"
    try:
        response = await client.get(url)
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Failed to fetch shared conversation %s: %s", object_id, e)
        return None

    if not isinstance(payload, dict):
        logger.warning("Shared conversation %s has an unexpected payload", object_id)
        return None
    if payload.get("type") == "error":
        logger.warning("Shared conversation %s unavailable: %s", object_id, payload.get("error"))
        return None
    if payload.get("dataType") != SHARED_CHAT_DATA_TYPE:
        logger.warning("Unsupported shared data type: %s", payload.get("dataType"))
        return None
    return recreate_conversation_from_record(payload.get("dataObject"))


def share_payload(conversation: Conversation, title: str | None = None) -> dict[str, Any]:
    """Body for storing a conversation in the link storage service."""
    return {
        "dataType": SHARED_CHAT_DATA_TYPE,
        "dataTitle": title or conversation_title(conversation) or None,
        "dataObject": format_conversation_to_record(conversation),
    }
