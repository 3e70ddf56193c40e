"""
Wire shapes returned by the API.

Conversations and messages are dumped with their camelCase aliases; the
abort handle never leaves the process.
"""

from typing import Any

from core import conversation_title
from core.models import Conversation, Message


def dump_message(message: Message) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_conversation(conversation: Conversation) -> dict[str, Any]:
    data = conversation.model_dump(mode="json", by_alias=True, exclude_none=True)
    data["isGenerating"] = conversation.is_generating
    return data


def summarize_conversation(conversation: Conversation) -> dict[str, Any]:
    """List entry: everything but the messages."""
    return {
        "id": conversation.id,
        "title": conversation_title(conversation),
        "systemPurposeId": conversation.persona_id,
        "messageCount": len(conversation.messages),
        "tokenCount": conversation.token_count,
        "isIncognito": conversation.is_incognito,
        "isGenerating": conversation.is_generating,
        "created": conversation.created,
        "updated": conversation.updated,
    }
