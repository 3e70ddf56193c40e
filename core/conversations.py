"""
Conversation operations.

Provides conversation construction, branching/duplication, titles,
aggregate token accounting and system-message helpers.
"""

import logging
import re
from collections.abc import Sequence

from config.defaults import DEFAULT_PERSONA_ID

from .constants import CONVERSATION_BASE_TOKENS, CONVERSATION_MESSAGE_GLUE_TOKENS
from .messages import duplicate_message
from .models import Conversation, Message, gen_uuid, now_ms

logger = logging.getLogger(__name__)

_BRANCH_PREFIX_RE = re.compile(r"^\((\d+)\)\s+")


# =============================================================================
# Creation & duplication
# =============================================================================


def create_conversation(persona_id: str | None = None, incognito: bool = False) -> Conversation:
    """
    Create an empty conversation.

    Args:
        persona_id: Persona (system purpose) id, defaults to the generic persona
        incognito: If True, the conversation is never persisted

    Returns:
        The new conversation
    """
    now = now_ms()
    return Conversation(
        id=gen_uuid(),
        persona_id=persona_id or DEFAULT_PERSONA_ID,
        created=now,
        updated=now,
        is_incognito=incognito,
    )


def duplicate_conversation(
    conversation: Conversation,
    cutoff_message_id: str | None = None,
    skip_placeholders: bool = True,
) -> Conversation:
    """
    Duplicate a conversation as a new branch.

    Messages up to and including the cutoff are duplicated with fresh ids;
    an unknown or missing cutoff keeps every message. The branch gets an
    incremented "(n) " title prefix as its auto title.

    Args:
        conversation: The source conversation
        cutoff_message_id: Last message to keep (inclusive)
        skip_placeholders: Drop placeholder fragments from the copies

    Returns:
        The branched conversation
    """
    keep = len(conversation.messages)
    if cutoff_message_id:
        for index, message in enumerate(conversation.messages):
            if message.id == cutoff_message_id:
                keep = index + 1
                break

    messages = tuple(duplicate_message(m, skip_placeholders) for m in conversation.messages[:keep])
    return Conversation(
        id=gen_uuid(),
        messages=messages,
        user_title=None,
        auto_title=next_branch_title(conversation_title(conversation)),
        persona_id=conversation.persona_id,
        created=conversation.created,
        updated=now_ms(),
        token_count=conversation_token_count(messages),
        is_incognito=conversation.is_incognito,
    )


# =============================================================================
# Titles
# =============================================================================


def conversation_title(conversation: Conversation, fallback: str = "") -> str:
    return conversation.user_title or conversation.auto_title or fallback


def next_branch_title(title: str) -> str:
    """Return "(1) title", or increment an existing "(n) " prefix."""
    match = _BRANCH_PREFIX_RE.match(title)
    if match:
        number = int(match.group(1)) + 1
        return _BRANCH_PREFIX_RE.sub(f"({number}) ", title, count=1)
    return f"(1) {title}"


# =============================================================================
# Token accounting
# =============================================================================


def conversation_token_count(messages: Sequence[Message]) -> int:
    """Aggregate cost of a history; pending messages are excluded."""
    return CONVERSATION_BASE_TOKENS + sum(
        CONVERSATION_MESSAGE_GLUE_TOKENS + m.token_count
        for m in messages
        if not m.pending_incomplete
    )


# =============================================================================
# System message helpers
# =============================================================================


def has_system_message_in_history(messages: Sequence[Message]) -> bool:
    return bool(messages) and messages[0].role == "system"


def is_system_message_user_edited(message: Message) -> bool:
    return message.role == "system" and bool(message.updated)


def split_system_message_from_history(
    messages: Sequence[Message],
) -> tuple[Message | None, tuple[Message, ...]]:
    if has_system_message_in_history(messages):
        return messages[0], tuple(messages[1:])
    return None, tuple(messages)


def exclude_system_messages(messages: Sequence[Message], show_all: bool = False) -> tuple[Message, ...]:
    if show_all:
        return tuple(messages)
    return tuple(m for m in messages if m.role != "system")
