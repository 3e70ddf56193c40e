"""
Message operations.

Provides constructors for messages, duplication, user flags and text
reduction over a message's fragments.
"""

import logging
from collections.abc import Iterable

from .fragments import (
    create_placeholder_void_fragment,
    create_text_content_fragment,
    duplicate_fragments,
    fragments_reduce_text,
    is_content_or_attachment_fragment,
    is_image_ref_part,
    is_reference_part,
)
from .models import Fragment, Message, MessageRole, gen_uuid, now_ms

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

USER_FLAG_STARRED = "starred"
# Internal flag: notify when the generation completes. Never survives a reload.
MESSAGE_FLAG_NOTIFY_COMPLETE = "notify_complete"

USER_FLAG_EMOJI = {
    USER_FLAG_STARRED: "⭐️",
}


# =============================================================================
# Creation
# =============================================================================


def create_message_from_fragments(role: MessageRole, fragments: Iterable[Fragment]) -> Message:
    """
    Create a message with a fresh id.

    Args:
        role: The author role
        fragments: Initial fragments, in order

    Returns:
        The new message
    """
    return Message(id=gen_uuid(), role=role, fragments=tuple(fragments), created=now_ms())


def create_empty_message(role: MessageRole) -> Message:
    return create_message_from_fragments(role, ())


def create_text_message(role: MessageRole, text: str) -> Message:
    return create_message_from_fragments(role, (create_text_content_fragment(text),))


def create_message_placeholder_incomplete(role: MessageRole, placeholder_text: str) -> Message:
    """Create a pending message holding a single placeholder fragment."""
    message = create_message_from_fragments(role, (create_placeholder_void_fragment(placeholder_text),))
    return message.model_copy(update={"pending_incomplete": True})


# =============================================================================
# Duplication
# =============================================================================


def duplicate_message(message: Message, skip_placeholders: bool = True) -> Message:
    """
    Duplicate a message under a fresh id.

    Fragments are deep-duplicated with fresh fragment ids. Timestamps and
    the cached token count are kept.
    """
    return message.model_copy(
        update={
            "id": gen_uuid(),
            "fragments": duplicate_fragments(message.fragments, skip_placeholders),
            "metadata": message.metadata.model_copy(deep=True) if message.metadata else None,
            "generator": message.generator.model_copy(deep=True) if message.generator else None,
        }
    )


# =============================================================================
# User flags
# =============================================================================


def message_has_user_flag(message: Message, flag: str) -> bool:
    return flag in (message.user_flags or ())


def message_toggle_user_flag(message: Message, flag: str) -> tuple[str, ...]:
    flags = message.user_flags or ()
    if flag in flags:
        return tuple(f for f in flags if f != flag)
    return (*flags, flag)


def message_user_flag_to_emoji(flag: str) -> str:
    return USER_FLAG_EMOJI.get(flag, "❓")


# =============================================================================
# Text helpers
# =============================================================================


def message_reduce_text(message: Message, separator: str = "\n\n") -> str:
    return fragments_reduce_text(message.fragments, separator)


def message_has_image_fragments(message: Message) -> bool:
    return any(
        is_content_or_attachment_fragment(f) and (is_image_ref_part(f.part) or is_reference_part(f.part))
        for f in message.fragments
    )
