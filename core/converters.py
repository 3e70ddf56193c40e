"""
Migration converters.

Reshape older or foreign chat data into the current model. Every function
here works on copies and never raises for malformed input: what cannot be
mapped is dropped (structural corruption) or replaced by a visible error
fragment.

Shape detection is per message, since a single imported payload may mix
legacy flat-text messages with current fragment-list messages.
"""

import copy
import logging
import uuid
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from config.defaults import DEFAULT_PERSONA_ID
from config.features import feature_manager

from .constants import CHAT_STORE_VERSION
from .fragments import create_error_content_fragment, placeholder_to_error_text
from .messages import MESSAGE_FLAG_NOTIFY_COMPLETE
from .models import (
    Conversation,
    Fragment,
    Message,
    gen_uuid,
    now_ms,
)

logger = logging.getLogger(__name__)

_fragment_adapter: TypeAdapter[Fragment] = TypeAdapter(Fragment)

_VALID_ROLES = ("user", "assistant", "system")
_TRANSIENT_CONVERSATION_KEYS = ("abortHandle", "_abortController")
_PRE_V4_MESSAGE_KEYS = ("sender", "typing", "pendingPlaceholderText")


def _as_dict(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    return copy.deepcopy(obj)


def is_current_shape(message: Any) -> bool:
    """True if the message already carries a fragment list."""
    if isinstance(message, Message):
        return True
    return isinstance(message, dict) and isinstance(message.get("fragments"), list)


# =============================================================================
# In-memory normalization
# =============================================================================


def in_mem_head_clean_message(
    message: dict[str, Any], valid_live_file_ids: Iterable[str] | None = None
) -> dict[str, Any]:
    """
    Normalize a current-shape message dict.

    Args:
        message: Message dict (wire keys)
        valid_live_file_ids: Live files that still exist; None skips the check

    Returns:
        A cleaned copy of the message
    """
    m = copy.deepcopy(message)
    valid_ids = frozenset(valid_live_file_ids) if valid_live_file_ids is not None else None
    emergency_cleanup = feature_manager.is_enabled("emergency_part_cleanup")

    # transient and pre-v4 keys
    m.pop("pendingIncomplete", None)
    for key in _PRE_V4_MESSAGE_KEYS:
        m.pop(key, None)

    fragments = []
    for fragment in m.get("fragments") or []:
        if not isinstance(fragment, dict) or not fragment.get("ft"):
            logger.debug("Dropping damaged fragment in message %s", m.get("id"))
            continue
        ft = fragment["ft"]
        part = fragment.get("part")

        if ft == "attachment" and "liveFileId" in fragment:
            live_file_id = fragment["liveFileId"]
            if not isinstance(live_file_id, str) or (valid_ids is not None and live_file_id not in valid_ids):
                del fragment["liveFileId"]

        if ft in ("void", "content") and isinstance(part, dict) and part.get("pt") == "ph":
            error = create_error_content_fragment(placeholder_to_error_text(str(part.get("pText", ""))))
            fragments.append(_as_dict(error))
            continue

        if emergency_cleanup and ft == "content" and isinstance(part, dict) and part.get("pt") == "text":
            if not isinstance(part.get("text"), str):
                logger.warning("Dropping text part with non-string text in message %s", m.get("id"))
                continue

        # renamed doc discriminator: type -> vdt
        if ft in ("content", "attachment") and isinstance(part, dict) and part.get("pt") == "doc":
            if "type" in part and "vdt" not in part:
                part["vdt"] = part.pop("type")

        fragments.append(fragment)
    m["fragments"] = fragments

    raw_flags = m.get("userFlags")
    if raw_flags is not None and not isinstance(raw_flags, list):
        logger.debug("Dropping non-list user flags in message %s", m.get("id"))
        raw_flags = None
    flags = [f for f in (raw_flags or []) if isinstance(f, str) and f != MESSAGE_FLAG_NOTIFY_COMPLETE]
    if flags:
        m["userFlags"] = flags
    else:
        m.pop("userFlags", None)

    metadata = m.get("metadata")
    if isinstance(metadata, dict) and metadata.get("inReplyToText"):
        reply_text = metadata.pop("inReplyToText")
        metadata["inReferenceTo"] = [{"mrt": "dmsg", "mText": reply_text, "mRole": "assistant"}]

    if "originLLM" in m:
        origin = m.pop("originLLM")
        if not m.get("generator") and origin:
            m["generator"] = {"mgt": "named", "name": origin}

    return m


def in_mem_head_clean_conversation(
    conversation: dict[str, Any], valid_live_file_ids: Iterable[str] | None = None
) -> dict[str, Any]:
    c = copy.deepcopy(conversation)
    for key in _TRANSIENT_CONVERSATION_KEYS:
        c.pop(key, None)
    valid_ids = frozenset(valid_live_file_ids) if valid_live_file_ids is not None else None
    messages = c.get("messages")
    c["messages"] = [
        _clean_message_or_keep(m, valid_ids)
        for m in (messages if isinstance(messages, list) else [])
        if isinstance(m, dict)
    ]
    return c


def _clean_message_or_keep(message: dict[str, Any], valid_ids: frozenset[str] | None) -> dict[str, Any]:
    # a message that cannot be cleaned is kept raw; recreate_message turns it into an error message
    try:
        return in_mem_head_clean_message(message, valid_ids)
    except Exception:
        logger.error("Could not clean message %.100r, keeping it as is", message.get("id"), exc_info=True)
        return message


def in_mem_head_clean_conversations(
    conversations: Iterable[dict[str, Any]], valid_live_file_ids: Iterable[str] | None = None
) -> list[dict[str, Any]]:
    valid_ids = frozenset(valid_live_file_ids) if valid_live_file_ids is not None else None
    return [in_mem_head_clean_conversation(c, valid_ids) for c in conversations if isinstance(c, dict)]


# =============================================================================
# V3 -> head
# =============================================================================


def _v3_fragment_id(message_id: Any) -> str:
    return uuid.uuid5(uuid.NAMESPACE_OID, f"chat-v3-message:{message_id}").hex[:8]


def _v3_message_to_head(message: dict[str, Any]) -> dict[str, Any]:
    """Turn a flat single-text message into a one-fragment message dict."""
    text = message.get("text")
    message_id = message.get("id") or gen_uuid()
    head: dict[str, Any] = {
        "id": message_id,
        "role": message.get("role"),
        "fragments": [
            {
                "ft": "content",
                "fId": _v3_fragment_id(message_id),
                "part": {"pt": "text", "text": text if isinstance(text, str) else str(text or "")},
            }
        ],
        "tokenCount": message.get("tokenCount") or 0,
        "created": message.get("created") or now_ms(),
        "updated": message.get("updated"),
    }
    if message.get("avatar"):
        head["avatar"] = message["avatar"]
    if message.get("purposeId"):
        head["purposeId"] = message["purposeId"]
    if message.get("originLLM"):
        head["generator"] = {"mgt": "named", "name": message["originLLM"]}
    metadata = message.get("metadata")
    if isinstance(metadata, dict) and metadata.get("inReplyToText"):
        head["metadata"] = {
            "inReferenceTo": [{"mrt": "dmsg", "mText": metadata["inReplyToText"], "mRole": "assistant"}]
        }
    if isinstance(message.get("userFlags"), list) and message["userFlags"]:
        head["userFlags"] = list(message["userFlags"])
    return head


def _validate_fragment(raw: dict[str, Any], message_id: Any) -> Fragment:
    try:
        return _fragment_adapter.validate_python(raw)
    except ValidationError as e:
        logger.warning("Fragment %s of message %s could not be loaded: %s", raw.get("fId"), message_id, e.error_count())
        fragment_id = raw.get("fId") if isinstance(raw.get("fId"), str) else None
        error = create_error_content_fragment(
            f"[Unrecognized {raw.get('ft')} fragment could not be loaded]",
            hint="migration",
        )
        return error if fragment_id is None else error.model_copy(update={"fragment_id": fragment_id})


def _safe_message(raw: dict[str, Any], fragments: tuple[Fragment, ...]) -> Message:
    message_id = raw.get("id")
    role = raw.get("role")
    created = raw.get("created")
    return Message(
        id=message_id if isinstance(message_id, str) and message_id else gen_uuid(),
        role=role if role in _VALID_ROLES else "user",
        fragments=fragments,
        created=created if isinstance(created, int) and not isinstance(created, bool) else now_ms(),
    )


def recreate_message(message: Any, valid_live_file_ids: Iterable[str] | None = None) -> Message:
    """
    Recreate a message of any supported shape as a current Message.

    Args:
        message: Legacy flat-text dict, current-shape dict, or Message
        valid_live_file_ids: Live files that still exist; None skips the check

    Returns:
        The normalized message; never raises
    """
    raw = _as_dict(message)
    if not isinstance(raw, dict):
        logger.warning("Replacing non-object message %r with an error message", type(raw).__name__)
        return _safe_message({}, (create_error_content_fragment("[Message could not be loaded]"),))
    if not is_current_shape(raw):
        raw = _v3_message_to_head(raw)
    raw = in_mem_head_clean_message(raw, valid_live_file_ids)

    fragments = tuple(_validate_fragment(f, raw.get("id")) for f in raw["fragments"])
    try:
        return Message.model_validate({**raw, "fragments": fragments})
    except ValidationError as e:
        logger.warning("Message %s has invalid fields, rebuilding with defaults: %s", raw.get("id"), e.error_count())
        return _safe_message(raw, fragments)


def _recreate_message_or_error(message: Any, valid_ids: frozenset[str] | None) -> Message:
    try:
        return recreate_message(message, valid_ids)
    except Exception:
        raw = _as_dict(message)
        raw = raw if isinstance(raw, dict) else {}
        logger.error("Message %.100r could not be recreated, replacing it", raw.get("id"), exc_info=True)
        return _safe_message(raw, (create_error_content_fragment("[Message could not be loaded]"),))


def recreate_conversation(conversation: Any, valid_live_file_ids: Iterable[str] | None = None) -> Conversation:
    """
    Recreate a conversation of any supported shape.

    Messages are detected and normalized one by one. Invalid conversation
    fields fall back to defaults; an absent id gets a fresh one.
    """
    raw = _as_dict(conversation)
    if not isinstance(raw, dict):
        raw = {}
    for key in _TRANSIENT_CONVERSATION_KEYS:
        raw.pop(key, None)
    valid_ids = frozenset(valid_live_file_ids) if valid_live_file_ids is not None else None

    raw_messages = raw.get("messages")
    messages = tuple(
        _recreate_message_or_error(m, valid_ids) for m in (raw_messages if isinstance(raw_messages, list) else [])
    )
    now = now_ms()
    fields = {
        **raw,
        "id": raw.get("id") or gen_uuid(),
        "messages": messages,
        "systemPurposeId": raw.get("systemPurposeId") or DEFAULT_PERSONA_ID,
        "created": raw.get("created") or now,
        "tokenCount": raw.get("tokenCount") or 0,
    }
    try:
        return Conversation.model_validate(fields)
    except ValidationError as e:
        logger.warning("Conversation %s has invalid fields, rebuilding with defaults: %s", raw.get("id"), e.error_count())
        conversation_id = raw.get("id")
        return Conversation(
            id=conversation_id if isinstance(conversation_id, str) else gen_uuid(),
            messages=messages,
            persona_id=DEFAULT_PERSONA_ID,
            created=now,
            updated=now,
        )


def recreate_conversations(
    conversations: Iterable[Any] | None, valid_live_file_ids: Iterable[str] | None = None
) -> list[Conversation]:
    valid_ids = frozenset(valid_live_file_ids) if valid_live_file_ids is not None else None
    return [recreate_conversation(c, valid_ids) for c in (conversations or [])]


def migrate_persisted_state(state: dict[str, Any], from_version: int) -> dict[str, Any]:
    """
    Upgrade a persisted state payload to the current schema version.

    Returns:
        A new state dict; current-shape messages pass through untouched
    """
    if from_version >= CHAT_STORE_VERSION:
        return copy.deepcopy(state)
    logger.info("Migrating chat state from version %s to %s", from_version, CHAT_STORE_VERSION)
    migrated = copy.deepcopy(state)
    conversations = migrated.get("conversations")
    for conversation in conversations if isinstance(conversations, list) else []:
        if not isinstance(conversation, dict) or not isinstance(conversation.get("messages"), list):
            continue
        conversation["messages"] = [
            m if is_current_shape(m) or not isinstance(m, dict) else _v3_message_to_head(m)
            for m in conversation["messages"]
        ]
    return migrated


# =============================================================================
# Data at rest
# =============================================================================


def recreate_conversation_from_record(
    record: Any, valid_live_file_ids: Iterable[str] | None = None
) -> Conversation | None:
    """Recreate a conversation from a portable record, or None if the record is invalid."""
    if not isinstance(record, dict) or not record.get("id") or not isinstance(record.get("messages"), list):
        logger.warning("Invalid conversation record: %.200r", record)
        return None
    return recreate_conversation(record, valid_live_file_ids)


def format_conversation_to_record(conversation: Conversation) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": conversation.id,
        "messages": [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in conversation.messages],
        "systemPurposeId": conversation.persona_id,
        "created": conversation.created,
        "updated": conversation.updated,
    }
    if conversation.user_title:
        record["userTitle"] = conversation.user_title
    if conversation.auto_title:
        record["autoTitle"] = conversation.auto_title
    return record


def format_all_to_records(conversations: Iterable[Conversation]) -> dict[str, Any]:
    return {"conversations": [format_conversation_to_record(c) for c in conversations]}
