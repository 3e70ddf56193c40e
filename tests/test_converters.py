"""
Tests for the migration converters.
"""

import pytest

from config.features import feature_manager
from core import converters
from core.converters import (
    format_all_to_records,
    format_conversation_to_record,
    in_mem_head_clean_message,
    is_current_shape,
    migrate_persisted_state,
    recreate_conversation,
    recreate_conversation_from_record,
    recreate_message,
)
from core.fragments import create_text_content_fragment
from core.messages import message_reduce_text
from core.models import ErrorPart, Message, TextPart, UnknownPart


V3_MESSAGE = {
    "id": "m-v3",
    "text": "Hello from the past",
    "sender": "You",
    "avatar": None,
    "typing": False,
    "role": "user",
    "tokenCount": 6,
    "created": 1700000000000,
    "updated": None,
}


def _head_message(*fragments, **fields):
    return {"id": "m-1", "role": "assistant", "created": 1, "fragments": list(fragments), **fields}


def _text_fragment(text, fragment_id="f-1"):
    return {"ft": "content", "fId": fragment_id, "part": {"pt": "text", "text": text}}


class TestShapeDetection:
    """Test per-message shape detection."""

    def test_current_shape(self):
        """A fragments list marks the current shape."""
        assert is_current_shape(_head_message())
        assert not is_current_shape(V3_MESSAGE)
        assert not is_current_shape("text")


class TestV3Migration:
    """Test conversion of flat single-text messages."""

    def test_exact_text_recovery(self):
        """The flat text becomes one text fragment, verbatim."""
        message = recreate_message(V3_MESSAGE)
        assert message.id == "m-v3"
        assert message.role == "user"
        assert len(message.fragments) == 1
        assert isinstance(message.fragments[0].part, TextPart)
        assert message_reduce_text(message) == "Hello from the past"
        assert message.created == 1700000000000

    def test_deterministic_fragment_id(self):
        """Migrating the same legacy message twice gives the same fragment id."""
        assert recreate_message(V3_MESSAGE) == recreate_message(V3_MESSAGE)

    def test_origin_llm_becomes_generator(self):
        """The legacy model name maps to a named generator."""
        message = recreate_message({**V3_MESSAGE, "role": "assistant", "originLLM": "gpt-4o"})
        assert message.generator.mgt == "named"
        assert message.generator.name == "gpt-4o"

    def test_reply_text_becomes_reference(self):
        """inReplyToText maps to an inReferenceTo entry."""
        message = recreate_message({**V3_MESSAGE, "metadata": {"inReplyToText": "quoted"}})
        reference = message.metadata.in_reference_to[0]
        assert reference.m_text == "quoted"
        assert reference.m_role == "assistant"

    def test_migrate_state_mixed(self):
        """Only legacy messages are reshaped by the state migration."""
        head = _head_message(_text_fragment("current"))
        state = {"conversations": [{"id": "c", "messages": [V3_MESSAGE, head]}]}
        migrated = migrate_persisted_state(state, 3)
        messages = migrated["conversations"][0]["messages"]
        assert is_current_shape(messages[0])
        assert messages[1] == head
        assert "fragments" not in state["conversations"][0]["messages"][0]


class TestIdempotence:
    """Recreating an already recreated value changes nothing."""

    @pytest.mark.parametrize(
        "raw",
        [
            V3_MESSAGE,
            _head_message(_text_fragment("a"), {"ft": "void", "fId": "p", "part": {"pt": "ph", "pText": "Wait"}}),
            _head_message({"ft": "content", "fId": "u", "part": {"pt": "hologram", "x": 1}}),
            _head_message(_text_fragment("flagged"), userFlags=["starred", "notify_complete"]),
        ],
    )
    def test_recreate_message_twice(self, raw):
        """recreate(recreate(x)) == recreate(x)."""
        once = recreate_message(raw)
        assert recreate_message(once) == once

    def test_recreate_conversation_twice(self):
        """Conversations are idempotent too."""
        raw = {"id": "c-1", "systemPurposeId": "Developer", "created": 5, "messages": [V3_MESSAGE]}
        once = recreate_conversation(raw)
        assert recreate_conversation(once) == once


class TestHeadCleaning:
    """Test in-memory normalization of current-shape messages."""

    def test_placeholder_becomes_error(self):
        """A stranded placeholder turns into a visible error fragment."""
        raw = _head_message({"ft": "void", "fId": "p", "part": {"pt": "ph", "pText": "Thinking"}}, pendingIncomplete=True)
        message = recreate_message(raw)
        assert message.pending_incomplete is None
        part = message.fragments[0].part
        assert isinstance(part, ErrorPart)
        assert part.error == "Thinking (did not complete)"

    def test_notify_complete_flag_dropped(self):
        """The internal notify flag never survives a reload."""
        raw = _head_message(userFlags=["starred", "notify_complete"])
        assert recreate_message(raw).user_flags == ("starred",)
        assert "userFlags" not in in_mem_head_clean_message(_head_message(userFlags=["notify_complete"]))

    def test_damaged_fragments_dropped(self):
        """Fragments without an ft are structural corruption."""
        raw = _head_message(_text_fragment("ok"), {"fId": "x"}, "junk")
        message = recreate_message(raw)
        assert len(message.fragments) == 1

    def test_dangling_live_file_cleared(self):
        """Live file ids not in the workspace are removed."""
        attachment = {
            "ft": "attachment",
            "fId": "a",
            "title": "notes",
            "liveFileId": "gone",
            "part": {"pt": "doc", "vdt": "text/plain", "data": {"idt": "text", "text": "x"}, "ref": "r", "l1Title": "t"},
        }
        kept = recreate_message(_head_message({**attachment, "liveFileId": "alive"}), {"alive"})
        cleared = recreate_message(_head_message(attachment), {"alive"})
        unchecked = recreate_message(_head_message(attachment))
        assert kept.fragments[0].live_file_id == "alive"
        assert cleared.fragments[0].live_file_id is None
        assert unchecked.fragments[0].live_file_id == "gone"

    def test_renamed_doc_discriminator(self):
        """Doc parts using the old "type" key are upgraded to vdt."""
        attachment = {
            "ft": "attachment",
            "fId": "a",
            "part": {"pt": "doc", "type": "text/plain", "data": {"idt": "text", "text": "x"}, "ref": "r", "l1Title": "t"},
        }
        message = recreate_message(_head_message(attachment))
        assert message.fragments[0].part.mime_kind == "text/plain"

    def test_unknown_part_preserved(self):
        """Unknown parts pass through untouched."""
        raw = _head_message({"ft": "content", "fId": "u", "part": {"pt": "hologram", "x": [1]}})
        part = recreate_message(raw).fragments[0].part
        assert isinstance(part, UnknownPart)
        assert part.payload() == {"pt": "hologram", "x": [1]}

    def test_invalid_known_part_becomes_error(self):
        """A known part with a broken payload is replaced by an error fragment."""
        raw = _head_message({"ft": "content", "fId": "bad", "part": {"pt": "text", "text": 42}})
        fragment = recreate_message(raw).fragments[0]
        assert fragment.fragment_id == "bad"
        assert isinstance(fragment.part, ErrorPart)

    def test_emergency_cleanup_flag(self):
        """With the flag on, non-string text parts are dropped instead."""
        feature_manager.enable("emergency_part_cleanup")
        raw = _head_message(_text_fragment("ok"), {"ft": "content", "fId": "bad", "part": {"pt": "text", "text": None}})
        message = recreate_message(raw)
        assert [f.fragment_id for f in message.fragments] == ["f-1"]

    def test_invalid_message_fields_rebuilt(self):
        """Broken message fields fall back to defaults but keep fragments."""
        raw = _head_message(_text_fragment("keep"), role="robot", created="yesterday")
        message = recreate_message(raw)
        assert message.role == "user"
        assert message_reduce_text(message) == "keep"

    def test_non_object_message(self):
        """Non-object messages become an error message."""
        message = recreate_message(None)
        assert isinstance(message.fragments[0].part, ErrorPart)

    @pytest.mark.parametrize("flags", [5, "starred", {"starred": True}])
    def test_non_list_user_flags_dropped(self, flags):
        """User flags that are not a list are dropped, the message survives."""
        message = recreate_message(_head_message(_text_fragment("kept"), userFlags=flags))
        assert message.user_flags is None
        assert message_reduce_text(message) == "kept"

    def test_non_string_user_flags_filtered(self):
        """Only string flags are kept."""
        message = recreate_message(_head_message(userFlags=["starred", 3, None]))
        assert message.user_flags == ("starred",)

    def test_legacy_non_list_user_flags(self):
        """Flat-text messages with scalar flags still migrate."""
        message = recreate_message({**V3_MESSAGE, "userFlags": 7})
        assert message.user_flags is None
        assert message_reduce_text(message) == "Hello from the past"

    @pytest.mark.parametrize("valid_ids", [None, {"x"}])
    def test_non_string_live_file_cleared(self, valid_ids):
        """A live file id that is not a string is removed, checked or not."""
        attachment = {
            "ft": "attachment",
            "fId": "a",
            "title": "notes",
            "liveFileId": ["x"],
            "part": {"pt": "doc", "vdt": "text/plain", "data": {"idt": "text", "text": "x"}, "ref": "r", "l1Title": "t"},
        }
        message = recreate_message(_head_message(attachment), valid_ids)
        assert message.fragments[0].live_file_id is None
        assert message.fragments[0].part.data.text == "x"

    def test_failing_message_isolated(self, monkeypatch):
        """A message that fails to load becomes an error message; its siblings are kept."""
        clean = converters.in_mem_head_clean_message

        def flaky_clean(message, valid_ids=None):
            if message.get("id") == "bad":
                raise RuntimeError("unexpected")
            return clean(message, valid_ids)

        monkeypatch.setattr(converters, "in_mem_head_clean_message", flaky_clean)
        raw = {
            "id": "c-1",
            "messages": [_head_message(_text_fragment("good"), id="good"), _head_message(_text_fragment("lost"), id="bad")],
        }
        conversation = recreate_conversation(raw)
        assert [m.id for m in conversation.messages] == ["good", "bad"]
        assert message_reduce_text(conversation.messages[0]) == "good"
        assert isinstance(conversation.messages[1].fragments[0].part, ErrorPart)


class TestRecords:
    """Test the data-at-rest record format."""

    def test_record_round_trip(self):
        """A formatted record recreates an equal conversation."""
        message = Message(id="m", role="user", created=1, fragments=(create_text_content_fragment("hi"),))
        conversation = recreate_conversation(
            {"id": "c", "systemPurposeId": "Generic", "created": 1, "updated": 2, "userTitle": "T", "messages": []}
        ).model_copy(update={"messages": (message,)})

        record = format_conversation_to_record(conversation)
        assert set(record) == {"id", "messages", "systemPurposeId", "userTitle", "created", "updated"}
        assert recreate_conversation_from_record(record).messages == conversation.messages

    def test_invalid_records(self):
        """Records without an id or message list are rejected."""
        assert recreate_conversation_from_record({"messages": []}) is None
        assert recreate_conversation_from_record({"id": "c"}) is None
        assert recreate_conversation_from_record("nope") is None

    def test_format_all(self):
        """The backup wraps records in a conversations list."""
        conversation = recreate_conversation({"id": "c", "messages": []})
        assert format_all_to_records([conversation]) == {"conversations": [format_conversation_to_record(conversation)]}
