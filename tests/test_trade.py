"""
Tests for conversation import, export and link sharing.
"""

import json

import httpx
import pytest

from core import conversation_to_markdown, fetch_shared_conversation, load_all_conversations_from_json
from core.conversations import create_conversation
from core.converters import format_conversation_to_record
from core.fragments import create_text_content_fragment
from core.messages import create_message_from_fragments, create_text_message, message_reduce_text
from core.models import MessageGenerator
from core.trade import (
    export_all_conversations_json,
    export_conversation_json,
    export_file_name,
    import_outcome_into_store,
    share_payload,
)

SHARE_BASE_URL = "https://share.test/api"


def _record(conversation_id, text="hello"):
    return {
        "id": conversation_id,
        "systemPurposeId": "Generic",
        "created": 1700000000000,
        "updated": 1700000000000,
        "messages": [{"id": f"{conversation_id}-m", "role": "user", "text": text, "created": 1700000000000}],
    }


def _share_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestLoadFromJson:
    """Test file shape detection on import."""

    def test_backup_of_all_conversations(self):
        """A conversations list yields one result per record."""
        outcome = load_all_conversations_from_json("backup.json", {"conversations": [_record("a"), _record("b")]})
        assert [r.success for r in outcome.conversations] == [True, True]
        assert [r.conversation.id for r in outcome.conversations] == ["a", "b"]

    def test_single_conversation(self):
        """A lone record with messages is one conversation."""
        outcome = load_all_conversations_from_json("one.json", _record("solo", "legacy text"))
        result = outcome.conversations[0]
        assert result.success
        assert message_reduce_text(result.conversation.messages[0]) == "legacy text"

    @pytest.mark.parametrize("obj", [[], "text", {"other": 1}, {"conversations": [], "messages": []}])
    def test_invalid_file(self, obj):
        """Unrecognized content is reported once for the whole file."""
        outcome = load_all_conversations_from_json("bad.json", obj)
        assert len(outcome.conversations) == 1
        assert not outcome.conversations[0].success
        assert outcome.conversations[0].error == "Invalid file: bad.json"

    def test_invalid_record_reported(self):
        """A bad record fails alone; the rest still load."""
        outcome = load_all_conversations_from_json("mixed.json", {"conversations": [{"id": "broken"}, _record("ok")]})
        assert outcome.conversations[0].error == "Invalid conversation: broken"
        assert outcome.conversations[1].success

    def test_outcome_accumulates_across_files(self):
        outcome = load_all_conversations_from_json("a.json", _record("a"))
        load_all_conversations_from_json("b.json", _record("b"), outcome)
        assert [r.file_name for r in outcome.conversations] == ["a.json", "b.json"]


class TestImportIntoStore:
    """Test committing an import outcome."""

    def test_file_order_preserved(self, store):
        """The first conversation in the file ends up first and active."""
        outcome = load_all_conversations_from_json("backup.json", {"conversations": [_record("a"), _record("b")]})

        import_outcome_into_store(store, outcome)

        assert [c.id for c in store.conversations[:2]] == ["a", "b"]
        assert outcome.activate_conversation_id == "a"
        assert all(r.imported_conversation_id for r in outcome.conversations)

    def test_prevent_id_clash(self, store):
        """Re-importing with prevent_id_clash keeps both copies."""
        import_outcome_into_store(store, load_all_conversations_from_json("a.json", _record("a")))
        outcome = import_outcome_into_store(
            store, load_all_conversations_from_json("a.json", _record("a")), prevent_id_clash=True
        )
        assert outcome.activate_conversation_id != "a"
        assert store.get_conversation("a") is not None
        assert store.get_conversation(outcome.activate_conversation_id) is not None

    def test_failed_results_skipped(self, store):
        before = len(store.conversations)
        outcome = import_outcome_into_store(store, load_all_conversations_from_json("bad.json", "nope"))
        assert outcome.activate_conversation_id is None
        assert len(store.conversations) == before


class TestExport:
    """Test JSON and Markdown export."""

    def test_json_round_trip(self, store):
        """Exported JSON imports back into the same messages."""
        outcome = load_all_conversations_from_json("a.json", _record("a"))
        import_outcome_into_store(store, outcome)
        conversation = store.get_conversation("a")

        single = json.loads(export_conversation_json(conversation))
        assert single == format_conversation_to_record(conversation)

        backup = json.loads(export_all_conversations_json([conversation]))
        reloaded = load_all_conversations_from_json("backup.json", backup).conversations[0].conversation
        assert reloaded.messages == conversation.messages

    def test_file_name(self):
        conversation = create_conversation().model_copy(update={"user_title": "My Chat!"})
        name = export_file_name(conversation, ".json")
        assert name.startswith("conversation_my-chat-_")
        assert name.endswith(".json")

    def test_markdown(self):
        """Markdown has a title header and one block per message."""
        assistant = create_text_message("assistant", "Hi there").model_copy(
            update={"generator": MessageGenerator(name="gpt-4o")}
        )
        conversation = create_conversation("Developer").model_copy(
            update={
                "user_title": "greetings",
                "messages": (
                    create_text_message("system", "Be nice"),
                    create_text_message("user", "Hello"),
                    assistant,
                ),
            }
        )

        markdown = conversation_to_markdown(conversation)

        assert markdown.startswith("# Greetings\nA conversation, updated on ")
        assert "### ✨ System message\n\n*Be nice*" in markdown
        assert "### 👤 You\n\nHello" in markdown
        assert "### Developer · *gpt-4o*\n\nHi there" in markdown
        assert markdown.count("---\n\n") == 2

    def test_markdown_options(self):
        """The system message and title can be left out."""
        conversation = create_conversation().model_copy(
            update={"messages": (create_text_message("system", "hidden"), create_text_message("user", "shown"))}
        )
        markdown = conversation_to_markdown(
            conversation, hide_system_message=True, export_title=False, sender_wrap=lambda s: f"**{s}**"
        )
        assert markdown == "**👤 You**\n\nshown\n\n"


class TestLinkSharing:
    """Test fetching shared conversations."""

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        """A CHAT_V1 payload is recreated into a conversation."""
        conversation = create_conversation().model_copy(
            update={"messages": (create_text_message("user", "shared text"),)}
        )
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, json=share_payload(conversation, "Shared"))

        async with _share_client(handler) as client:
            fetched = await fetch_shared_conversation(client, SHARE_BASE_URL + "/", "obj-1")

        assert requested == [f"{SHARE_BASE_URL}/link/obj-1"]
        assert fetched.id == conversation.id
        assert message_reduce_text(fetched.messages[0]) == "shared text"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"type": "error", "error": "expired"}),
            httpx.Response(200, json={"dataType": "OTHER", "dataObject": {}}),
            httpx.Response(500, text="boom"),
            httpx.Response(200, text="not json"),
        ],
    )
    async def test_fetch_failures(self, response):
        """Errors, unknown payloads and bad responses give None."""
        async with _share_client(lambda request: response) as client:
            assert await fetch_shared_conversation(client, SHARE_BASE_URL, "obj-1") is None

    def test_share_payload(self):
        conversation = create_conversation().model_copy(
            update={"messages": (create_text_message("user", "x"),), "auto_title": "Auto"}
        )
        payload = share_payload(conversation)
        assert payload["dataType"] == "CHAT_V1"
        assert payload["dataTitle"] == "Auto"
        assert payload["dataObject"]["id"] == conversation.id


def test_text_fragment_survives_markdown():
    """Fragment text is joined the same way as in the message view."""
    message = create_message_from_fragments(
        "user", (create_text_content_fragment("one"), create_text_content_fragment("two"))
    )
    conversation = create_conversation().model_copy(update={"messages": (message,)})
    assert "one\n\ntwo" in conversation_to_markdown(conversation, export_title=False)
