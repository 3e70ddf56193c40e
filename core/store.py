"""
Conversation store.

Holds every conversation in memory and exposes the only mutation surface.
All mutations are copy-on-write: each produces new containers for the
changed path and keeps unchanged conversations and messages as the same
objects, so subscribers can detect changes by identity.

A conversation is "generating" while it carries an abort handle. Any
structural edit of its history cancels that handle first.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from config.defaults import DEFAULT_CHAT_MODEL
from config.features import feature_manager

from .abort import AbortHandle
from .conversations import (
    conversation_title as _conversation_title,
    conversation_token_count,
    create_conversation as _create_conversation,
    duplicate_conversation,
)
from .converters import recreate_conversation
from .exceptions import NotFoundError
from .gc import BlobGarbageCollector
from .models import Conversation, Fragment, Message, MessageMetadata, gen_uuid, now_ms
from .tokens import TokenEstimator
from .workspace import ClientWorkspace

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[Conversation, ...]], None]
MessageUpdate = dict[str, Any] | Callable[[Message], dict[str, Any]]


def _validated_merge(model_class: type[BaseModel], current: BaseModel | None, values: dict[str, Any]) -> BaseModel:
    """Validate ``current`` with ``values`` applied; keys may be field names or wire aliases."""
    names = {info.alias: name for name, info in model_class.model_fields.items() if info.alias}
    fields = dict(current) if current is not None else {}
    fields.update((names.get(key, key), value) for key, value in values.items())
    return model_class.model_validate(fields)


class ConversationStore:
    """In-memory, authoritative store of all conversations."""

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        chat_model_id: str | None = None,
        workspace: ClientWorkspace | None = None,
        gc: BlobGarbageCollector | None = None,
        conversations: Iterable[Conversation] | None = None,
    ):
        self.estimator = estimator or TokenEstimator()
        self.chat_model_id = chat_model_id or DEFAULT_CHAT_MODEL
        self.workspace = workspace or ClientWorkspace()
        self.gc = gc
        initial = tuple(conversations or ())
        self._conversations: tuple[Conversation, ...] = initial or (_create_conversation(),)
        self._listeners: list[Listener] = []

    # =========================================================================
    # Reads & subscription
    # =========================================================================

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return self._conversations

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def require_conversation(self, conversation_id: str) -> Conversation:
        """
        Raises:
            NotFoundError: If the conversation is not found
        """
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        return conversation

    def conversation_title(self, conversation_id: str, fallback: str = "") -> str | None:
        conversation = self.get_conversation(conversation_id)
        return _conversation_title(conversation, fallback) if conversation else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with the new state after every commit."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Internals
    # =========================================================================

    def _commit(self, conversations: tuple[Conversation, ...]) -> None:
        self._conversations = conversations
        for listener in list(self._listeners):
            try:
                listener(conversations)
            except Exception as e:
                logger.error("Store listener %r failed: %s", listener, e, exc_info=True)

    def _index_of(self, conversation_id: str) -> int:
        for index, conversation in enumerate(self._conversations):
            if conversation.id == conversation_id:
                return index
        return -1

    def _edit_conversation(
        self, conversation_id: str, edit: Callable[[Conversation], Conversation | None]
    ) -> bool:
        index = self._index_of(conversation_id)
        if index < 0:
            logger.warning("Conversation not found: %s", conversation_id)
            return False
        current = self._conversations[index]
        updated = edit(current)
        if updated is None:
            return False
        if updated is not current:
            self._commit((*self._conversations[:index], updated, *self._conversations[index + 1:]))
        return True

    def _edit_message(
        self,
        conversation_id: str,
        message_id: str,
        edit: Callable[[Message], Message | None],
        touch_updated: bool = True,
        abort: bool = False,
    ) -> bool:
        def edit_conversation(conversation: Conversation) -> Conversation | None:
            for index, message in enumerate(conversation.messages):
                if message.id == message_id:
                    break
            else:
                logger.warning("Message %s not found in conversation %s", message_id, conversation_id)
                return None
            edited = edit(message)
            if edited is None:
                return None
            if abort:
                self._abort(conversation)
            messages = (*conversation.messages[:index], edited, *conversation.messages[index + 1:])
            update: dict[str, Any] = {
                "messages": messages,
                "token_count": conversation_token_count(messages),
                "updated": now_ms() if touch_updated else conversation.updated,
            }
            if abort:
                update["abort_handle"] = None
            return conversation.model_copy(update=update)

        return self._edit_conversation(conversation_id, edit_conversation)

    def _recount(self, message: Message) -> Message:
        """Refresh the cached token count; pending messages keep theirs."""
        if message.pending_incomplete:
            return message
        count = self.estimator.estimate_message_tokens(message, self.chat_model_id)
        if count == message.token_count:
            return message
        return message.model_copy(update={"token_count": count})

    @staticmethod
    def _abort(conversation: Conversation) -> None:
        if conversation.abort_handle is not None:
            conversation.abort_handle.abort()

    def _schedule_gc(self) -> None:
        if self.gc is not None:
            self.gc.schedule(lambda: self._conversations)

    # =========================================================================
    # Conversation CRUD
    # =========================================================================

    def create_conversation(self, persona_id: str | None = None, incognito: bool = False) -> str:
        """
        Create an empty conversation at the front of the list.

        Args:
            persona_id: Persona for the conversation (defaults to the generic one)
            incognito: Never persist this conversation

        Returns:
            The new conversation id
        """
        if incognito and not feature_manager.is_enabled("incognito"):
            logger.warning("Incognito conversations are disabled, creating a regular one")
            incognito = False
        conversation = _create_conversation(persona_id, incognito)
        self._commit((conversation, *self._conversations))
        logger.debug("Conversation created: %s", conversation.id)
        return conversation.id

    def import_conversation(self, data: Any, prevent_id_clash: bool = False) -> str:
        """
        Import a conversation from any supported shape.

        The payload always goes through migration and normalization. On an id
        clash the existing conversation is aborted; it is then replaced, or
        kept alongside the import under a fresh id when prevent_id_clash is set.

        Args:
            data: Conversation, record dict, or legacy payload
            prevent_id_clash: Reassign the id instead of overwriting

        Returns:
            The id of the imported conversation
        """
        conversation = recreate_conversation(data, self.workspace.valid_live_file_ids())

        existing = self.get_conversation(conversation.id)
        if existing is not None:
            self._abort(existing)
            if prevent_id_clash:
                new_id = gen_uuid()
                logger.warning("Conversation id clash, changing id %s to %s", conversation.id, new_id)
                conversation = conversation.model_copy(update={"id": new_id})

        messages = tuple(self._recount(m) for m in conversation.messages)
        conversation = conversation.model_copy(
            update={"messages": messages, "token_count": conversation_token_count(messages), "abort_handle": None}
        )
        self.workspace.import_bindings_from_messages(conversation.id, messages)

        remaining = tuple(c for c in self._conversations if c.id != conversation.id)
        self._commit((conversation, *remaining))
        logger.info("Conversation imported: %s (%d messages)", conversation.id, len(messages))
        return conversation.id

    def branch_conversation(self, conversation_id: str, cutoff_message_id: str | None = None) -> str | None:
        """
        Branch a conversation up to and including a message.

        Returns:
            The new conversation id, or None if the source does not exist
        """
        source = self.get_conversation(conversation_id)
        if source is None:
            logger.warning("Cannot branch missing conversation %s", conversation_id)
            return None
        branched = duplicate_conversation(source, cutoff_message_id)
        self.workspace.copy_bindings(source.id, branched.id)
        self._commit((branched, *self._conversations))
        logger.info("Conversation %s branched into %s", conversation_id, branched.id)
        return branched.id

    def delete_conversations(self, conversation_ids: Sequence[str], fallback_persona_id: str | None = None) -> str:
        """
        Delete conversations, never leaving the store empty.

        In-flight generations are aborted and workspace bindings released.

        Returns:
            The id of the conversation to activate next: the one now at the
            index of the first deleted conversation, clamped to the list
        """
        index = self._index_of(conversation_ids[0]) if conversation_ids else -1
        targets = set(conversation_ids)
        for conversation in self._conversations:
            if conversation.id in targets:
                self._abort(conversation)
                self.workspace.release(conversation.id)

        remaining = tuple(c for c in self._conversations if c.id not in targets)
        deleted = len(self._conversations) - len(remaining)
        if not remaining:
            remaining = (_create_conversation(fallback_persona_id),)
        self._commit(remaining)
        self._schedule_gc()
        logger.info("Deleted %d conversations", deleted)

        return remaining[index if 0 <= index < len(remaining) else 0].id

    def replace_state(self, conversations: Iterable[Conversation]) -> None:
        """Replace every conversation, e.g. after rehydration."""
        state = tuple(conversations)
        self._commit(state or (_create_conversation(),))

    # =========================================================================
    # Generation handle
    # =========================================================================

    def set_abort_handle(self, conversation_id: str, handle: AbortHandle | None) -> bool:
        return self._edit_conversation(
            conversation_id, lambda c: c.model_copy(update={"abort_handle": handle})
        )

    def abort_generation(self, conversation_id: str) -> bool:
        def abort(conversation: Conversation) -> Conversation:
            self._abort(conversation)
            if conversation.abort_handle is None:
                return conversation
            return conversation.model_copy(update={"abort_handle": None})

        return self._edit_conversation(conversation_id, abort)

    # =========================================================================
    # History
    # =========================================================================

    def history_replace(self, conversation_id: str, messages: Iterable[Message]) -> bool:
        """Replace the whole history; clearing it also clears the auto title."""

        def replace(conversation: Conversation) -> Conversation:
            self._abort(conversation)
            new_messages = tuple(self._recount(m) for m in messages)
            update: dict[str, Any] = {
                "messages": new_messages,
                "token_count": conversation_token_count(new_messages),
                "updated": now_ms(),
                "abort_handle": None,
            }
            if not new_messages:
                update["auto_title"] = None
            return conversation.model_copy(update=update)

        edited = self._edit_conversation(conversation_id, replace)
        if edited:
            self._schedule_gc()
        return edited

    def history_truncate_to_included(self, conversation_id: str, message_id: str, offset: int = 0) -> bool:
        """Keep messages up to and including message_id (plus offset)."""

        def truncate(conversation: Conversation) -> Conversation | None:
            index = next((i for i, m in enumerate(conversation.messages) if m.id == message_id), -1)
            if index < 0:
                logger.warning("Cannot truncate %s: message %s not found", conversation_id, message_id)
                return None
            self._abort(conversation)
            messages = conversation.messages[: max(index + 1 + offset, 0)]
            return conversation.model_copy(
                update={
                    "messages": messages,
                    "token_count": conversation_token_count(messages),
                    "updated": now_ms(),
                    "abort_handle": None,
                }
            )

        edited = self._edit_conversation(conversation_id, truncate)
        if edited:
            self._schedule_gc()
        return edited

    def append_message(self, conversation_id: str, message: Message) -> bool:
        def append(conversation: Conversation) -> Conversation:
            self._abort(conversation)
            messages = (*conversation.messages, self._recount(message))
            return conversation.model_copy(
                update={
                    "messages": messages,
                    "token_count": conversation_token_count(messages),
                    "updated": now_ms(),
                    "abort_handle": None,
                }
            )

        return self._edit_conversation(conversation_id, append)

    def delete_message(self, conversation_id: str, message_id: str) -> bool:
        def delete(conversation: Conversation) -> Conversation | None:
            if not any(m.id == message_id for m in conversation.messages):
                logger.warning("Cannot delete missing message %s from %s", message_id, conversation_id)
                return None
            self._abort(conversation)
            messages = tuple(m for m in conversation.messages if m.id != message_id)
            return conversation.model_copy(
                update={
                    "messages": messages,
                    "token_count": conversation_token_count(messages),
                    "updated": now_ms(),
                    "abort_handle": None,
                }
            )

        edited = self._edit_conversation(conversation_id, delete)
        if edited:
            self._schedule_gc()
        return edited

    def edit_message(
        self,
        conversation_id: str,
        message_id: str,
        update: MessageUpdate,
        touch_updated: bool = True,
    ) -> bool:
        """
        Apply a field update to one message.

        Args:
            conversation_id: The conversation id
            message_id: The message id
            update: Field values, or a function of the message returning them
            touch_updated: Stamp the message and conversation as updated

        Returns:
            True if the message was found and edited; False also when the
            update does not validate, in which case nothing changes
        """
        def edit(message: Message) -> Message | None:
            values = update(message) if callable(update) else update
            if touch_updated:
                values = {**values, "updated": now_ms()}
            try:
                edited = _validated_merge(Message, message, values)
            except ValidationError as e:
                logger.warning("Rejected invalid update of message %s: %s", message_id, e.error_count())
                return None
            return self._recount(edited)

        return self._edit_message(conversation_id, message_id, edit, touch_updated, abort=True)

    def update_message_metadata(
        self,
        conversation_id: str,
        message_id: str,
        metadata_delta: dict[str, Any],
        touch_updated: bool = True,
    ) -> bool:
        def edit(message: Message) -> Message | None:
            try:
                metadata = _validated_merge(MessageMetadata, message.metadata, metadata_delta)
            except ValidationError as e:
                logger.warning("Rejected invalid metadata for message %s: %s", message_id, e.error_count())
                return None
            values: dict[str, Any] = {"metadata": metadata}
            if touch_updated:
                values["updated"] = now_ms()
            return message.model_copy(update=values)

        return self._edit_message(conversation_id, message_id, edit, touch_updated)

    # =========================================================================
    # Fragments (no abort: these are the streaming write path)
    # =========================================================================

    def append_message_fragment(self, conversation_id: str, message_id: str, fragment: Fragment) -> bool:
        def edit(message: Message) -> Message:
            return self._recount(
                message.model_copy(update={"fragments": (*message.fragments, fragment), "updated": now_ms()})
            )

        return self._edit_message(conversation_id, message_id, edit)

    def delete_message_fragment(self, conversation_id: str, message_id: str, fragment_id: str) -> bool:
        def edit(message: Message) -> Message | None:
            fragments = tuple(f for f in message.fragments if f.fragment_id != fragment_id)
            if len(fragments) == len(message.fragments):
                logger.error("Fragment %s not found in message %s, nothing deleted", fragment_id, message_id)
                return None
            return self._recount(message.model_copy(update={"fragments": fragments, "updated": now_ms()}))

        return self._edit_message(conversation_id, message_id, edit)

    def replace_message_fragment(
        self, conversation_id: str, message_id: str, fragment_id: str, new_fragment: Fragment
    ) -> bool:
        """
        Replace one fragment by id.

        A missing fragment is logged at ERROR level and the call is a no-op.

        Returns:
            True if the fragment was replaced
        """

        def edit(message: Message) -> Message | None:
            index = next((i for i, f in enumerate(message.fragments) if f.fragment_id == fragment_id), -1)
            if index < 0:
                logger.error("Fragment %s not found in message %s, nothing replaced", fragment_id, message_id)
                return None
            fragments = (*message.fragments[:index], new_fragment, *message.fragments[index + 1:])
            return self._recount(message.model_copy(update={"fragments": fragments, "updated": now_ms()}))

        return self._edit_message(conversation_id, message_id, edit)

    # =========================================================================
    # Conversation attributes
    # =========================================================================

    def set_persona_id(self, conversation_id: str, persona_id: str) -> bool:
        return self._edit_conversation(
            conversation_id, lambda c: c.model_copy(update={"persona_id": persona_id})
        )

    def set_auto_title(self, conversation_id: str, auto_title: str) -> bool:
        return self._edit_conversation(
            conversation_id, lambda c: c.model_copy(update={"auto_title": auto_title})
        )

    def set_user_title(self, conversation_id: str, user_title: str | None) -> bool:
        """Set the user title; clearing it also clears the auto title."""
        if user_title:
            update: dict[str, Any] = {"user_title": user_title}
        else:
            update = {"user_title": None, "auto_title": None}
        return self._edit_conversation(conversation_id, lambda c: c.model_copy(update=update))
