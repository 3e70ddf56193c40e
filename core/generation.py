"""
Streaming generation into a conversation.

Appends a pending assistant message, installs an abort handle and writes
streamed fragments into the message until the stream ends. The handle is
checked before every write, so nothing is written after cancellation.
"""

import asyncio
import logging
from collections.abc import AsyncIterable

from .abort import AbortHandle
from .exceptions import NotFoundError
from .fragments import create_error_content_fragment
from .messages import create_message_placeholder_incomplete
from .models import Fragment, Message, MessageGenerator
from .store import ConversationStore

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_TEXT = "..."


async def run_generation(
    store: ConversationStore,
    conversation_id: str,
    stream: AsyncIterable[Fragment],
    placeholder_text: str = DEFAULT_PLACEHOLDER_TEXT,
    generator_name: str | None = None,
) -> Message | None:
    """
    Stream fragments into a new assistant message.

    The first fragment replaces the placeholder; a fragment whose id was
    already written replaces it in place (incremental updates), any other
    fragment is appended. A failing stream ends with an error fragment.

    Args:
        store: The conversation store
        conversation_id: Target conversation
        stream: Async iterable of fragments from the model transport
        placeholder_text: Text shown until the first fragment arrives
        generator_name: Model name recorded on the message

    Returns:
        The completed message, or None if the generation was aborted

    Raises:
        NotFoundError: If the conversation is not found
    """
    store.require_conversation(conversation_id)

    message = create_message_placeholder_incomplete("assistant", placeholder_text)
    if generator_name:
        message = message.model_copy(update={"generator": MessageGenerator(name=generator_name)})
    store.append_message(conversation_id, message)

    handle = AbortHandle(asyncio.current_task())
    store.set_abort_handle(conversation_id, handle)

    placeholder_id = message.fragments[0].fragment_id
    placeholder_pending = True
    written: set[str] = set()

    def write(fragment: Fragment) -> None:
        nonlocal placeholder_pending
        if handle.aborted:
            return
        if placeholder_pending:
            store.replace_message_fragment(conversation_id, message.id, placeholder_id, fragment)
            placeholder_pending = False
        elif fragment.fragment_id in written:
            store.replace_message_fragment(conversation_id, message.id, fragment.fragment_id, fragment)
        else:
            store.append_message_fragment(conversation_id, message.id, fragment)
        written.add(fragment.fragment_id)

    try:
        async for fragment in stream:
            if handle.aborted:
                break
            write(fragment)
    except asyncio.CancelledError:
        logger.info("Generation for conversation %s cancelled", conversation_id)
        raise
    except Exception as e:
        logger.error("Generation for conversation %s failed: %s", conversation_id, e, exc_info=True)
        write(create_error_content_fragment(f"Generation failed: {e}", hint="stream"))

    if handle.aborted:
        logger.info("Generation for conversation %s aborted", conversation_id)
        return None

    if placeholder_pending:
        store.delete_message_fragment(conversation_id, message.id, placeholder_id)
    store.set_abort_handle(conversation_id, None)
    store.edit_message(conversation_id, message.id, {"pending_incomplete": None})

    conversation = store.get_conversation(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation", conversation_id)
    return next((m for m in conversation.messages if m.id == message.id), None)
