"""
Core business logic package.

This package contains the transport-agnostic conversation data layer:
models, the conversation store, persistence, migration, token estimation
and blob garbage collection. The server package provides HTTP bindings
around these core operations.
"""

from .abort import AbortHandle
from .blobs import BlobItem, BlobStore, FileBlobStore
from .conversations import (
    conversation_title,
    conversation_token_count,
    create_conversation,
    duplicate_conversation,
    next_branch_title,
)
from .converters import (
    format_all_to_records,
    format_conversation_to_record,
    in_mem_head_clean_conversations,
    recreate_conversation,
    recreate_conversation_from_record,
    recreate_message,
)
from .exceptions import CoreError, ModelProfileNotFoundError, NotFoundError
from .gc import BlobGarbageCollector, collect_referenced_blob_ids
from .generation import run_generation
from .messages import (
    create_empty_message,
    create_message_from_fragments,
    create_text_message,
    duplicate_message,
)
from .persistence import ChatDocumentStore, PersistenceAdapter, load_conversations, open_store
from .store import ConversationStore
from .tokens import ModelProfile, StaticModelRegistry, TextTokenizer, TokenEstimator
from .trade import (
    ImportOutcome,
    ImportResult,
    conversation_to_markdown,
    fetch_shared_conversation,
    load_all_conversations_from_json,
)
from .workspace import ClientWorkspace

__all__ = [
    # Exceptions
    "CoreError",
    "NotFoundError",
    "ModelProfileNotFoundError",
    # Store
    "ConversationStore",
    "AbortHandle",
    "ClientWorkspace",
    "run_generation",
    # Conversations & messages
    "create_conversation",
    "duplicate_conversation",
    "conversation_title",
    "conversation_token_count",
    "next_branch_title",
    "create_empty_message",
    "create_message_from_fragments",
    "create_text_message",
    "duplicate_message",
    # Migration
    "recreate_message",
    "recreate_conversation",
    "recreate_conversation_from_record",
    "in_mem_head_clean_conversations",
    "format_conversation_to_record",
    "format_all_to_records",
    # Persistence
    "ChatDocumentStore",
    "PersistenceAdapter",
    "load_conversations",
    "open_store",
    # Blobs
    "BlobItem",
    "BlobStore",
    "FileBlobStore",
    "BlobGarbageCollector",
    "collect_referenced_blob_ids",
    # Tokens
    "ModelProfile",
    "StaticModelRegistry",
    "TextTokenizer",
    "TokenEstimator",
    # Trade
    "ImportResult",
    "ImportOutcome",
    "load_all_conversations_from_json",
    "conversation_to_markdown",
    "fetch_shared_conversation",
]
