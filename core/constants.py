"""
Core constants for the conversation data layer.

This module defines system-wide constants used across the codebase.
"""

# Persisted document schema
CHAT_STORE_VERSION = 4  # current schema of the persisted chat document
CHAT_STORE_LEGACY_VERSION = 3  # flat single-text messages
LEGACY_BACKUP_SUFFIX = ".v3.bak"

# Token accounting glue
MESSAGE_HEAD_GLUE_TOKENS = 4  # per-message overhead at the top of a message
FRAGMENT_GLUE_TOKENS = 2  # overhead between two priced fragments
CONVERSATION_BASE_TOKENS = 3  # priming overhead of a whole conversation
CONVERSATION_MESSAGE_GLUE_TOKENS = 4  # per-message overhead in a conversation total
CHARS_PER_TOKEN = 4  # heuristic when no exact tokenizer is available

# Image pricing when dimensions are not tracked
ASSISTANT_IMAGE_THUMBNAIL_SIZE = (256, 256)
DEFAULT_IMAGE_SIZE = (1024, 1024)

# Titles and text
PLACEHOLDER_INCOMPLETE_SUFFIX = " (did not complete)"
