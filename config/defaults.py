"""Default configuration values."""

from pathlib import Path

DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_PERSONA_ID = "Generic"

# Storage
DEFAULT_DATA_DIR = Path.home() / ".chatstore"
DEFAULT_DOCUMENT_NAME = "app-chats.json"
DEFAULT_BLOBS_DIR_NAME = "blobs"
PERSIST_DEBOUNCE_SECONDS = 0.05  # coalescing window for background writes

# Shared conversation links
DEFAULT_SHARE_BASE_URL = "https://share.chatstore.local/api"
SHARE_FETCH_TIMEOUT_SECONDS = 10.0

# Available models configuration
AVAILABLE_MODELS = [
    {
        "id": "gpt-4o",
        "name": "GPT-4o",
        "context_window": 128000,
        "encoding": "o200k_base",
        "image_sizing": "openai",
    },
    {
        "id": "gpt-4-turbo",
        "name": "GPT-4 Turbo",
        "context_window": 128000,
        "encoding": "cl100k_base",
        "image_sizing": "openai",
    },
    {
        "id": "claude-sonnet-4-20250514",
        "name": "Claude Sonnet 4",
        "context_window": 200000,
        "encoding": "cl100k_base",
        "image_sizing": "anthropic",
    },
    {
        "id": "claude-haiku-3-5-20241022",
        "name": "Claude Haiku 3.5",
        "context_window": 200000,
        "encoding": "cl100k_base",
        "image_sizing": "anthropic",
    },
    {
        "id": "gemini-1.5-pro",
        "name": "Gemini 1.5 Pro",
        "context_window": 2000000,
        "encoding": "cl100k_base",
        "image_sizing": "gemini",
    },
]
