"""ID and timestamp utilities."""

import secrets
import time
import uuid


def gen_uuid() -> str:
    """Generate a globally unique id for conversations and messages."""
    return str(uuid.uuid4())


def gen_fragment_id() -> str:
    """Generate a short (8 chars) fragment id, unique only within its message."""
    return secrets.token_urlsafe(6)


def now_ms() -> int:
    return int(time.time() * 1000)
