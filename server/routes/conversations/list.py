"""
List conversations endpoint.
"""

from fastapi import APIRouter

from ...serializers import summarize_conversation
from ...state import get_store


router = APIRouter()


@router.get("/conversation")
async def list_conversations_route() -> list[dict]:
    """List conversations in store order, without their messages."""
    return [summarize_conversation(c) for c in get_store().conversations]
