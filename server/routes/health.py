"""
Health check endpoint.
"""

from fastapi import APIRouter

from ..state import get_persistence, get_store


router = APIRouter()


@router.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "conversations": len(get_store().conversations),
        "persistent": get_persistence() is not None,
    }
