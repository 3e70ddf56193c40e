"""
Conversation route registration.
"""

from fastapi import FastAPI

from . import abort, branch, create, delete, get, list, trade, update


def register_routes(app: FastAPI) -> None:
    """Register all conversation routes."""
    # Fixed paths first so they are not captured by /conversation/{conversationID}
    app.include_router(trade.router)
    app.include_router(delete.router)
    app.include_router(list.router)
    app.include_router(create.router)
    app.include_router(get.router)
    app.include_router(update.router)
    app.include_router(branch.router)
    app.include_router(abort.router)
