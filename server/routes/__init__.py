"""
Route registration for the conversation API.
"""

from fastapi import FastAPI

from . import blobs, conversations, features, health, messages, models, tokens


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application."""
    app.include_router(blobs.router)
    app.include_router(features.router)
    app.include_router(health.router)
    app.include_router(models.router)
    app.include_router(tokens.router)
    conversations.register_routes(app)
    messages.register_routes(app)
