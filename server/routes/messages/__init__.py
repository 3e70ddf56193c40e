"""
Message route registration.
"""

from fastapi import FastAPI

from . import append, delete, edit, fragments, list, truncate


def register_routes(app: FastAPI) -> None:
    """Register all message routes."""
    app.include_router(list.router)
    app.include_router(append.router)
    app.include_router(edit.router)
    app.include_router(delete.router)
    app.include_router(truncate.router)
    app.include_router(fragments.router)
