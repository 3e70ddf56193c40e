"""
Conversation store API server.

HTTP bindings around the core conversation store operations.
"""

from .app import app
from .routes import register_routes
from .state import get_persistence, get_store, set_persistence, set_store

# Register all routes with the app
register_routes(app)

__all__ = ["app", "set_store", "get_store", "set_persistence", "get_persistence"]
