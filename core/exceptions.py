"""
Core domain exceptions.

These exceptions are transport-agnostic and should be caught by the server
layer to convert into appropriate HTTP responses.
"""


class CoreError(Exception):
    """Base exception for all core errors."""

    pass


class NotFoundError(CoreError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class ModelProfileNotFoundError(NotFoundError):
    """Raised when a model profile is required but not registered."""

    def __init__(self, model_id: str):
        super().__init__("Model profile", model_id)
        self.model_id = model_id
