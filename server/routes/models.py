"""
Models endpoint - return the model profiles used for token estimation.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from ..state import get_store


router = APIRouter()


class ModelProfileInfo(BaseModel):
    """A priced model."""
    id: str
    name: str
    context_window: int
    encoding: str


class ModelsResponse(BaseModel):
    """Response for models endpoint."""
    models: list[ModelProfileInfo]
    chat_model: str


@router.get("/app/models")
async def list_models() -> ModelsResponse:
    """
    List the models the store can price messages against.

    Returns:
        ModelsResponse with the profiles and the model used for cached counts
    """
    store = get_store()
    registry = store.estimator.registry
    profiles = registry.list_profiles() if hasattr(registry, "list_profiles") else []
    return ModelsResponse(
        models=[
            ModelProfileInfo(id=p.id, name=p.label, context_window=p.context_window, encoding=p.encoding)
            for p in profiles
        ],
        chat_model=store.chat_model_id,
    )
