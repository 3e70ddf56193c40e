"""CreateConversationRequest model."""

from pydantic import BaseModel, Field


class CreateConversationRequest(BaseModel):
    personaID: str | None = None
    incognito: bool = Field(
        default=False,
        description="Keep the conversation in memory only, never persisted"
    )
