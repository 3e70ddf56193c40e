"""UpdateConversationRequest model."""

from pydantic import BaseModel


class UpdateConversationRequest(BaseModel):
    userTitle: str | None = None  # explicit null or "" clears both titles
    autoTitle: str | None = None
    personaID: str | None = None
