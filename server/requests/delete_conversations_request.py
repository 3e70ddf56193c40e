"""DeleteConversationsRequest model."""

from pydantic import BaseModel, Field


class DeleteConversationsRequest(BaseModel):
    conversationIDs: list[str] = Field(min_length=1)
    fallbackPersonaID: str | None = None


class DeleteConversationsResult(BaseModel):
    nextConversationID: str
