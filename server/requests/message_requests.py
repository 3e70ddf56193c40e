"""Message request models."""

from typing import Any

from pydantic import BaseModel, model_validator

from core.models import MessageRole


class AppendMessageRequest(BaseModel):
    """A new message: plain text, or raw fragments in wire shape."""

    role: MessageRole = "user"
    text: str | None = None
    fragments: list[dict[str, Any]] | None = None

    @model_validator(mode="after")
    def _text_or_fragments(self) -> "AppendMessageRequest":
        if self.text is None and not self.fragments:
            raise ValueError("Either text or fragments is required")
        return self


class EditMessageRequest(BaseModel):
    text: str | None = None  # replaces the text of the last text fragment
    toggleFlag: str | None = None


class TruncateRequest(BaseModel):
    messageID: str
    offset: int = 0
