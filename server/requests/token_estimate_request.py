"""TokenEstimateRequest model."""

from pydantic import BaseModel

from core.models import Fragment, MessageRole


class TokenEstimateRequest(BaseModel):
    modelID: str
    role: MessageRole = "user"
    fragments: list[Fragment]


class TokenEstimateResult(BaseModel):
    modelID: str
    tokens: int
