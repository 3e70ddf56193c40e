"""Conversation model."""

from pydantic import ConfigDict, Field
from pydantic.json_schema import SkipJsonSchema

from ..abort import AbortHandle
from .base import FrozenModel
from .message import Message


class Conversation(FrozenModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    messages: tuple[Message, ...] = ()
    user_title: str | None = None
    auto_title: str | None = None
    persona_id: str = Field(alias="systemPurposeId")
    created: int
    updated: int | None = None
    token_count: int = 0
    is_incognito: bool = False
    abort_handle: SkipJsonSchema[AbortHandle | None] = Field(
        default=None,
        exclude=True,
        description="Cancels the in-flight generation; never persisted"
    )

    @property
    def is_generating(self) -> bool:
        return self.abort_handle is not None
