"""Message models."""

from typing import Literal

from pydantic import ConfigDict

from .base import FrozenModel
from .fragment import Fragment

MessageRole = Literal["user", "assistant", "system"]


class MessageGenerator(FrozenModel):
    model_config = ConfigDict(extra="allow")

    mgt: Literal["named", "aix"] = "named"
    name: str


class MessageReference(FrozenModel):
    mrt: Literal["dmsg"] = "dmsg"
    m_text: str
    m_role: MessageRole


class MessageMetadata(FrozenModel):
    model_config = ConfigDict(extra="allow")

    in_reference_to: tuple[MessageReference, ...] | None = None
    ran_out_of_tokens: bool | None = None


class Message(FrozenModel):
    id: str
    role: MessageRole
    fragments: tuple[Fragment, ...] = ()
    pending_incomplete: bool | None = None
    avatar: str | None = None
    generator: MessageGenerator | None = None
    purpose_id: str | None = None
    metadata: MessageMetadata | None = None
    user_flags: tuple[str, ...] | None = None
    # Cache of the estimated cost; stale while pending_incomplete is set.
    token_count: int = 0
    created: int
    updated: int | None = None
