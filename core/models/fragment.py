"""Fragment models."""

from typing import Annotated, Any, Literal

from pydantic import Field

from .base import FrozenModel
from .part import AttachmentPart, ContentPart, VoidPart


class _FragmentBase(FrozenModel):
    # Unique within the owning message only.
    fragment_id: str = Field(alias="fId")
    origin_id: str | None = None
    # Opaque vendor bag; consumers must tolerate its absence.
    vendor_state: dict[str, Any] | None = None


class ContentFragment(_FragmentBase):
    ft: Literal["content"] = "content"
    part: ContentPart


class AttachmentFragment(_FragmentBase):
    ft: Literal["attachment"] = "attachment"
    title: str = ""
    caption: str = ""
    created: int = 0
    live_file_id: str | None = None
    part: AttachmentPart


class VoidFragment(_FragmentBase):
    """Fragment that is never sent to a model nor priced."""

    ft: Literal["void"] = "void"
    part: VoidPart


Fragment = Annotated[
    ContentFragment | AttachmentFragment | VoidFragment,
    Field(discriminator="ft"),
]
