"""Data reference and inline data models."""

from typing import Annotated, Literal

from pydantic import Field

from .base import FrozenModel


class UrlDataRef(FrozenModel):
    reftype: Literal["url"] = "url"
    url: str


class BlobDataRef(FrozenModel):
    """Reference to a binary asset kept in the blob store."""

    reftype: Literal["dblob"] = "dblob"
    dblob_asset_id: str
    mime_type: str
    bytes_size: int


DataRef = Annotated[UrlDataRef | BlobDataRef, Field(discriminator="reftype")]


class InlineTextData(FrozenModel):
    idt: Literal["text"] = "text"
    text: str
    mime_type: str | None = None
