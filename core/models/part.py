"""Part models.

A part is the smallest typed content payload of a message. Parts are
immutable values with no identity of their own; the owning fragment
carries the id.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Discriminator, Field, Tag

from .base import FrozenModel
from .data_ref import DataRef, InlineTextData
from .tool import ToolEnvironment, ToolInvocation, ToolResponse


class TextPart(FrozenModel):
    pt: Literal["text"] = "text"
    text: str


class ErrorPart(FrozenModel):
    pt: Literal["error"] = "error"
    error: str
    hint: str | None = None


class ImageRefPart(FrozenModel):
    """Legacy image reference, superseded by asset references."""

    pt: Literal["image_ref"] = "image_ref"
    data_ref: DataRef
    alt_text: str | None = None
    width: int | None = None
    height: int | None = None


class ReferencePart(FrozenModel):
    """Reference to an asset by UUID, with an optional inline legacy fallback."""

    pt: Literal["reference"] = "reference"
    reference_kind: Literal["asset"] = "asset"
    asset_uuid: str
    asset_type: Literal["image"] = "image"
    summary: str | None = None
    legacy_image_ref: ImageRefPart | None = None


class DocMeta(FrozenModel):
    model_config = ConfigDict(extra="allow")

    src_file_name: str | None = None
    src_file_size: int | None = None
    src_ocr_from: str | None = None


class DocPart(FrozenModel):
    pt: Literal["doc"] = "doc"
    mime_kind: str = Field(alias="vdt")
    data: InlineTextData
    ref: str
    title: str = Field(alias="l1Title")
    version: int = 1
    meta: DocMeta | None = None


class ToolInvocationPart(FrozenModel):
    pt: Literal["tool_invocation"] = "tool_invocation"
    id: str
    invocation: ToolInvocation


class ToolResponsePart(FrozenModel):
    pt: Literal["tool_response"] = "tool_response"
    id: str
    error: bool | str = False
    response: ToolResponse
    environment: ToolEnvironment


class CitationRange(FrozenModel):
    start_index: int
    end_index: int
    text_snippet: str | None = None


class Citation(FrozenModel):
    title: str
    url: str
    ranges: tuple[CitationRange, ...] = ()
    pub_ts: int | None = None


class AnnotationsPart(FrozenModel):
    pt: Literal["annotations"] = "annotations"
    citations: tuple[Citation, ...] = ()


class ModelAuxPart(FrozenModel):
    """Model-auxiliary output such as a reasoning trace."""

    pt: Literal["ma"] = "ma"
    aux_kind: Literal["reasoning"] = "reasoning"
    text: str
    signature: str | None = None
    redacted_data: tuple[str, ...] | None = None


class ModelOpState(FrozenModel):
    op_type: str = Field(alias="mot")
    started_at: int = Field(alias="cts")


class RetryControl(FrozenModel):
    attempt: int
    max_attempts: int | None = None
    delay_ms: int | None = None


class PlaceholderPart(FrozenModel):
    pt: Literal["ph"] = "ph"
    text: str = Field(alias="pText")
    kind: str | None = Field(default=None, alias="pType")
    model_op: ModelOpState | None = None
    retry_control: RetryControl | None = None


class UnknownPart(FrozenModel):
    """Any part shape this version does not recognize.

    Extra keys are kept verbatim so the part survives a round trip.
    """

    model_config = ConfigDict(extra="allow")

    pt: str

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


KNOWN_PART_TYPES = frozenset(
    {"text", "error", "image_ref", "reference", "doc", "tool_invocation",
     "tool_response", "annotations", "ma", "ph"}
)
CONTENT_PART_TYPES = frozenset(
    {"text", "error", "image_ref", "reference", "tool_invocation", "tool_response"}
)
ATTACHMENT_PART_TYPES = frozenset({"doc", "image_ref", "reference"})
VOID_PART_TYPES = frozenset({"annotations", "ma", "ph"})


def _tagger(known: frozenset[str]):
    def tag(value: Any) -> str:
        if isinstance(value, dict):
            pt = value.get("pt")
        else:
            pt = getattr(value, "pt", None)
        return pt if pt in known else "unknown"

    return tag


ContentPart = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[ErrorPart, Tag("error")],
        Annotated[ImageRefPart, Tag("image_ref")],
        Annotated[ReferencePart, Tag("reference")],
        Annotated[ToolInvocationPart, Tag("tool_invocation")],
        Annotated[ToolResponsePart, Tag("tool_response")],
        Annotated[UnknownPart, Tag("unknown")],
    ],
    Discriminator(_tagger(CONTENT_PART_TYPES)),
]

AttachmentPart = Annotated[
    Union[
        Annotated[DocPart, Tag("doc")],
        Annotated[ImageRefPart, Tag("image_ref")],
        Annotated[ReferencePart, Tag("reference")],
        Annotated[UnknownPart, Tag("unknown")],
    ],
    Discriminator(_tagger(ATTACHMENT_PART_TYPES)),
]

VoidPart = Annotated[
    Union[
        Annotated[AnnotationsPart, Tag("annotations")],
        Annotated[ModelAuxPart, Tag("ma")],
        Annotated[PlaceholderPart, Tag("ph")],
        Annotated[UnknownPart, Tag("unknown")],
    ],
    Discriminator(_tagger(VOID_PART_TYPES)),
]

Part = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[ErrorPart, Tag("error")],
        Annotated[ImageRefPart, Tag("image_ref")],
        Annotated[ReferencePart, Tag("reference")],
        Annotated[DocPart, Tag("doc")],
        Annotated[ToolInvocationPart, Tag("tool_invocation")],
        Annotated[ToolResponsePart, Tag("tool_response")],
        Annotated[AnnotationsPart, Tag("annotations")],
        Annotated[ModelAuxPart, Tag("ma")],
        Annotated[PlaceholderPart, Tag("ph")],
        Annotated[UnknownPart, Tag("unknown")],
    ],
    Discriminator(_tagger(KNOWN_PART_TYPES)),
]
