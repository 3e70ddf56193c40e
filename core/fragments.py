"""
Fragment and part operations.

Provides one constructor per part kind and per fragment kind, type guards,
duplication and text editing. Every constructor returns a new immutable
value; fragment constructors mint a fresh fragment id.
"""

import copy
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from .constants import PLACEHOLDER_INCOMPLETE_SUFFIX
from .models import (
    AnnotationsPart,
    AttachmentFragment,
    BlobDataRef,
    Citation,
    CodeExecutionInvocation,
    CodeExecutionResponse,
    ContentFragment,
    DataRef,
    DocMeta,
    DocPart,
    ErrorPart,
    Fragment,
    FunctionCallInvocation,
    FunctionCallResponse,
    ImageRefPart,
    InlineTextData,
    ModelAuxPart,
    ModelOpState,
    Part,
    PlaceholderPart,
    ReferencePart,
    RetryControl,
    TextPart,
    ToolEnvironment,
    ToolInvocationPart,
    ToolResponsePart,
    UnknownPart,
    UrlDataRef,
    VoidFragment,
    gen_fragment_id,
    now_ms,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Data references
# =============================================================================


def create_data_ref_url(url: str) -> UrlDataRef:
    return UrlDataRef(url=url)


def create_data_ref_blob(dblob_asset_id: str, mime_type: str, bytes_size: int) -> BlobDataRef:
    return BlobDataRef(dblob_asset_id=dblob_asset_id, mime_type=mime_type, bytes_size=bytes_size)


def create_inline_text_data(text: str, mime_type: str | None = None) -> InlineTextData:
    return InlineTextData(text=text, mime_type=mime_type)


# =============================================================================
# Part constructors
# =============================================================================


def create_text_part(text: str) -> TextPart:
    return TextPart(text=text)


def create_error_part(error: str, hint: str | None = None) -> ErrorPart:
    return ErrorPart(error=error, hint=hint)


def create_image_ref_part(
    data_ref: DataRef,
    alt_text: str | None = None,
    width: int | None = None,
    height: int | None = None,
) -> ImageRefPart:
    return ImageRefPart(data_ref=data_ref, alt_text=alt_text, width=width, height=height)


def create_asset_reference_part(
    asset_uuid: str,
    summary: str | None = None,
    legacy_image_ref: ImageRefPart | None = None,
) -> ReferencePart:
    return ReferencePart(asset_uuid=asset_uuid, summary=summary, legacy_image_ref=legacy_image_ref)


def create_doc_part(
    mime_kind: str,
    data: InlineTextData,
    ref: str,
    title: str,
    meta: DocMeta | None = None,
    version: int = 1,
) -> DocPart:
    return DocPart(mime_kind=mime_kind, data=data, ref=ref, title=title, version=version, meta=meta)


def create_function_call_invocation_part(id: str, name: str, args: str | None) -> ToolInvocationPart:
    return ToolInvocationPart(id=id, invocation=FunctionCallInvocation(name=name, args=args))


def create_code_execution_invocation_part(
    id: str, language: str, code: str, author: str = "gemini_auto_inline"
) -> ToolInvocationPart:
    return ToolInvocationPart(
        id=id, invocation=CodeExecutionInvocation(language=language, code=code, author=author)
    )


def create_function_call_response_part(
    id: str, error: bool | str, name: str, result: str, environment: ToolEnvironment
) -> ToolResponsePart:
    return ToolResponsePart(
        id=id,
        error=error,
        response=FunctionCallResponse(name=name, result=result),
        environment=environment,
    )


def create_code_execution_response_part(
    id: str,
    error: bool | str,
    result: str,
    executor: str = "gemini_auto_inline",
    environment: ToolEnvironment = "upstream",
) -> ToolResponsePart:
    return ToolResponsePart(
        id=id,
        error=error,
        response=CodeExecutionResponse(result=result, executor=executor),
        environment=environment,
    )


def create_annotations_part(citations: Iterable[Citation] = ()) -> AnnotationsPart:
    return AnnotationsPart(citations=tuple(citations))


def create_model_aux_part(
    text: str,
    signature: str | None = None,
    redacted_data: Sequence[str] | None = None,
) -> ModelAuxPart:
    return ModelAuxPart(
        text=text,
        signature=signature,
        redacted_data=tuple(redacted_data) if redacted_data is not None else None,
    )


def create_placeholder_part(
    text: str,
    kind: str | None = None,
    model_op: ModelOpState | None = None,
    retry_control: RetryControl | None = None,
) -> PlaceholderPart:
    return PlaceholderPart(text=text, kind=kind, model_op=model_op, retry_control=retry_control)


# =============================================================================
# Fragment constructors
# =============================================================================


def _content(part: Any) -> ContentFragment:
    return ContentFragment(fragment_id=gen_fragment_id(), part=part)


def _attachment(title: str, caption: str, part: Any, live_file_id: str | None = None) -> AttachmentFragment:
    return AttachmentFragment(
        fragment_id=gen_fragment_id(),
        title=title,
        caption=caption,
        created=now_ms(),
        live_file_id=live_file_id,
        part=part,
    )


def _void(part: Any) -> VoidFragment:
    return VoidFragment(fragment_id=gen_fragment_id(), part=part)


def create_text_content_fragment(text: str) -> ContentFragment:
    return _content(create_text_part(text))


def create_error_content_fragment(error: str, hint: str | None = None) -> ContentFragment:
    return _content(create_error_part(error, hint))


def create_image_content_fragment(
    data_ref: DataRef,
    alt_text: str | None = None,
    width: int | None = None,
    height: int | None = None,
) -> ContentFragment:
    return _content(create_image_ref_part(data_ref, alt_text, width, height))


def create_tool_invocation_content_fragment(part: ToolInvocationPart) -> ContentFragment:
    return _content(part)


def create_tool_response_content_fragment(part: ToolResponsePart) -> ContentFragment:
    return _content(part)


def create_doc_attachment_fragment(
    title: str,
    caption: str,
    mime_kind: str,
    data: InlineTextData,
    ref: str,
    meta: DocMeta | None = None,
    live_file_id: str | None = None,
) -> AttachmentFragment:
    return _attachment(title, caption, create_doc_part(mime_kind, data, ref, title, meta), live_file_id)


def create_image_attachment_fragment(
    title: str,
    caption: str,
    data_ref: DataRef,
    alt_text: str | None = None,
    width: int | None = None,
    height: int | None = None,
) -> AttachmentFragment:
    return _attachment(title, caption, create_image_ref_part(data_ref, alt_text, width, height))


def create_asset_attachment_fragment(
    title: str,
    caption: str,
    asset_uuid: str,
    summary: str | None = None,
    legacy_image_ref: ImageRefPart | None = None,
) -> AttachmentFragment:
    return _attachment(title, caption, create_asset_reference_part(asset_uuid, summary, legacy_image_ref))


def create_placeholder_void_fragment(
    text: str,
    kind: str | None = None,
    model_op: ModelOpState | None = None,
) -> VoidFragment:
    return _void(create_placeholder_part(text, kind, model_op))


def create_annotations_void_fragment(citations: Iterable[Citation]) -> VoidFragment:
    return _void(create_annotations_part(citations))


def create_model_aux_void_fragment(
    text: str,
    signature: str | None = None,
    redacted_data: Sequence[str] | None = None,
) -> VoidFragment:
    return _void(create_model_aux_part(text, signature, redacted_data))


# =============================================================================
# Type guards
# =============================================================================


def is_content_fragment(fragment: Fragment) -> bool:
    return fragment.ft == "content"


def is_attachment_fragment(fragment: Fragment) -> bool:
    return fragment.ft == "attachment"


def is_void_fragment(fragment: Fragment) -> bool:
    return fragment.ft == "void"


def is_content_or_attachment_fragment(fragment: Fragment) -> bool:
    return fragment.ft in ("content", "attachment")


def is_text_part(part: Part) -> bool:
    return isinstance(part, TextPart)


def is_error_part(part: Part) -> bool:
    return isinstance(part, ErrorPart)


def is_image_ref_part(part: Part) -> bool:
    return isinstance(part, ImageRefPart)


def is_reference_part(part: Part) -> bool:
    return isinstance(part, ReferencePart)


def is_doc_part(part: Part) -> bool:
    return isinstance(part, DocPart)


def is_placeholder_part(part: Part) -> bool:
    return isinstance(part, PlaceholderPart)


def is_unknown_part(part: Part) -> bool:
    return isinstance(part, UnknownPart)


def is_text_content_fragment(fragment: Fragment) -> bool:
    return is_content_fragment(fragment) and is_text_part(fragment.part)


# =============================================================================
# Duplication
# =============================================================================


def duplicate_part(part: Part) -> Part:
    """
    Return a structurally independent copy of a part.

    Unknown shapes are cloned through their JSON payload so nothing is lost.

    Raises:
        TypeError: If the part class has no duplication rule
    """
    match part:
        case UnknownPart():
            return UnknownPart.model_validate(copy.deepcopy(part.payload()))
        case (
            TextPart()
            | ErrorPart()
            | ImageRefPart()
            | ReferencePart()
            | DocPart()
            | ToolInvocationPart()
            | ToolResponsePart()
            | AnnotationsPart()
            | ModelAuxPart()
            | PlaceholderPart()
        ):
            return part.model_copy(deep=True)
    raise TypeError(f"No duplication rule for part type {type(part).__name__}")


def duplicate_fragment(fragment: Fragment) -> Fragment:
    """
    Duplicate a fragment under a fresh fragment id.

    The origin id is preserved and the vendor state is deep-copied.
    """
    return fragment.model_copy(
        update={
            "fragment_id": gen_fragment_id(),
            "part": duplicate_part(fragment.part),
            "vendor_state": copy.deepcopy(fragment.vendor_state),
        }
    )


def duplicate_fragments(fragments: Iterable[Fragment], skip_placeholders: bool = True) -> tuple[Fragment, ...]:
    return tuple(
        duplicate_fragment(f)
        for f in fragments
        if not (skip_placeholders and is_placeholder_part(f.part))
    )


# =============================================================================
# Editing
# =============================================================================


def update_fragment_with_edited_text(fragment: Fragment, edited_text: str) -> Fragment | None:
    """
    Replace the textual payload of a fragment, keeping its id and origin.

    Args:
        fragment: The fragment to edit
        edited_text: The new text

    Returns:
        The edited fragment, or None if this kind of fragment is not editable
    """
    part = fragment.part
    if isinstance(fragment, ContentFragment):
        if isinstance(part, TextPart):
            return fragment.model_copy(update={"part": create_text_part(edited_text)})
        if isinstance(part, ErrorPart):
            return fragment.model_copy(update={"part": create_error_part(edited_text, part.hint)})
    elif isinstance(fragment, AttachmentFragment) and isinstance(part, DocPart):
        new_part = part.model_copy(
            update={
                "data": create_inline_text_data(edited_text, part.data.mime_type),
                "version": part.version + 1,
            }
        )
        return fragment.model_copy(update={"part": new_part})
    return None


# =============================================================================
# Helpers
# =============================================================================


def fragments_reduce_text(fragments: Iterable[Fragment], separator: str = "\n\n") -> str:
    """Join the non-empty text of content and attachment text parts."""
    texts = [
        f.part.text
        for f in fragments
        if is_content_or_attachment_fragment(f) and is_text_part(f.part) and f.part.text
    ]
    return separator.join(texts)


def replace_last_content_text(
    fragments: Sequence[Fragment], new_text: str, append: bool = False
) -> tuple[Fragment, ...]:
    """Replace (or extend) the last text content fragment, adding one if none exists."""
    last_index = next(
        (i for i in range(len(fragments) - 1, -1, -1) if is_text_content_fragment(fragments[i])),
        None,
    )
    if last_index is None:
        return (*fragments, create_text_content_fragment(new_text))
    last = fragments[last_index]
    text = last.part.text + new_text if append else new_text
    replaced = last.model_copy(update={"part": create_text_part(text)})
    return (*fragments[:last_index], replaced, *fragments[last_index + 1:])


def prepend_text_to_fragments(fragments: Sequence[Fragment], prefix: str) -> tuple[Fragment, ...]:
    """Prefix the first text content fragment, or insert a new one at the front."""
    for i, f in enumerate(fragments):
        if is_text_content_fragment(f):
            edited = f.model_copy(update={"part": create_text_part(f"{prefix} {f.part.text}")})
            return (*fragments[:i], edited, *fragments[i + 1:])
    return (create_text_content_fragment(prefix), *fragments)


def special_content_part_to_doc_attachment(
    title: str,
    caption: str,
    mime_kind: str,
    part: Part,
    ref: str,
    meta: DocMeta | None = None,
) -> AttachmentFragment:
    """Turn a content part into an attachment; unsupported parts become an error document."""
    if isinstance(part, TextPart):
        return create_doc_attachment_fragment(
            title, caption, mime_kind, create_inline_text_data(part.text, "text/plain"), ref, meta
        )
    if isinstance(part, ImageRefPart):
        return create_image_attachment_fragment(
            title, caption, part.data_ref.model_copy(deep=True), part.alt_text, part.width, part.height
        )
    logger.warning("Cannot convert part %s to an attachment", part.pt)
    return create_doc_attachment_fragment(
        "Error",
        "Content to Attachment",
        mime_kind,
        create_inline_text_data(f"Conversion of '{part.pt}' is not supported yet.", "text/plain"),
        ref,
        meta,
    )


def placeholder_to_error_text(text: str) -> str:
    return f"{text}{PLACEHOLDER_INCOMPLETE_SUFFIX}"
