"""
Tests for fragment and part construction, duplication and editing.
"""

import logging
import typing

import pytest

from core.fragments import (
    create_annotations_void_fragment,
    create_asset_attachment_fragment,
    create_code_execution_invocation_part,
    create_code_execution_response_part,
    create_data_ref_blob,
    create_data_ref_url,
    create_doc_attachment_fragment,
    create_error_content_fragment,
    create_function_call_invocation_part,
    create_function_call_response_part,
    create_image_content_fragment,
    create_inline_text_data,
    create_model_aux_void_fragment,
    create_placeholder_void_fragment,
    create_text_content_fragment,
    create_tool_invocation_content_fragment,
    create_tool_response_content_fragment,
    duplicate_fragment,
    duplicate_fragments,
    duplicate_part,
    fragments_reduce_text,
    is_attachment_fragment,
    is_content_fragment,
    is_void_fragment,
    prepend_text_to_fragments,
    replace_last_content_text,
    special_content_part_to_doc_attachment,
    update_fragment_with_edited_text,
)
from core.models import (
    AnnotationsPart,
    Citation,
    CitationRange,
    DocPart,
    ErrorPart,
    ImageRefPart,
    ModelAuxPart,
    Part,
    PlaceholderPart,
    ReferencePart,
    TextPart,
    ToolInvocationPart,
    ToolResponsePart,
    UnknownPart,
)


def _part_union_members(union) -> set[type]:
    inner = typing.get_args(union)[0]
    return {typing.get_args(member)[0] for member in typing.get_args(inner)}


SAMPLE_PARTS = {
    TextPart: TextPart(text="hi"),
    ErrorPart: ErrorPart(error="boom", hint="stream"),
    ImageRefPart: ImageRefPart(data_ref=create_data_ref_url("https://x/y.png"), width=10, height=20),
    ReferencePart: ReferencePart(asset_uuid="asset-1"),
    DocPart: DocPart(mime_kind="text/plain", data=create_inline_text_data("doc"), ref="r", title="t"),
    ToolInvocationPart: create_function_call_invocation_part("call-1", "search", '{"q": "x"}'),
    ToolResponsePart: create_function_call_response_part("call-1", False, "search", "found", "server"),
    AnnotationsPart: AnnotationsPart(citations=(Citation(title="a", url="https://a", ranges=(CitationRange(start_index=0, end_index=2),)),)),
    ModelAuxPart: ModelAuxPart(text="thinking", signature="sig"),
    PlaceholderPart: PlaceholderPart(text="..."),
    UnknownPart: UnknownPart.model_validate({"pt": "future", "data": {"deep": [1, 2]}}),
}


class TestDuplicationExhaustive:
    """Every part kind has a duplication rule."""

    def test_samples_cover_part_union(self):
        """The samples below name every member of the Part union."""
        assert _part_union_members(Part) == set(SAMPLE_PARTS)

    @pytest.mark.parametrize("part_class", list(SAMPLE_PARTS))
    def test_duplicate_part_equal_and_independent(self, part_class):
        """A duplicate is equal in value but a distinct object."""
        part = SAMPLE_PARTS[part_class]
        copy = duplicate_part(part)
        assert copy == part
        assert copy is not part

    def test_duplicate_unknown_part_deep(self):
        """Unknown payloads are deep-cloned, not shared."""
        part = SAMPLE_PARTS[UnknownPart]
        copy = duplicate_part(part)
        assert copy.payload() == part.payload()
        assert copy.model_extra["data"] is not part.model_extra["data"]

    def test_unsupported_part_raises(self):
        """Values outside the union are rejected."""
        with pytest.raises(TypeError):
            duplicate_part(object())


class TestPricingExhaustive:
    """Every part kind has a token pricing rule."""

    @pytest.mark.parametrize(
        "part",
        [
            *SAMPLE_PARTS.values(),
            create_code_execution_invocation_part("c", "python", "1+1"),
            create_code_execution_response_part("c", False, "2"),
        ],
        ids=lambda part: type(part).__name__,
    )
    def test_no_part_reaches_fallback(self, estimator, caplog, part):
        """Known parts are priced; only unknown ones warn by type."""
        profile = estimator.require_profile("gpt-4o")
        with caplog.at_level(logging.WARNING, logger="core.tokens"):
            tokens = estimator._part_tokens(profile, "assistant", part)
        assert not any(r.getMessage().startswith("Cannot price part ") for r in caplog.records)
        if isinstance(part, UnknownPart):
            assert tokens is None
        else:
            assert isinstance(tokens, int)
            assert tokens >= 0


class TestFragmentConstructors:
    """Test fragment constructors and type guards."""

    def test_fresh_ids(self):
        """Each constructor call mints a new fragment id."""
        a = create_text_content_fragment("x")
        b = create_text_content_fragment("x")
        assert a.fragment_id != b.fragment_id
        assert len(a.fragment_id) == 8

    def test_kinds(self):
        """Constructors produce the expected fragment kinds."""
        assert is_content_fragment(create_error_content_fragment("e"))
        assert is_content_fragment(create_image_content_fragment(create_data_ref_blob("b", "image/png", 1)))
        assert is_content_fragment(
            create_tool_invocation_content_fragment(create_code_execution_invocation_part("c", "python", "1+1"))
        )
        assert is_content_fragment(
            create_tool_response_content_fragment(create_code_execution_response_part("c", False, "2"))
        )
        assert is_attachment_fragment(create_asset_attachment_fragment("img", "", "asset-1"))
        assert is_void_fragment(create_placeholder_void_fragment("..."))
        assert is_void_fragment(create_model_aux_void_fragment("why"))
        assert is_void_fragment(create_annotations_void_fragment([]))

    def test_doc_attachment(self):
        """Doc attachments carry the title on both fragment and part."""
        fragment = create_doc_attachment_fragment(
            "notes.md", "caption", "text/markdown", create_inline_text_data("# hi", "text/markdown"), "notes.md",
            live_file_id="lf-1",
        )
        assert fragment.title == "notes.md"
        assert fragment.part.title == "notes.md"
        assert fragment.live_file_id == "lf-1"
        assert fragment.created > 0


class TestDuplicateFragment:
    """Test fragment duplication."""

    def test_new_id_same_origin_and_vendor_state(self):
        """Duplicates get a new fId, keep originId and copy vendorState."""
        fragment = create_text_content_fragment("hello").model_copy(
            update={"origin_id": "orig", "vendor_state": {"gemini": {"sig": "abc"}}}
        )
        copy = duplicate_fragment(fragment)
        assert copy.fragment_id != fragment.fragment_id
        assert copy.origin_id == "orig"
        assert copy.vendor_state == fragment.vendor_state
        assert copy.vendor_state is not fragment.vendor_state
        assert copy.part == fragment.part

    def test_placeholders_skipped_by_default(self):
        """Placeholder fragments are not cloned."""
        fragments = (create_text_content_fragment("a"), create_placeholder_void_fragment("..."))
        assert len(duplicate_fragments(fragments)) == 1
        assert len(duplicate_fragments(fragments, skip_placeholders=False)) == 2


class TestEditing:
    """Test text editing helpers."""

    def test_edit_text_keeps_id(self):
        """Editing text keeps the fragment id."""
        fragment = create_text_content_fragment("old")
        edited = update_fragment_with_edited_text(fragment, "new")
        assert edited.fragment_id == fragment.fragment_id
        assert edited.part.text == "new"

    def test_edit_doc_bumps_version(self):
        """Editing a doc attachment bumps its version."""
        fragment = create_doc_attachment_fragment("t", "", "text/plain", create_inline_text_data("a"), "r")
        edited = update_fragment_with_edited_text(fragment, "b")
        assert edited.part.data.text == "b"
        assert edited.part.version == 2

    def test_edit_image_not_supported(self):
        """Non-textual fragments cannot be edited."""
        fragment = create_image_content_fragment(create_data_ref_url("https://x"))
        assert update_fragment_with_edited_text(fragment, "x") is None

    def test_replace_last_content_text(self):
        """The last text fragment is replaced, or appended to."""
        fragments = (create_text_content_fragment("a"), create_text_content_fragment("b"))
        replaced = replace_last_content_text(fragments, "c")
        assert [f.part.text for f in replaced] == ["a", "c"]
        appended = replace_last_content_text(fragments, "!", append=True)
        assert appended[-1].part.text == "b!"
        assert replace_last_content_text((), "new")[0].part.text == "new"

    def test_prepend_text(self):
        """A prefix goes on the first text fragment."""
        fragments = (create_image_content_fragment(create_data_ref_url("u")), create_text_content_fragment("body"))
        result = prepend_text_to_fragments(fragments, "Re:")
        assert result[1].part.text == "Re: body"

    def test_reduce_text_skips_void(self):
        """Only content and attachment text is joined."""
        fragments = (
            create_text_content_fragment("one"),
            create_model_aux_void_fragment("hidden"),
            create_text_content_fragment("two"),
        )
        assert fragments_reduce_text(fragments) == "one\n\ntwo"

    def test_special_part_to_doc_attachment(self):
        """Text becomes a doc; unsupported parts become an error doc."""
        doc = special_content_part_to_doc_attachment("t", "c", "text/plain", TextPart(text="hello"), "ref")
        assert doc.part.data.text == "hello"
        error_doc = special_content_part_to_doc_attachment("t", "c", "text/plain", ErrorPart(error="x"), "ref")
        assert error_doc.title == "Error"
