"""
Domain models for the conversation data layer.

These are the core data structures used throughout the application.
"""

from .base import FrozenModel
from .conversation import Conversation
from .data_ref import BlobDataRef, DataRef, InlineTextData, UrlDataRef
from .fragment import AttachmentFragment, ContentFragment, Fragment, VoidFragment
from .message import Message, MessageGenerator, MessageMetadata, MessageReference, MessageRole
from .part import (
    AnnotationsPart,
    AttachmentPart,
    Citation,
    CitationRange,
    ContentPart,
    DocMeta,
    DocPart,
    ErrorPart,
    ImageRefPart,
    ModelAuxPart,
    ModelOpState,
    Part,
    PlaceholderPart,
    ReferencePart,
    RetryControl,
    TextPart,
    ToolInvocationPart,
    ToolResponsePart,
    UnknownPart,
    VoidPart,
)
from .tool import (
    CodeExecutionInvocation,
    CodeExecutionResponse,
    FunctionCallInvocation,
    FunctionCallResponse,
    ToolEnvironment,
    ToolInvocation,
    ToolResponse,
)
from .utils import gen_fragment_id, gen_uuid, now_ms

__all__ = [
    # Utils
    "gen_uuid",
    "gen_fragment_id",
    "now_ms",
    "FrozenModel",
    # Data references
    "UrlDataRef",
    "BlobDataRef",
    "DataRef",
    "InlineTextData",
    # Tool payloads
    "FunctionCallInvocation",
    "CodeExecutionInvocation",
    "FunctionCallResponse",
    "CodeExecutionResponse",
    "ToolInvocation",
    "ToolResponse",
    "ToolEnvironment",
    # Part models
    "TextPart",
    "ErrorPart",
    "ImageRefPart",
    "ReferencePart",
    "DocMeta",
    "DocPart",
    "ToolInvocationPart",
    "ToolResponsePart",
    "CitationRange",
    "Citation",
    "AnnotationsPart",
    "ModelAuxPart",
    "ModelOpState",
    "RetryControl",
    "PlaceholderPart",
    "UnknownPart",
    "ContentPart",
    "AttachmentPart",
    "VoidPart",
    "Part",
    # Fragment models
    "ContentFragment",
    "AttachmentFragment",
    "VoidFragment",
    "Fragment",
    # Message models
    "MessageRole",
    "MessageGenerator",
    "MessageReference",
    "MessageMetadata",
    "Message",
    # Conversation
    "Conversation",
]
