"""
Token estimation for polymorphic message content.

Text is counted with tiktoken when the exact tokenizer is enabled, falling
back to a characters-per-token heuristic on any tokenizer failure. Images
are priced by a per-model sizing function. Estimation never raises.
"""

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

import tiktoken

from config.defaults import AVAILABLE_MODELS
from config.features import feature_manager

from .constants import (
    ASSISTANT_IMAGE_THUMBNAIL_SIZE,
    CHARS_PER_TOKEN,
    DEFAULT_IMAGE_SIZE,
    FRAGMENT_GLUE_TOKENS,
    MESSAGE_HEAD_GLUE_TOKENS,
)
from .exceptions import ModelProfileNotFoundError
from .models import (
    AnnotationsPart,
    CodeExecutionInvocation,
    DocPart,
    ErrorPart,
    Fragment,
    FunctionCallInvocation,
    ImageRefPart,
    Message,
    MessageRole,
    ModelAuxPart,
    PlaceholderPart,
    ReferencePart,
    TextPart,
    ToolInvocationPart,
    ToolResponsePart,
    UnknownPart,
)

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"

ImageSizingFn = Callable[[int, int], int]


# =============================================================================
# Image sizing
# =============================================================================


def openai_image_tokens(width: int, height: int) -> int:
    """High-detail tile pricing: fit in 2048, shortest side 768, 512px tiles."""
    if width <= 0 or height <= 0:
        return 0
    w, h = float(width), float(height)
    if max(w, h) > 2048:
        scale = 2048 / max(w, h)
        w, h = w * scale, h * scale
    if min(w, h) > 768:
        scale = 768 / min(w, h)
        w, h = w * scale, h * scale
    tiles = math.ceil(w / 512) * math.ceil(h / 512)
    return 85 + 170 * tiles


def anthropic_image_tokens(width: int, height: int) -> int:
    if width <= 0 or height <= 0:
        return 0
    return min(math.ceil(width * height / 750), 1600)


def gemini_image_tokens(width: int, height: int) -> int:
    return 258


IMAGE_SIZING: dict[str, ImageSizingFn] = {
    "openai": openai_image_tokens,
    "anthropic": anthropic_image_tokens,
    "gemini": gemini_image_tokens,
}


# =============================================================================
# Model registry
# =============================================================================


@dataclass(frozen=True)
class ModelProfile:
    """What the estimator needs to know about a model."""

    id: str
    label: str
    context_window: int
    encoding: str = DEFAULT_ENCODING
    image_sizing: ImageSizingFn = openai_image_tokens


class ModelRegistry(Protocol):
    def get_profile(self, model_id: str) -> ModelProfile | None: ...


class StaticModelRegistry:
    """In-memory registry of model profiles."""

    def __init__(self, profiles: Iterable[ModelProfile] = ()):
        self._profiles = {p.id: p for p in profiles}

    @classmethod
    def from_defaults(cls, models: Iterable[dict[str, Any]] = AVAILABLE_MODELS) -> "StaticModelRegistry":
        profiles = []
        for entry in models:
            sizing_name = entry.get("image_sizing", "openai")
            sizing = IMAGE_SIZING.get(sizing_name)
            if sizing is None:
                logger.warning("Model %s has unknown image sizing %r, using openai", entry["id"], sizing_name)
                sizing = openai_image_tokens
            profiles.append(
                ModelProfile(
                    id=entry["id"],
                    label=entry.get("name", entry["id"]),
                    context_window=entry["context_window"],
                    encoding=entry.get("encoding", DEFAULT_ENCODING),
                    image_sizing=sizing,
                )
            )
        return cls(profiles)

    def register(self, profile: ModelProfile) -> None:
        self._profiles[profile.id] = profile

    def get_profile(self, model_id: str) -> ModelProfile | None:
        return self._profiles.get(model_id)

    def list_profiles(self) -> list[ModelProfile]:
        return list(self._profiles.values())


# =============================================================================
# Text tokenizer
# =============================================================================


def heuristic_text_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TextTokenizer:
    """Counts text tokens, exactly with tiktoken or by heuristic."""

    def __init__(self, use_exact: bool | None = None):
        # None follows the exact_tokenizer feature flag on every call.
        self._use_exact = use_exact
        self._encodings: dict[str, Any] = {}
        self._failed: set[str] = set()

    @property
    def exact_enabled(self) -> bool:
        if self._use_exact is not None:
            return self._use_exact
        return feature_manager.is_enabled("exact_tokenizer")

    def _encoding(self, name: str) -> Any | None:
        if name in self._failed:
            return None
        if name not in self._encodings:
            try:
                self._encodings[name] = tiktoken.get_encoding(name)
            except Exception as e:
                logger.warning("tiktoken encoding %s unavailable, using heuristic: %s", name, e)
                self._failed.add(name)
                return None
        return self._encodings[name]

    def count(self, text: str, encoding: str = DEFAULT_ENCODING) -> int:
        if not text:
            return 0
        if not self.exact_enabled:
            return heuristic_text_tokens(text)
        enc = self._encoding(encoding)
        if enc is None:
            return heuristic_text_tokens(text)
        try:
            return len(enc.encode(text, disallowed_special=()))
        except Exception as e:
            logger.warning("Tokenizing %r... failed, using heuristic: %s", text[:10], e)
            return heuristic_text_tokens(text)


# =============================================================================
# Estimator
# =============================================================================


class TokenEstimator:
    """Prices message fragments against a model profile."""

    def __init__(self, registry: ModelRegistry | None = None, tokenizer: TextTokenizer | None = None):
        self.registry = registry or StaticModelRegistry.from_defaults()
        self.tokenizer = tokenizer or TextTokenizer()

    def require_profile(self, model_id: str) -> ModelProfile:
        """
        Resolve a model profile where estimation is assumed possible.

        Raises:
            ModelProfileNotFoundError: If the model is not registered
        """
        profile = self.registry.get_profile(model_id)
        if profile is None:
            raise ModelProfileNotFoundError(model_id)
        return profile

    def estimate_tokens(self, profile: ModelProfile, role: MessageRole, fragments: Iterable[Fragment]) -> int:
        """
        Estimate the cost of a message's fragments.

        Void fragments cost nothing. Unknown parts cost nothing and log a
        warning. Glue tokens are added at the head of the message and
        between priced fragments.

        Args:
            profile: Model to price against
            role: Author role of the message
            fragments: The fragments, in order

        Returns:
            Non-negative token estimate
        """
        total = MESSAGE_HEAD_GLUE_TOKENS
        priced = 0
        for fragment in fragments:
            if fragment.ft == "void":
                continue
            cost = self._part_tokens(profile, role, fragment.part)
            if cost is None:
                continue
            if priced:
                total += FRAGMENT_GLUE_TOKENS
            total += max(cost, 0)
            priced += 1
        return total

    def estimate_message_tokens(self, message: Message, model_id: str) -> int:
        profile = self.registry.get_profile(model_id)
        if profile is None:
            logger.warning("No model profile for %s, token count is 0", model_id)
            return 0
        return self.estimate_tokens(profile, message.role, message.fragments)

    def _text(self, profile: ModelProfile, text: str) -> int:
        return self.tokenizer.count(text, profile.encoding)

    def _image(self, profile: ModelProfile, role: MessageRole, width: int | None, height: int | None) -> int:
        if not width or not height:
            width, height = ASSISTANT_IMAGE_THUMBNAIL_SIZE if role == "assistant" else DEFAULT_IMAGE_SIZE
        return profile.image_sizing(width, height)

    def _part_tokens(self, profile: ModelProfile, role: MessageRole, part: Any) -> int | None:
        match part:
            case TextPart():
                return self._text(profile, part.text)
            case ErrorPart():
                return self._text(profile, part.error)
            case ImageRefPart():
                return self._image(profile, role, part.width, part.height)
            case ReferencePart():
                legacy = part.legacy_image_ref
                if legacy is not None:
                    return self._image(profile, role, legacy.width, legacy.height)
                return self._image(profile, role, None, None)
            case DocPart():
                return self._text(profile, part.title) + self._text(profile, part.data.text)
            case ToolInvocationPart(invocation=FunctionCallInvocation() as call):
                return self._text(profile, call.name) + self._text(profile, call.args or "")
            case ToolInvocationPart(invocation=CodeExecutionInvocation() as code):
                return self._text(profile, code.code)
            case ToolResponsePart():
                return self._text(profile, part.response.result)
            case AnnotationsPart() | ModelAuxPart() | PlaceholderPart():
                return 0
            case UnknownPart():
                logger.warning("Cannot price unknown part type %r", part.pt)
                return None
        logger.warning("Cannot price part %s", type(part).__name__)
        return None
