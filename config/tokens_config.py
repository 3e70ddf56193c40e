"""TokensConfig model."""

from pydantic import BaseModel, Field

from .defaults import DEFAULT_CHAT_MODEL


class TokensConfig(BaseModel):
    """Token estimation settings."""

    chat_model: str = Field(
        default=DEFAULT_CHAT_MODEL,
        description="Model id used to price messages",
    )
    exact_tokenizer: bool | None = Field(
        default=None,
        description="Force the exact tokenizer on or off (None follows the feature flag)",
    )
