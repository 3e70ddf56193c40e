"""Main Config model."""

from pydantic import BaseModel, Field

from .defaults import DEFAULT_PERSONA_ID, DEFAULT_SHARE_BASE_URL
from .storage_config import StorageConfig
from .tokens_config import TokensConfig


class Config(BaseModel):
    """Main configuration model."""

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Document and blob storage locations",
    )
    tokens: TokensConfig = Field(
        default_factory=TokensConfig,
        description="Token estimation settings",
    )
    default_persona: str = Field(
        default=DEFAULT_PERSONA_ID,
        description="Persona id for new conversations",
    )
    share_base_url: str = Field(
        default=DEFAULT_SHARE_BASE_URL,
        description="Base URL of the shared-conversation key-value store",
    )
    features: dict[str, bool] = Field(
        default_factory=dict,
        description="Feature flag overrides by name",
    )
