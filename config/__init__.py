"""
Configuration module for the chat store.

Exports the main configuration classes and functions for use throughout the application.
"""

from .defaults import AVAILABLE_MODELS, DEFAULT_CHAT_MODEL, DEFAULT_PERSONA_ID
from .features import FEATURE_FLAGS, FeatureFlag, FeatureManager, FeatureStage, feature_manager
from .loader import get_config, get_working_directory, load_config, load_config_file, merge_configs, strip_jsonc_comments
from .main_config import Config
from .storage_config import StorageConfig
from .tokens_config import TokensConfig

__all__ = [
    # Constants
    "AVAILABLE_MODELS",
    "DEFAULT_CHAT_MODEL",
    "DEFAULT_PERSONA_ID",
    # Config models
    "Config",
    "StorageConfig",
    "TokensConfig",
    # Feature flags
    "FEATURE_FLAGS",
    "FeatureFlag",
    "FeatureManager",
    "FeatureStage",
    "feature_manager",
    # Loader functions
    "load_config",
    "get_config",
    "get_working_directory",
    "load_config_file",
    "merge_configs",
    "strip_jsonc_comments",
]
