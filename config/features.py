"""Feature flags system for gradual rollout and user control of features."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class FeatureStage(Enum):
    """Feature development stages."""

    EXPERIMENTAL = "experimental"
    BETA = "beta"
    STABLE = "stable"


@dataclass
class FeatureFlag:
    """Definition of a feature flag."""

    name: str
    description: str
    stage: FeatureStage
    default: bool
    deprecated: bool = False
    deprecated_by: Optional[str] = None


# Feature flag registry
FEATURE_FLAGS = {
    # Stable features (on by default)
    "blob_gc": FeatureFlag(
        name="blob_gc",
        description="Delete unreferenced blobs after load and destructive edits",
        stage=FeatureStage.STABLE,
        default=True,
    ),
    "incognito": FeatureFlag(
        name="incognito",
        description="Allow conversations that are never persisted",
        stage=FeatureStage.STABLE,
        default=True,
    ),
    # Beta features
    "exact_tokenizer": FeatureFlag(
        name="exact_tokenizer",
        description="Count text tokens with tiktoken instead of the character heuristic",
        stage=FeatureStage.BETA,
        default=True,
    ),
    # Experimental features
    "emergency_part_cleanup": FeatureFlag(
        name="emergency_part_cleanup",
        description="Drop text parts whose text is not a string when loading",
        stage=FeatureStage.EXPERIMENTAL,
        default=False,
    ),
}


class FeatureManager:
    """Manages feature flag state and evaluation."""

    def __init__(self) -> None:
        self._overrides: dict[str, bool] = {}

    def load_from_config(self, config: dict) -> None:
        """Load feature overrides from the 'features' section of a config dict.

        Unknown flag names are ignored with a warning.
        """
        for name, value in config.get("features", {}).items():
            if name in FEATURE_FLAGS:
                self._overrides[name] = bool(value)
            else:
                logger.warning("Ignoring unknown feature flag %r in config", name)

    def enable(self, name: str) -> None:
        self._set(name, True)

    def disable(self, name: str) -> None:
        self._set(name, False)

    def _set(self, name: str, value: bool) -> None:
        if name not in FEATURE_FLAGS:
            logger.warning("Unknown feature flag %r", name)
            return
        self._overrides[name] = value

    def reset(self) -> None:
        """Drop every override, returning all flags to their defaults."""
        self._overrides.clear()

    def is_enabled(self, name: str) -> bool:
        """Check if a feature is enabled.

        Args:
            name: Feature name to check

        Returns:
            The override if set, else the flag default; False for unknown names
        """
        if name in self._overrides:
            return self._overrides[name]

        flag = FEATURE_FLAGS.get(name)
        return flag.default if flag else False

    def list_features(self) -> list[dict]:
        """List all features with current status."""
        return [
            {
                "name": name,
                "description": flag.description,
                "stage": flag.stage.value,
                "default": flag.default,
                "enabled": self.is_enabled(name),
                "overridden": name in self._overrides,
                "deprecated": flag.deprecated,
            }
            for name, flag in FEATURE_FLAGS.items()
        ]


# Global instance
feature_manager = FeatureManager()
