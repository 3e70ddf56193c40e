"""
Features endpoint for managing feature flags.

Flags gate blob GC, incognito conversations, the exact tokenizer and the
emergency cleanup of malformed parts on load.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from config.features import FEATURE_FLAGS, feature_manager


router = APIRouter()


class Feature(BaseModel):
    """A feature flag definition."""

    name: str
    description: str
    stage: str
    default: bool
    enabled: bool
    overridden: bool
    deprecated: bool


class FeatureStatus(BaseModel):
    """Feature enablement status."""

    name: str
    enabled: bool


class FeatureOverride(BaseModel):
    enabled: bool


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/features")
async def list_features() -> list[Feature]:
    """List all feature flags with their current status."""
    return [Feature(**f) for f in feature_manager.list_features()]


@router.get("/features/{feature_name}")
async def get_feature(feature_name: str) -> FeatureStatus:
    """
    Get the status of a specific feature.

    Unknown names report as disabled.
    """
    return FeatureStatus(name=feature_name, enabled=feature_manager.is_enabled(feature_name))


@router.put("/features/{feature_name}")
async def set_feature(feature_name: str, override: FeatureOverride) -> FeatureStatus:
    """Override a flag for the lifetime of the process."""
    if feature_name not in FEATURE_FLAGS:
        raise HTTPException(status_code=404, detail=f"Unknown feature: {feature_name}")
    if override.enabled:
        feature_manager.enable(feature_name)
    else:
        feature_manager.disable(feature_name)
    return FeatureStatus(name=feature_name, enabled=feature_manager.is_enabled(feature_name))
