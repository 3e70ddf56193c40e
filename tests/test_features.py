"""
Tests for the feature flags system.
"""

from fastapi.testclient import TestClient

from config.features import (
    FEATURE_FLAGS,
    FeatureFlag,
    FeatureManager,
    FeatureStage,
    feature_manager,
)
from server.app import app


client = TestClient(app)


class TestFeatureFlag:
    """Test FeatureFlag dataclass."""

    def test_create_feature_flag(self):
        """Test creating a feature flag."""
        flag = FeatureFlag(
            name="test_feature",
            description="Test feature",
            stage=FeatureStage.EXPERIMENTAL,
            default=False,
        )
        assert flag.name == "test_feature"
        assert flag.stage == FeatureStage.EXPERIMENTAL
        assert flag.default is False
        assert flag.deprecated is False
        assert flag.deprecated_by is None


class TestFeatureRegistry:
    """Test the FEATURE_FLAGS registry."""

    def test_stable_features(self):
        """Test stable features are on by default."""
        for name in ("blob_gc", "incognito"):
            assert FEATURE_FLAGS[name].stage == FeatureStage.STABLE
            assert FEATURE_FLAGS[name].default is True

    def test_beta_features(self):
        assert FEATURE_FLAGS["exact_tokenizer"].stage == FeatureStage.BETA

    def test_experimental_features(self):
        """Test experimental features are off by default."""
        assert FEATURE_FLAGS["emergency_part_cleanup"].stage == FeatureStage.EXPERIMENTAL
        assert FEATURE_FLAGS["emergency_part_cleanup"].default is False


class TestFeatureManager:
    """Test FeatureManager class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.manager = FeatureManager()

    def test_is_enabled_default(self):
        """Test checking default feature state."""
        assert self.manager.is_enabled("blob_gc") is True
        assert self.manager.is_enabled("emergency_part_cleanup") is False

    def test_is_enabled_unknown_feature(self):
        """Test checking unknown feature returns False."""
        assert self.manager.is_enabled("unknown_feature") is False

    def test_enable_and_disable(self):
        self.manager.enable("emergency_part_cleanup")
        self.manager.disable("blob_gc")
        assert self.manager.is_enabled("emergency_part_cleanup") is True
        assert self.manager.is_enabled("blob_gc") is False

    def test_enable_unknown_feature(self):
        """Test enabling unknown feature is ignored."""
        self.manager.enable("unknown_feature")
        assert self.manager.is_enabled("unknown_feature") is False

    def test_reset(self):
        """Test that reset drops every override."""
        self.manager.disable("incognito")
        self.manager.reset()
        assert self.manager.is_enabled("incognito") is True

    def test_load_from_config(self):
        """Test loading feature overrides from config."""
        config = {
            "features": {
                "emergency_part_cleanup": True,
                "blob_gc": False,
                "unknown_feature": True,  # Should be ignored
            }
        }
        self.manager.load_from_config(config)

        assert self.manager.is_enabled("emergency_part_cleanup") is True
        assert self.manager.is_enabled("blob_gc") is False
        assert self.manager.is_enabled("unknown_feature") is False

    def test_load_from_config_no_features(self):
        """Test loading config without features section."""
        self.manager.load_from_config({"default_persona": "Generic"})
        assert self.manager.is_enabled("blob_gc") is True

    def test_list_features_with_overrides(self):
        """Test listing features shows override status."""
        self.manager.enable("emergency_part_cleanup")

        features = self.manager.list_features()
        assert len(features) == len(FEATURE_FLAGS)
        cleanup = next(f for f in features if f["name"] == "emergency_part_cleanup")
        assert cleanup["enabled"] is True
        assert cleanup["overridden"] is True
        assert cleanup["default"] is False


class TestFeaturesAPI:
    """Test the /features API endpoints."""

    def test_list_features_endpoint(self):
        """Test GET /features endpoint."""
        response = client.get("/features")
        assert response.status_code == 200

        features = response.json()
        assert {f["name"] for f in features} == set(FEATURE_FLAGS)
        assert {f["stage"] for f in features} == {"stable", "beta", "experimental"}

    def test_get_feature_endpoint(self):
        """Test GET /features/{feature_name} endpoint."""
        response = client.get("/features/blob_gc")
        assert response.status_code == 200
        assert response.json() == {"name": "blob_gc", "enabled": True}

    def test_get_feature_unknown(self):
        """Test getting an unknown feature returns False."""
        response = client.get("/features/unknown_feature")
        assert response.status_code == 200
        assert response.json()["enabled"] is False

    def test_set_feature(self):
        """Test PUT /features/{feature_name} overrides the flag."""
        response = client.put("/features/blob_gc", json={"enabled": False})
        assert response.status_code == 200
        assert response.json() == {"name": "blob_gc", "enabled": False}
        assert feature_manager.is_enabled("blob_gc") is False

        listed = next(f for f in client.get("/features").json() if f["name"] == "blob_gc")
        assert listed["overridden"] is True

    def test_set_unknown_feature(self):
        """Test overriding an unknown flag is a 404."""
        response = client.put("/features/unknown_feature", json={"enabled": True})
        assert response.status_code == 404
