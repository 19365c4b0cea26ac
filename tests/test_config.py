"""
Tests for configuration module.
"""

import pytest


class TestFeatureFlags:
    """Feature flags tests."""

    def test_default_features_enabled(self):
        """Test all features are enabled by default."""
        from machinetags.config import FeatureFlags

        flags = FeatureFlags()
        assert flags.tags is True
        assert flags.search is True
        assert flags.metrics is True

    def test_to_dict(self):
        """Test feature flags to dict."""
        from machinetags.config import FeatureFlags

        result = FeatureFlags().to_dict()
        assert isinstance(result, dict)
        assert len(result) == 3

    def test_env_override(self, monkeypatch):
        from machinetags.config import FeatureFlags

        monkeypatch.setenv("FEATURE_SEARCH", "false")
        assert FeatureFlags().search is False


class TestTaggingSettings:
    """Tagging defaults tests."""

    def test_defaults(self):
        from machinetags.config import TaggingSettings

        settings = TaggingSettings()
        options = settings.tag_list_options()
        assert options.quick_mode is False
        assert options.no_duplicates is True
        assert settings.finder_options().match_all is False

    def test_env_override(self, monkeypatch):
        """Test env vars flow into the options objects."""
        from machinetags.config import TaggingSettings

        monkeypatch.setenv("TAGGING_QUICK_MODE", "true")
        monkeypatch.setenv("TAGGING_NO_DUPLICATES", "false")
        monkeypatch.setenv("TAGGING_MATCH_ALL", "true")

        settings = TaggingSettings()
        assert settings.tag_list_options().quick_mode is True
        assert settings.tag_list_options().no_duplicates is False
        assert settings.finder_options().match_all is True


class TestStoreSettings:
    """Store configuration tests."""

    def test_taggable_schema(self, monkeypatch):
        from machinetags.config import StoreSettings

        monkeypatch.setenv("STORE_TAGGABLE_TABLE", "urls")
        monkeypatch.setenv("STORE_TAGGABLE_TYPE", "Url")

        schema = StoreSettings().taggable_schema()
        assert schema.table_name == "urls"
        assert schema.taggable_type == "Url"
        assert schema.taggings_alias == "urls_taggings"

    def test_bad_table_name(self, monkeypatch):
        from machinetags.config import StoreSettings

        monkeypatch.setenv("STORE_TAGGABLE_TABLE", "bad name")
        with pytest.raises(ValueError):
            StoreSettings().taggable_schema()


class TestSettings:
    """Main settings tests."""

    def test_is_production(self, monkeypatch):
        from machinetags.config import Settings

        monkeypatch.setenv("APP_ENV", "production")
        assert Settings().is_production is True


class TestExceptions:
    """Exception tests."""

    def test_not_found_exception(self):
        """Test NotFoundException."""
        from machinetags.exceptions import NotFoundException

        exc = NotFoundException("Record", 123)
        assert exc.status_code == 404
        assert exc.code == "NOT_FOUND"
        assert "Record" in exc.message
        assert exc.details["resource_id"] == "123"

    def test_validation_exception(self):
        """Test ValidationException carries field errors in its details."""
        from machinetags.exceptions import ValidationException

        exc = ValidationException("Invalid request", errors=[{"loc": ["body", "tags"], "msg": "Field required"}])
        assert exc.status_code == 400
        assert exc.code == "VALIDATION_ERROR"
        assert exc.details["errors"][0]["loc"] == ["body", "tags"]
        assert ValidationException("Invalid request").details is None

    def test_feature_disabled_exception(self):
        """Test FeatureDisabledException."""
        from machinetags.exceptions import FeatureDisabledException

        exc = FeatureDisabledException("search")
        assert exc.status_code == 503
        assert exc.code == "FEATURE_DISABLED"
        assert "search" in exc.message

    def test_malformed_quick_mode_exception(self):
        from machinetags.exceptions import MalformedQuickModeInputException

        exc = MalformedQuickModeInputException("a=1", "missing namespace")
        assert exc.status_code == 400
        assert exc.details == {"input": "a=1", "reason": "missing namespace"}

    def test_ambiguous_export_exception(self):
        """Test the message names the reason the export is ambiguous."""
        from machinetags.exceptions import AmbiguousQuickModeExportException

        exc = AmbiguousQuickModeExportException(["gem"], ["ruby"])
        assert exc.status_code == 409
        assert "machine tags only" in exc.message

    def test_store_exception(self):
        from machinetags.exceptions import StoreException

        exc = StoreException("save_tags", "disk I/O error")
        assert exc.status_code == 500
        assert exc.details["operation"] == "save_tags"
