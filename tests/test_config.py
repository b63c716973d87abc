"""
Unit Tests: Settings

Tests for core/config.py covering environment parsing and the derived
properties used by the service factories.
"""

import pytest
from pydantic import ValidationError

from food_cart.core.config import (
    EnvironmentMode,
    MergePolicy,
    Settings,
    StorageBackend,
    get_settings,
)


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.env_mode == EnvironmentMode.DEVELOPMENT
        assert settings.cart_merge_policy == MergePolicy.PRODUCT_OPTIONS
        assert settings.cart_storage_key == "cart"
        assert settings.effective_storage_backend == StorageBackend.MEMORY
        assert settings.effective_realtime_url == settings.backend_base_url

    def test_env_values_are_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "PRODUCTION")
        monkeypatch.setenv("CART_MERGE_POLICY", "Product")

        settings = Settings(_env_file=None)

        assert settings.is_production is True
        assert settings.use_real_services is True
        assert settings.cart_merge_policy == MergePolicy.PRODUCT
        assert settings.effective_storage_backend == StorageBackend.FILE

    @pytest.mark.parametrize("field", ["env_mode", "cart_merge_policy"])
    def test_invalid_enum_value(self, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: "bogus"})

    def test_production_config_problems(self):
        settings = Settings(
            _env_file=None,
            env_mode="production",
            storage_backend=StorageBackend.MEMORY,
        )

        problems = settings.validate_production_config()

        assert len(problems) == 2

    def test_development_has_no_problems(self):
        assert Settings(_env_file=None).validate_production_config() == []

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
