"""功能开关测试"""

from unittest.mock import patch

import pytest

from modgate.core.feature_flags import (
    FEATURE_FLAG_DEFINITIONS,
    EnvFeatureFlagProvider,
    FeatureFlagDefinition,
    FeatureFlagProvider,
    StaticFeatureFlagProvider,
    feature_flag_analytics,
    parse_flag_value,
    validate_feature_flags,
)


class TestParseFlagValue:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", "on", " enabled "])
    def test_truthy_values(self, raw: str) -> None:
        assert parse_flag_value(raw, False) is True

    @pytest.mark.parametrize("raw", ["false", "0", "No", "off", "disabled"])
    def test_falsy_values(self, raw: str) -> None:
        assert parse_flag_value(raw, True) is False

    def test_missing_or_blank_uses_default(self) -> None:
        assert parse_flag_value(None, True) is True
        assert parse_flag_value("   ", False) is False

    def test_invalid_value_warns_and_uses_default(self) -> None:
        with patch("modgate.core.feature_flags.logger") as mock_logger:
            assert parse_flag_value("maybe", True) is True

        mock_logger.warning.assert_called_once()


class TestStaticProvider:
    def test_unknown_flag_is_disabled(self) -> None:
        assert StaticFeatureFlagProvider().is_enabled("anything") is False

    def test_set_flags(self) -> None:
        provider = StaticFeatureFlagProvider({"a": True})
        provider.set_flag("a", False)
        provider.set_flags({"b": 1})

        assert provider.get_all_flags() == {"a": False, "b": True}

    def test_satisfies_protocol(self) -> None:
        assert isinstance(StaticFeatureFlagProvider(), FeatureFlagProvider)
        assert isinstance(EnvFeatureFlagProvider(environ={}), FeatureFlagProvider)


class TestEnvProvider:
    def test_defaults_without_environment(self) -> None:
        provider = EnvFeatureFlagProvider(environ={"ENVIRONMENT": "production"})

        assert provider.is_enabled("advanced_reporting") is True
        assert provider.is_enabled("ai_personalization") is False
        assert provider.is_enabled("debug_mode") is False
        assert len(provider.get_all_flags()) == len(FEATURE_FLAG_DEFINITIONS)

    def test_debug_mode_defaults_on_in_development(self) -> None:
        provider = EnvFeatureFlagProvider(environ={"ENVIRONMENT": "development"})

        assert provider.is_enabled("debug_mode") is True

    def test_explicit_debug_flag_wins(self) -> None:
        provider = EnvFeatureFlagProvider(
            environ={"ENVIRONMENT": "development", "FEATURE_DEBUG": "false"}
        )

        assert provider.is_enabled("debug_mode") is False

    def test_environment_overrides(self) -> None:
        provider = EnvFeatureFlagProvider(
            environ={"FEATURE_AI": "on", "FEATURE_REPORTING": "0"}
        )

        assert provider.is_enabled("ai_personalization") is True
        assert provider.is_enabled("advanced_reporting") is False
        assert "ai_personalization" in provider.get_enabled_flags()

    def test_values_are_cached_until_reload(self) -> None:
        environ = {"FEATURE_AI": "false"}
        provider = EnvFeatureFlagProvider(environ=environ)

        environ["FEATURE_AI"] = "true"
        assert provider.is_enabled("ai_personalization") is False

        provider.reload()
        assert provider.is_enabled("ai_personalization") is True

    def test_custom_definitions(self) -> None:
        definitions = [FeatureFlagDefinition("billingEnabled", "FEATURE_BILLING", False, "core")]

        provider = EnvFeatureFlagProvider(definitions, environ={"FEATURE_BILLING": "yes"})

        assert provider.get_all_flags() == {"billingEnabled": True}


class TestValidation:
    def test_production_warnings(self) -> None:
        provider = StaticFeatureFlagProvider(
            {"debug_mode": True, "beta_features": True, "caching": True}
        )

        warnings = validate_feature_flags(provider, "production")

        assert len(warnings) == 2

    def test_dependent_flag_warnings(self) -> None:
        provider = StaticFeatureFlagProvider(
            {"real_time_collaboration": True, "push_notifications": True}
        )

        warnings = validate_feature_flags(provider, "development")

        assert warnings == [
            "Real-time collaboration requires caching to be enabled",
            "Push notifications typically require email notifications as fallback",
        ]

    def test_defaults_are_valid(self) -> None:
        provider = EnvFeatureFlagProvider(environ={"ENVIRONMENT": "production"})

        assert validate_feature_flags(provider, "production") == []


class TestAnalytics:
    def test_counts_by_category(self) -> None:
        definitions = [
            FeatureFlagDefinition("a", "FEATURE_A", True, "core"),
            FeatureFlagDefinition("b", "FEATURE_B", False, "core"),
            FeatureFlagDefinition("c", "FEATURE_C", False, "integration"),
            FeatureFlagDefinition("d", "FEATURE_D", True, "security"),
        ]
        provider = StaticFeatureFlagProvider({"a": True, "d": True})

        analytics = feature_flag_analytics(provider, definitions)

        assert analytics == {
            "total_flags": 4,
            "enabled_flags": 2,
            "disabled_flags": 2,
            "enabled_percentage": 50,
            "flags_by_category": {"core": 1, "integration": 0, "security": 1},
        }
