"""
应用模块清单测试

验证清单按依赖顺序声明、默认开关下的启用结果，以及批量注册的失败处理。
"""

import pytest

from modgate.core.exceptions import ManifestRegistrationError, UnknownDependencyError
from modgate.core.feature_flags import EnvFeatureFlagProvider, StaticFeatureFlagProvider
from modgate.core.modules import ModuleConfig, ModuleRegistry, ModuleState
from modgate.modules import build_manifest, get_module_status, register_modules


@pytest.fixture
def default_flags() -> EnvFeatureFlagProvider:
    return EnvFeatureFlagProvider(environ={"ENVIRONMENT": "production"})


class TestBuildManifest:
    """测试清单内容"""

    def test_dependencies_declared_before_dependents(
        self, default_flags: EnvFeatureFlagProvider
    ) -> None:
        seen: set[str] = set()
        for config in build_manifest(default_flags):
            assert set(config.dependencies) <= seen, config.name
            seen.add(config.name)

    def test_names_are_unique(self, default_flags: EnvFeatureFlagProvider) -> None:
        names = [c.name for c in build_manifest(default_flags)]

        assert len(names) == len(set(names)) == 11

    def test_requested_state_follows_flags(self) -> None:
        flags = StaticFeatureFlagProvider({"email_notifications": True})

        manifest = {c.name: c for c in build_manifest(flags)}

        assert manifest["communication"].enabled is True
        assert manifest["third-party-integrations"].enabled is False
        assert manifest["security"].enabled is False
        assert manifest["reporting"].required_feature_set() == {"advanced_reporting"}


class TestRegisterModules:
    """测试清单注册"""

    def test_registers_full_manifest(self, default_flags: EnvFeatureFlagProvider) -> None:
        registry = ModuleRegistry(default_flags)

        report = register_modules(registry)

        assert report.ok is True
        assert len(registry) == 11
        stats = registry.get_statistics()
        assert stats.enabled == 7
        assert stats.disabled == 4
        assert stats.by_category == {"core": 3, "feature": 4, "integration": 2, "experimental": 2}

    def test_experimental_modules_gated_by_default(
        self, default_flags: EnvFeatureFlagProvider
    ) -> None:
        registry = ModuleRegistry(default_flags)
        register_modules(registry)

        assert registry.is_enabled("ai-personalization") is False
        assert registry.is_enabled("realtime-collaboration") is False
        assert registry.is_enabled("reporting") is True

    def test_reporting_gated_when_flag_off(self) -> None:
        flags = EnvFeatureFlagProvider(environ={"FEATURE_REPORTING": "false"})
        registry = ModuleRegistry(flags)

        register_modules(registry)

        assert registry.get_module("reporting").status == ModuleState.DISABLED

    def test_failures_collected_after_all_attempts(self) -> None:
        registry = ModuleRegistry(StaticFeatureFlagProvider())
        manifest = [
            ModuleConfig(name="billing", version="1.0.0", dependencies=["core"]),
            ModuleConfig(name="core", version="1.0.0"),
        ]

        with pytest.raises(ManifestRegistrationError) as exc_info:
            register_modules(registry, manifest)

        failure = exc_info.value.failures[0]
        assert (failure.index, failure.module_name) == (0, "billing")
        assert isinstance(failure.error, UnknownDependencyError)
        assert registry.module_names() == ["core"]

    def test_duplicate_names_counted_per_entry(self) -> None:
        registry = ModuleRegistry(StaticFeatureFlagProvider())
        manifest = [
            ModuleConfig(name="core", version="1.0.0"),
            ModuleConfig(name="core", version="2.0.0"),
            ModuleConfig(name="core", version="3.0.0"),
        ]

        with pytest.raises(ManifestRegistrationError) as exc_info:
            register_modules(registry, manifest)

        error = exc_info.value
        assert len(error.failures) == 2
        assert error.message.startswith("2 module(s) failed to register")
        assert [f["index"] for f in error.details["failures"]] == [1, 2]
        assert error.details["failures"][0]["kind"] == "duplicate_module"


class TestModuleStatus:
    """测试状态摘要"""

    def test_status_lists(self, default_flags: EnvFeatureFlagProvider) -> None:
        registry = ModuleRegistry(default_flags)
        register_modules(registry)
        registry.mark_error("course-management", "boom")

        status = get_module_status(registry)

        assert "course-management" in status["error_modules"]
        assert "course-management" not in status["disabled_modules"]
        assert "ai-personalization" in status["disabled_modules"]
        assert "core" in status["enabled_modules"]
        assert status["statistics"]["errors"] == 1
