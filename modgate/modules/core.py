"""
核心模块

提供系统基础能力，无依赖或只依赖 core
"""

from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.modules.base import ModuleCategory, ModuleConfig, ModuleRequirements

AUTHOR = "RK Institute"
LICENSE = "PROPRIETARY"


def core_modules(flags: FeatureFlagProvider) -> list[ModuleConfig]:
    return [
        ModuleConfig(
            name="core",
            version="1.0.0",
            description="Core system functionality including authentication, database, and utilities",
            dependencies=[],
            routes=["/api/health", "/api/auth/login", "/api/auth/logout", "/api/auth/verify"],
            components=[
                "Layout",
                "Navigation",
                "Header",
                "Footer",
                "LoadingSpinner",
                "ErrorBoundary",
            ],
            services=["AuthService", "DatabaseService", "LoggingService", "ConfigService"],
            enabled=True,
            category=ModuleCategory.CORE,
            priority=100,
            author=AUTHOR,
            license=LICENSE,
            requirements=ModuleRequirements(
                runtime_version=">=3.10",
                memory_mb=64,
                features=("database", "authentication"),
            ),
        ),
        ModuleConfig(
            name="security",
            version="1.0.0",
            description="Security features including input validation, rate limiting, and audit logging",
            dependencies=["core"],
            routes=["/api/security/audit", "/api/security/rate-limit"],
            components=["SecurityProvider", "ProtectedRoute", "AuditLog"],
            services=["SecurityService", "AuditService", "ValidationService"],
            enabled=flags.is_enabled("audit_logging") or flags.is_enabled("rate_limiting"),
            required_features=[],
            optional_features=["audit_logging", "rate_limiting", "input_validation"],
            category=ModuleCategory.CORE,
            priority=90,
            author=AUTHOR,
            license=LICENSE,
        ),
        ModuleConfig(
            name="ui-framework",
            version="1.0.0",
            description="UI framework with components, themes, and responsive design",
            dependencies=["core"],
            routes=[],
            components=[
                "Button",
                "Input",
                "Modal",
                "Table",
                "Card",
                "Form",
                "ThemeProvider",
                "ResponsiveContainer",
            ],
            services=["ThemeService", "ResponsiveService"],
            enabled=True,
            optional_features=[
                "dark_mode",
                "accessibility_enhancements",
                "mobile_optimization",
            ],
            category=ModuleCategory.CORE,
            priority=80,
            author=AUTHOR,
            license=LICENSE,
        ),
    ]
