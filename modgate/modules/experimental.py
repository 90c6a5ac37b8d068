"""
实验模块

处于 beta 阶段，必须由功能开关显式打开
"""

from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.modules.base import ModuleCategory, ModuleConfig
from modgate.modules.core import AUTHOR, LICENSE


def experimental_modules(flags: FeatureFlagProvider) -> list[ModuleConfig]:
    return [
        ModuleConfig(
            name="realtime-collaboration",
            version="0.9.0",
            description=(
                "Real-time collaboration features including chat, presence, "
                "and collaborative editing"
            ),
            dependencies=["core", "student-management"],
            routes=["/api/collaboration", "/api/presence", "/api/chat"],
            components=[
                "CollaborationPanel",
                "PresenceIndicator",
                "ChatInterface",
                "CollaborativeEditor",
            ],
            services=["CollaborationService", "PresenceService", "ChatService"],
            enabled=flags.is_enabled("real_time_collaboration"),
            required_features=["real_time_collaboration"],
            optional_features=["caching"],
            category=ModuleCategory.EXPERIMENTAL,
            priority=10,
            author=AUTHOR,
            license=LICENSE,
        ),
        ModuleConfig(
            name="ai-personalization",
            version="0.8.0",
            description="AI-powered personalization and recommendations",
            dependencies=["core", "student-management", "reporting"],
            routes=["/api/ai/recommendations", "/api/ai/insights", "/api/ai/personalization"],
            components=[
                "RecommendationEngine",
                "PersonalizationPanel",
                "AIInsights",
                "SmartSuggestions",
            ],
            services=["AIService", "RecommendationService", "PersonalizationService"],
            enabled=flags.is_enabled("ai_personalization"),
            required_features=["ai_personalization"],
            category=ModuleCategory.EXPERIMENTAL,
            priority=5,
            author=AUTHOR,
            license=LICENSE,
        ),
    ]
