"""
集成模块

邮件/短信通知与第三方接口
"""

from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.modules.base import ModuleCategory, ModuleConfig
from modgate.modules.core import AUTHOR, LICENSE


def integration_modules(flags: FeatureFlagProvider) -> list[ModuleConfig]:
    return [
        ModuleConfig(
            name="communication",
            version="1.0.0",
            description="Email, SMS, and notification management",
            dependencies=["core", "student-management"],
            routes=["/api/notifications", "/api/email", "/api/sms", "/api/templates"],
            components=[
                "NotificationCenter",
                "EmailComposer",
                "SMSComposer",
                "TemplateManager",
                "CommunicationHistory",
            ],
            services=["EmailService", "SMSService", "NotificationService", "TemplateService"],
            enabled=(
                flags.is_enabled("email_notifications") or flags.is_enabled("sms_notifications")
            ),
            optional_features=[
                "email_notifications",
                "sms_notifications",
                "push_notifications",
            ],
            category=ModuleCategory.INTEGRATION,
            priority=30,
            author=AUTHOR,
            license=LICENSE,
        ),
        ModuleConfig(
            name="third-party-integrations",
            version="1.0.0",
            description="External API integrations and webhook support",
            dependencies=["core"],
            routes=["/api/webhooks", "/api/integrations", "/api/sync"],
            components=["IntegrationManager", "WebhookManager", "SyncStatus", "APIKeyManager"],
            services=["WebhookService", "IntegrationService", "SyncService"],
            enabled=(
                flags.is_enabled("third_party_integrations")
                or flags.is_enabled("webhook_support")
            ),
            optional_features=["third_party_integrations", "webhook_support"],
            category=ModuleCategory.INTEGRATION,
            priority=20,
            author=AUTHOR,
            license=LICENSE,
        ),
    ]
