"""
业务功能模块

依赖核心模块，提供学生、费用、课程和报表功能
"""

from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.modules.base import ModuleCategory, ModuleConfig, ModuleRequirements
from modgate.modules.core import AUTHOR, LICENSE


def feature_modules(flags: FeatureFlagProvider) -> list[ModuleConfig]:
    return [
        ModuleConfig(
            name="student-management",
            version="1.0.0",
            description=(
                "Complete student lifecycle management including enrollment, "
                "profiles, and family relationships"
            ),
            dependencies=["core", "ui-framework"],
            routes=[
                "/api/students",
                "/api/students/[id]",
                "/api/families",
                "/api/families/[id]",
                "/api/students/search",
                "/api/students/bulk",
            ],
            components=[
                "StudentList",
                "StudentForm",
                "StudentProfile",
                "FamilyForm",
                "FamilyProfile",
                "StudentSearch",
                "BulkStudentActions",
            ],
            services=["StudentService", "FamilyService", "EnrollmentService"],
            enabled=True,
            category=ModuleCategory.FEATURE,
            priority=70,
            author=AUTHOR,
            license=LICENSE,
            requirements=ModuleRequirements(memory_mb=32, features=("database",)),
        ),
        ModuleConfig(
            name="fee-management",
            version="1.0.0",
            description="Comprehensive fee and payment management system",
            dependencies=["core", "student-management", "ui-framework"],
            routes=[
                "/api/fees",
                "/api/fees/[id]",
                "/api/payments",
                "/api/payments/[id]",
                "/api/fee-structures",
                "/api/discounts",
            ],
            components=[
                "FeeList",
                "FeeForm",
                "PaymentForm",
                "PaymentHistory",
                "FeeStructureManager",
                "DiscountManager",
                "InvoiceGenerator",
            ],
            services=["FeeService", "PaymentService", "InvoiceService", "DiscountService"],
            enabled=True,
            category=ModuleCategory.FEATURE,
            priority=60,
            author=AUTHOR,
            license=LICENSE,
        ),
        ModuleConfig(
            name="course-management",
            version="1.0.0",
            description="Course and curriculum management with scheduling",
            dependencies=["core", "student-management", "ui-framework"],
            routes=["/api/courses", "/api/courses/[id]", "/api/schedules", "/api/enrollments"],
            components=[
                "CourseList",
                "CourseForm",
                "ScheduleManager",
                "EnrollmentManager",
                "CourseCalendar",
            ],
            services=["CourseService", "ScheduleService", "EnrollmentService"],
            enabled=True,
            category=ModuleCategory.FEATURE,
            priority=50,
            author=AUTHOR,
            license=LICENSE,
        ),
        ModuleConfig(
            name="reporting",
            version="1.0.0",
            description="Advanced reporting and analytics system",
            dependencies=["core", "student-management", "fee-management"],
            routes=[
                "/api/reports",
                "/api/reports/generate",
                "/api/reports/templates",
                "/api/analytics",
            ],
            components=[
                "ReportGenerator",
                "ReportViewer",
                "ReportHistory",
                "AnalyticsDashboard",
                "ChartComponents",
            ],
            services=["ReportService", "AnalyticsService", "ExportService"],
            enabled=flags.is_enabled("advanced_reporting"),
            required_features=["advanced_reporting"],
            category=ModuleCategory.FEATURE,
            priority=40,
            author=AUTHOR,
            license=LICENSE,
        ),
    ]
