from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType

DEFAULT_FEATURE_DESCRIPTION = "Advanced feature for enhanced functionality"
DEFAULT_FEATURE_CATEGORY = "general"
# Word separators used by PHP ucwords.
WORD_BREAKS = " \t\r\n\f\v"

FEATURE_DESCRIPTIONS = MappingProxyType({
    "basic_analytics": "View basic usage statistics and reports",
    "advanced_analytics": "Detailed analytics with custom reports and insights",
    "email_support": "Get help via email during business hours",
    "priority_support": "Priority email support with faster response times",
    "24_7_support": "Round-the-clock support via phone and email",
    "sso": "Single Sign-On integration with SAML 2.0",
    "api_access": "RESTful API for custom integrations",
    "webhooks": "Webhook notifications for events",
    "custom_domains": "Use your own domain for workspaces",
    "team_collaboration": "Advanced collaboration tools for teams",
    "audit_logs": "Detailed audit logs for compliance",
    "custom_branding": "Customize branding and appearance",
    "advanced_permissions": "Granular permission controls",
    "data_export": "Export your data in various formats",
    "backup_and_restore": "Automated backups and restore options",
})

FEATURE_CATEGORIES = MappingProxyType({
    "basic_analytics": "analytics",
    "advanced_analytics": "analytics",
    "email_support": "support",
    "priority_support": "support",
    "24_7_support": "support",
    "sso": "security",
    "audit_logs": "security",
    "api_access": "integration",
    "webhooks": "integration",
    "custom_domains": "customization",
    "custom_branding": "customization",
    "team_collaboration": "collaboration",
    "advanced_permissions": "collaboration",
    "data_export": "data_management",
    "backup_and_restore": "data_management",
})

CATEGORY_DISPLAY_NAMES = MappingProxyType({
    "analytics": "Analytics & Reporting",
    "support": "Support & Service",
    "security": "Security & Compliance",
    "integration": "Integrations & API",
    "customization": "Customization & Branding",
    "collaboration": "Collaboration & Teamwork",
    "data_management": "Data Management",
    "general": "General Features",
})

LIMIT_DISPLAY_NAMES = MappingProxyType({
    "max_users": "Users",
    "max_workspaces": "Workspaces",
    "max_boards": "Boards",
    "max_storage_mb": "Storage",
    "max_api_calls_per_month": "API Calls per Month",
    "max_projects": "Projects",
    "max_team_members": "Team Members",
})

LIMIT_UNITS = MappingProxyType({
    "max_users": "users",
    "max_workspaces": "workspaces",
    "max_boards": "boards",
    "max_storage_mb": "MB",
    "max_api_calls_per_month": "calls",
    "max_projects": "projects",
    "max_team_members": "members",
})


def title_case(text: str) -> str:
    # Only the first letter of each word changes; "api V2" stays "Api V2".
    chars = []
    at_word_start = True
    for char in text:
        chars.append(char.upper() if at_word_start else char)
        at_word_start = char in WORD_BREAKS
    return "".join(chars)


def one_decimal(value, divisor) -> Decimal:
    return (Decimal(value) / Decimal(divisor)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def humanize_key(key: str) -> str:
    return title_case(key.replace("_", " "))


def feature_display_name(feature: str) -> str:
    return humanize_key(feature)


def feature_description(feature: str) -> str:
    return FEATURE_DESCRIPTIONS.get(feature, DEFAULT_FEATURE_DESCRIPTION)


def feature_category(feature: str) -> str:
    return FEATURE_CATEGORIES.get(feature, DEFAULT_FEATURE_CATEGORY)


def category_display_name(category: str) -> str:
    return CATEGORY_DISPLAY_NAMES.get(category, title_case(category))


def limit_display_name(limit: str) -> str:
    return LIMIT_DISPLAY_NAMES.get(limit, humanize_key(limit))


def limit_unit(limit: str) -> str:
    return LIMIT_UNITS.get(limit, "")
