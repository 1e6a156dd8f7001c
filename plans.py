PLANS = {
    "free": {
        "name": "Free",
        "price": "0.00",
        "billing_interval": "month",
        "trial_days": 0,
        "is_popular": False,
        "limits": {
            "max_users": 3,
            "max_workspaces": 1,
            "max_boards": 5,
            "max_storage_mb": 100,
        },
        "features": [
            "basic_analytics",
            "email_support",
        ],
        "metadata": {
            "tier": "free",
            "description": "Perfect for small teams getting started",
        },
    },
    "starter": {
        "name": "Starter",
        "price": "19.99",
        "billing_interval": "month",
        "trial_days": 14,
        "is_popular": False,
        "limits": {
            "max_users": 10,
            "max_workspaces": 3,
            "max_boards": 20,
            "max_storage_mb": 1000,
            "max_api_calls_per_month": 100000,
        },
        "features": [
            "basic_analytics",
            "email_support",
            "api_access",
            "webhooks",
        ],
        "metadata": {
            "tier": "starter",
            "description": "Great for growing teams",
        },
    },
    "pro": {
        "name": "Pro",
        "price": "49.99",
        "billing_interval": "month",
        "trial_days": 14,
        "is_popular": True,
        "limits": {
            "max_users": 50,
            "max_workspaces": 10,
            "max_boards": 100,
            "max_storage_mb": 10240,
            "max_api_calls_per_month": 1000000,
        },
        "features": [
            "advanced_analytics",
            "priority_support",
            "api_access",
            "webhooks",
            "advanced_permissions",
            "team_collaboration",
            "data_export",
        ],
        "metadata": {
            "tier": "pro",
            "description": "Advanced features for professional teams",
        },
    },
    "pro-yearly": {
        "name": "Pro",
        "price": "479.90",
        "billing_interval": "year",
        "trial_days": 14,
        "is_popular": False,
        "limits": {
            "max_users": 50,
            "max_workspaces": 10,
            "max_boards": 100,
            "max_storage_mb": 10240,
            "max_api_calls_per_month": 1000000,
        },
        "features": [
            "advanced_analytics",
            "priority_support",
            "api_access",
            "webhooks",
            "advanced_permissions",
            "team_collaboration",
            "data_export",
        ],
        "metadata": {
            "tier": "pro",
            "description": "Advanced features for professional teams, billed yearly",
        },
    },
    "enterprise": {
        "name": "Enterprise",
        "price": "199.99",
        "billing_interval": "month",
        "trial_days": 30,
        "is_popular": False,
        "limits": {
            "max_users": -1,
            "max_workspaces": -1,
            "max_boards": -1,
            "max_storage_mb": -1,
            "max_api_calls_per_month": -1,
        },
        "features": [
            "advanced_analytics",
            "24_7_support",
            "api_access",
            "webhooks",
            "advanced_permissions",
            "team_collaboration",
            "data_export",
            "backup_and_restore",
            "sso",
            "audit_logs",
            "custom_domains",
            "custom_branding",
            "sla_guarantee",
        ],
        "metadata": {
            "tier": "enterprise",
            "description": "Custom solution for large organizations",
        },
    },
}
