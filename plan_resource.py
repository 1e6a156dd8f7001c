from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from feature_catalog import one_decimal

PLAN_DESCRIPTIONS = (
    ("starter", "Perfect for individuals and small teams getting started"),
    ("basic", "Great for small teams looking to grow"),
    ("professional", "Ideal for growing businesses that need more power"),
    ("business", "Designed for established businesses with advanced needs"),
    ("enterprise", "Comprehensive solution for large organizations"),
    ("team", "Collaboration-focused plan for productive teams"),
    ("scale", "Built for businesses that are scaling rapidly"),
)
DEFAULT_PLAN_DESCRIPTION = "Flexible plan designed to meet your business needs"

INTERVAL_DISPLAY = {"month": "Monthly", "year": "Yearly"}


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def billing_interval_display(interval: str) -> str:
    return INTERVAL_DISPLAY.get(interval, interval[:1].upper() + interval[1:])


def default_description(name: str) -> str:
    lowered = (name or "").lower()
    for keyword, description in PLAN_DESCRIPTIONS:
        if keyword in lowered:
            return description
    return DEFAULT_PLAN_DESCRIPTION


def promotional_message(plan) -> str:
    if plan.trial_days > 0:
        return f"Start with {plan.trial_days}-day free trial"
    if plan.billing_interval == "year":
        return "Save 20% with yearly billing"
    if plan.is_popular:
        return "Most popular choice"
    return "Flexible pricing to fit your budget"


def _count_highlight(limits: Mapping[str, int], key: str, noun: str):
    if key not in limits:
        return None
    if limits[key] == -1:
        return f"Unlimited {noun}"
    return f"Up to {limits[key]} {noun}"


def limit_highlights(limits: Mapping[str, int]) -> list[str]:
    highlights = []
    for key, noun in (("max_users", "users"), ("max_workspaces", "workspaces")):
        line = _count_highlight(limits, key, noun)
        if line:
            highlights.append(line)

    if "max_storage_mb" in limits:
        storage = limits["max_storage_mb"]
        if storage == -1:
            highlights.append("Unlimited storage")
        elif storage >= 1024:
            highlights.append(f"{one_decimal(storage, 1024)}GB storage")
        else:
            highlights.append(f"{storage}MB storage")

    line = _count_highlight(limits, "max_boards", "boards")
    if line:
        highlights.append(line)
    return highlights


def yearly_discount(plan, monthly_price: Optional[Decimal]) -> dict:
    if plan.billing_interval != "year" or not monthly_price or monthly_price <= 0:
        return {}
    equivalent = (plan.price / 12).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    discount = (monthly_price - plan.price / 12) / monthly_price * 100
    return {
        "yearly_discount_percentage": int(discount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        "monthly_equivalent": str(equivalent),
        "monthly_equivalent_formatted": format_money(equivalent),
    }


def _timestamp(value):
    return value.isoformat() if value is not None else None


def serialize_plan(plan, monthly_prices: Optional[Mapping[str, Decimal]] = None) -> dict:
    metadata = dict(plan.metadata)
    data = {
        "id": plan.id,
        "name": plan.name,
        "slug": plan.slug,
        "price": f"{plan.price:.2f}",
        "formatted_price": format_money(plan.price),
        "billing_interval": plan.billing_interval,
        "billing_interval_display": billing_interval_display(plan.billing_interval),
        "trial_days": plan.trial_days,
        "features": list(plan.features),
        "limits": dict(plan.limits),
        "is_popular": plan.is_popular,
        "created_at": _timestamp(plan.created_at),
        "updated_at": _timestamp(plan.updated_at),
        "metadata": metadata,
        "description": metadata.get("description") or default_description(plan.name),
        "promotional_message": metadata.get("promotional_message") or promotional_message(plan),
        "currency": metadata.get("currency", "USD"),
        "currency_symbol": metadata.get("currency_symbol", "$"),
    }

    monthly_price = (monthly_prices or {}).get(plan.name)
    data.update(yearly_discount(plan, monthly_price))

    data["feature_highlights"] = list(plan.features[:3])
    data["limit_highlights"] = limit_highlights(plan.limits)
    return data
