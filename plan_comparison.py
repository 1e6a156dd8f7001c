"""Side-by-side plan comparison.

`build_comparison` turns an ordered list of plans into the payload behind
the pricing comparison table: a feature availability matrix, a limit
matrix with display values, feature categories and a recommended plan.
It only reads the `PlanSnapshot` records it is given.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence
import logging

from feature_catalog import (
    category_display_name,
    feature_category,
    feature_description,
    feature_display_name,
    limit_display_name,
    limit_unit,
    one_decimal,
)
from plan_resource import serialize_plan

logger = logging.getLogger(__name__)

UNLIMITED = -1
MOST_POPULAR_REASON = "Most popular choice"
BEST_VALUE_REASON = "Best value for money"


@dataclass(frozen=True)
class PlanSnapshot:
    id: Optional[int]
    name: str
    slug: str
    price: Decimal
    billing_interval: str = "month"
    features: tuple = ()
    limits: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    is_popular: bool = False
    trial_days: int = 0
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_feature(self, feature: str) -> bool:
        return feature in self.features

    def limit(self, key: str) -> int:
        return self.limits.get(key, 0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlanSnapshot":
        slug = data.get("slug") or ""
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            slug=slug,
            price=_coerce_price(data.get("price"), slug),
            billing_interval=data.get("billing_interval") or "month",
            features=_coerce_features(data.get("features")),
            limits=_coerce_limits(data.get("limits"), slug),
            is_popular=bool(data.get("is_popular") or False),
            trial_days=_coerce_trial_days(data.get("trial_days"), slug),
            metadata=_coerce_metadata(data.get("metadata")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    @classmethod
    def from_record(cls, record) -> "PlanSnapshot":
        return cls.from_dict({
            "id": record.id,
            "name": record.name,
            "slug": record.slug,
            "price": record.price,
            "billing_interval": record.billing_interval,
            "features": record.features,
            "limits": record.limits,
            "is_popular": record.is_popular,
            "trial_days": record.trial_days,
            "metadata": record.plan_metadata,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
        })


def _coerce_price(value, slug: str) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        price = None
    if price is None or not price.is_finite():
        logger.warning("Plan %s has a non-numeric price %r, using 0", slug, value)
        return Decimal("0")
    return price


def _coerce_trial_days(value, slug: str) -> int:
    if value is None:
        return 0
    parsed = _coerce_limit(value)
    if parsed is None:
        logger.warning("Plan %s has malformed trial days %r, using 0", slug, value)
        return 0
    return parsed


def _coerce_features(value) -> tuple:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return ()
    return tuple(str(f) for f in value)


def _coerce_metadata(value) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        return MappingProxyType({})
    return MappingProxyType(dict(value))


def _coerce_limit(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_limits(value, slug: str) -> Mapping[str, int]:
    if not isinstance(value, Mapping):
        return MappingProxyType({})
    limits = {}
    for key, raw in value.items():
        parsed = _coerce_limit(raw)
        if parsed is None:
            logger.warning("Plan %s has a malformed %s limit %r, using 0", slug, key, raw)
            parsed = 0
        limits[str(key)] = parsed
    return MappingProxyType(limits)


def collect_features(plans: Iterable[PlanSnapshot]) -> list[str]:
    return sorted({feature for plan in plans for feature in plan.features})


def collect_limits(plans: Iterable[PlanSnapshot]) -> list[str]:
    return sorted({key for plan in plans for key in plan.limits})


def order_features(features: Sequence[str], highlight_features: Optional[Iterable[str]] = None) -> list[str]:
    highlight = set(highlight_features or ())
    if not highlight:
        return list(features)
    highlighted = [f for f in features if f in highlight]
    others = [f for f in features if f not in highlight]
    return highlighted + others


def format_limit_value(value: int, limit: str) -> str:
    if limit == "max_storage_mb" and value >= 1024:
        return f"{one_decimal(value, 1024)}GB"
    if limit == "max_api_calls_per_month" and value >= 1_000_000:
        return f"{one_decimal(value, 1_000_000)}M"
    return str(value)


def feature_rows(plans: Sequence[PlanSnapshot], features: Sequence[str]) -> list[dict]:
    rows = []
    for feature in features:
        cells = []
        for plan in plans:
            has_feature = plan.has_feature(feature)
            cells.append({
                "plan_id": plan.id,
                "plan_slug": plan.slug,
                "has_feature": has_feature,
                "is_highlighted": plan.is_popular and has_feature,
            })
        rows.append({
            "name": feature,
            "display_name": feature_display_name(feature),
            "description": feature_description(feature),
            "category": feature_category(feature),
            "plans": cells,
        })
    return rows


def limit_rows(plans: Sequence[PlanSnapshot], limits: Sequence[str]) -> list[dict]:
    rows = []
    for limit in limits:
        cells = []
        for plan in plans:
            value = plan.limit(limit)
            is_unlimited = value == UNLIMITED
            cells.append({
                "plan_id": plan.id,
                "plan_slug": plan.slug,
                "value": value,
                "is_unlimited": is_unlimited,
                "display_value": "Unlimited" if is_unlimited else format_limit_value(value, limit),
                "is_highlighted": plan.is_popular,
            })
        rows.append({
            "name": limit,
            "display_name": limit_display_name(limit),
            "unit": limit_unit(limit),
            "plans": cells,
        })
    return rows


def categorize_features(features: Sequence[str]) -> list[dict]:
    categories: dict[str, dict] = {}
    for feature in features:
        category = feature_category(feature)
        if category not in categories:
            categories[category] = {
                "name": category,
                "display_name": category_display_name(category),
                "features": [],
            }
        categories[category]["features"].append(feature)
    return list(categories.values())


def recommend_plan(plans: Sequence[PlanSnapshot]) -> Optional[dict]:
    popular = next((plan for plan in plans if plan.is_popular), None)
    if popular:
        return {"plan_id": popular.id, "plan_slug": popular.slug, "reason": MOST_POPULAR_REASON}

    if not plans:
        return None
    # Even counts land on the upper middle: two plans recommend the pricier one.
    by_price = sorted(plans, key=lambda plan: plan.price)
    middle = by_price[len(by_price) // 2]
    return {"plan_id": middle.id, "plan_slug": middle.slug, "reason": BEST_VALUE_REASON}


def build_comparison(
    plans: Sequence[PlanSnapshot],
    highlight_features: Optional[Iterable[str]] = None,
    serialize: Optional[Callable[[PlanSnapshot], dict]] = None,
) -> dict:
    plans = list(plans)
    serialize = serialize or serialize_plan

    ordered_features = order_features(collect_features(plans), highlight_features)
    all_limits = collect_limits(plans)

    return {
        "plans": [serialize(plan) for plan in plans],
        "comparison_matrix": {
            "features": feature_rows(plans, ordered_features),
            "limits": limit_rows(plans, all_limits),
        },
        "all_features": ordered_features,
        "all_limits": all_limits,
        "feature_categories": categorize_features(ordered_features),
        "recommended_plan": recommend_plan(plans),
    }
