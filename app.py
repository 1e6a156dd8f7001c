from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, select
from typing import Optional
import hashlib
import json
import time
import os
import logging

from db import engine, init_db, Plan
from feature_catalog import feature_category, feature_description, feature_display_name
from plan_comparison import PlanSnapshot, build_comparison
from plan_resource import serialize_plan

PLAN_CACHE_SECONDS = int(os.getenv("PLAN_CACHE_SECONDS", "3600"))
PLAN_CACHE_MAX_ENTRIES = int(os.getenv("PLAN_CACHE_MAX_ENTRIES", "256"))
SEED_PLANS = os.getenv("SEED_PLANS", "true").lower() == "true"
MIN_COMPARE_PLANS = 2
MAX_COMPARE_PLANS = 5
MAX_PARAM_LENGTH = 50
BILLING_INTERVALS = ("month", "year")

app = FastAPI(title="Plan Catalog")

logging.basicConfig(level=logging.INFO)
response_cache = {}


def _now():
    return time.time()


def cache_key(prefix: str, params: dict):
    digest = hashlib.md5(json.dumps(params, sort_keys=True).encode("utf-8")).hexdigest()
    return f"{prefix}:{digest}"


def cache_remember(key: str, factory, ttl: int = PLAN_CACHE_SECONDS):
    now = _now()
    entry = response_cache.get(key)
    if entry and now - entry[0] < ttl:
        return entry[1]
    logging.info("Plan cache miss for %s", key)
    value = factory()
    if value is not None:
        prune_cache(now, ttl)
        response_cache[key] = (now, value)
    return value


def prune_cache(now: float, ttl: int = PLAN_CACHE_SECONDS):
    for key in [k for k, (stored, _) in response_cache.items() if now - stored >= ttl]:
        del response_cache[key]
    # Dicts keep insertion order, so the oldest writes go first.
    while response_cache and len(response_cache) >= PLAN_CACHE_MAX_ENTRIES:
        del response_cache[next(iter(response_cache))]


def clear_cache():
    response_cache.clear()


def parse_bool(value: str):
    lowered = value.strip().lower()
    if lowered in ("1", "true"):
        return True
    if lowered in ("0", "false"):
        return False
    raise ValueError(value)


def split_csv(value: Optional[str]):
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def validation_error(errors: dict):
    return JSONResponse(
        {"message": "Invalid query parameters", "errors": errors},
        status_code=422,
    )


def check_length(errors: dict, field: str, value: Optional[str]):
    if value is not None and len(value) > MAX_PARAM_LENGTH:
        errors[field] = [f"The {field} may not be greater than {MAX_PARAM_LENGTH} characters."]


def load_monthly_prices(session: Session):
    monthly = session.exec(select(Plan).where(Plan.billing_interval == "month")).all()
    return {plan.name: plan.price for plan in monthly}


def serialize_plans(session: Session, records):
    monthly_prices = load_monthly_prices(session)
    return [
        serialize_plan(PlanSnapshot.from_record(record), monthly_prices)
        for record in records
    ]


@app.on_event("startup")
def on_startup():
    init_db(seed=SEED_PLANS)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    resp = await call_next(request)
    resp.headers["X-Frame-Options"] = "DENY"
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
    return resp


@app.exception_handler(404)
def not_found(request: Request, exc):
    return JSONResponse({"message": "Not found"}, status_code=404)


@app.exception_handler(500)
def server_error(request: Request, exc):
    logging.exception("Unhandled error on %s", request.url.path)
    return JSONResponse({"message": "Server error"}, status_code=500)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/plans")
def list_plans(
    interval: Optional[str] = None,
    featured: Optional[str] = None,
    has_feature: Optional[str] = None,
):
    errors = {}
    if interval is not None and interval not in BILLING_INTERVALS:
        errors["interval"] = ["The selected interval is invalid."]
    featured_flag = None
    if featured is not None:
        try:
            featured_flag = parse_bool(featured)
        except ValueError:
            errors["featured"] = ["The featured field must be true or false."]
    check_length(errors, "has_feature", has_feature)
    if errors:
        return validation_error(errors)

    params = {"interval": interval, "featured": featured_flag, "has_feature": has_feature}

    def load():
        with Session(engine) as session:
            query = select(Plan)
            if interval is not None:
                query = query.where(Plan.billing_interval == interval)
            if featured_flag is not None:
                query = query.where(Plan.is_popular == featured_flag)
            records = session.exec(query.order_by(Plan.price, Plan.id)).all()
            if has_feature is not None:
                records = [r for r in records if has_feature in (r.features or [])]
            return serialize_plans(session, records)

    return {"data": cache_remember(cache_key("plans", params), load)}


@app.get("/api/plans/features")
def list_features(category: Optional[str] = None):
    errors = {}
    check_length(errors, "category", category)
    if errors:
        return validation_error(errors)

    def load():
        with Session(engine) as session:
            records = session.exec(select(Plan).order_by(Plan.id)).all()
        features = {}
        categories = []
        for record in records:
            plan = PlanSnapshot.from_record(record)
            for feature in plan.features:
                if feature not in features:
                    features[feature] = {
                        "name": feature,
                        "display_name": feature_display_name(feature),
                        "description": feature_description(feature),
                        "category": feature_category(feature),
                        "available_in_plans": [],
                        "popular_in_plans": [],
                    }
                features[feature]["available_in_plans"].append(plan.slug)
                if plan.is_popular:
                    features[feature]["popular_in_plans"].append(plan.slug)
                if feature_category(feature) not in categories:
                    categories.append(feature_category(feature))

        entries = list(features.values())
        if category is not None:
            entries = [entry for entry in entries if entry["category"] == category]
        return {"features": entries, "categories": categories}

    key = f"plans:features:{category if category is not None else 'all'}"
    return {"data": cache_remember(key, load)}


@app.get("/api/plans/compare")
def compare_plans(slugs: Optional[str] = None, features: Optional[str] = None):
    if slugs is None or not slugs.strip():
        return validation_error({"slugs": ["The slugs field is required."]})

    requested = list(dict.fromkeys(split_csv(slugs)))
    highlight = split_csv(features) or None

    if len(requested) < MIN_COMPARE_PLANS:
        return JSONResponse(
            {"message": f"At least {MIN_COMPARE_PLANS} plans are required for comparison"},
            status_code=422,
        )
    if len(requested) > MAX_COMPARE_PLANS:
        return JSONResponse(
            {"message": f"Cannot compare more than {MAX_COMPARE_PLANS} plans at once"},
            status_code=422,
        )

    def load():
        with Session(engine) as session:
            records = session.exec(
                select(Plan).where(Plan.slug.in_(requested)).order_by(Plan.price, Plan.id)
            ).all()
            if len(records) != len(requested):
                return None
            monthly_prices = load_monthly_prices(session)
            snapshots = [PlanSnapshot.from_record(record) for record in records]
        return build_comparison(
            snapshots,
            highlight,
            serialize=lambda plan: serialize_plan(plan, monthly_prices),
        )

    key = cache_key("plans:compare", {"slugs": requested, "features": highlight})
    comparison = cache_remember(key, load)
    if comparison is None:
        logging.info("Comparison requested for unknown plans: %s", ",".join(requested))
        return JSONResponse({"message": "One or more plans not found"}, status_code=404)
    return {"data": comparison}


@app.get("/api/plans/{slug}")
def show_plan(slug: str):
    def load():
        with Session(engine) as session:
            record = session.exec(select(Plan).where(Plan.slug == slug)).first()
            if record is None:
                return None
            return serialize_plans(session, [record])[0]

    plan = cache_remember(f"plan:{slug}", load)
    if plan is None:
        return JSONResponse({"message": "Plan not found"}, status_code=404)
    return {"data": plan}
