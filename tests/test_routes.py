from sqlmodel import Session, select

import app as app_module
from db import engine, Plan


def rename_plan(slug: str, name: str):
    with Session(engine) as session:
        plan = session.exec(select(Plan).where(Plan.slug == slug)).first()
        plan.name = name
        session.add(plan)
        session.commit()


def test_health_and_security_headers(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_unknown_route_returns_json_404(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Not found"}


def test_list_plans_sorted_by_price(client):
    resp = client.get("/api/plans")
    assert resp.status_code == 200
    slugs = [p["slug"] for p in resp.json()["data"]]
    assert slugs == ["free", "starter", "pro", "enterprise", "pro-yearly"]


def test_list_plans_filters(client):
    monthly = client.get("/api/plans", params={"interval": "year"}).json()["data"]
    assert [p["slug"] for p in monthly] == ["pro-yearly"]
    assert monthly[0]["yearly_discount_percentage"] == 20

    featured = client.get("/api/plans", params={"featured": "true"}).json()["data"]
    assert [p["slug"] for p in featured] == ["pro"]

    with_sso = client.get("/api/plans", params={"has_feature": "sso"}).json()["data"]
    assert [p["slug"] for p in with_sso] == ["enterprise"]


def test_list_plans_rejects_bad_params(client):
    resp = client.get("/api/plans", params={"interval": "week", "featured": "maybe", "has_feature": "x" * 51})
    assert resp.status_code == 422
    body = resp.json()
    assert body["message"] == "Invalid query parameters"
    assert set(body["errors"]) == {"interval", "featured", "has_feature"}


def test_list_plans_is_cached(client):
    first = client.get("/api/plans").json()
    rename_plan("starter", "Renamed")
    assert client.get("/api/plans").json() == first

    app_module.clear_cache()
    names = [p["name"] for p in client.get("/api/plans").json()["data"]]
    assert "Renamed" in names


def test_cache_expires(client, monkeypatch):
    client.get("/api/plans/starter")
    rename_plan("starter", "Later")
    now = app_module._now()
    monkeypatch.setattr(app_module, "_now", lambda: now + app_module.PLAN_CACHE_SECONDS + 1)
    assert client.get("/api/plans/starter").json()["data"]["name"] == "Later"


def test_expired_cache_entries_are_dropped(client, monkeypatch):
    for i in range(20):
        client.get("/api/plans", params={"has_feature": f"f{i}"})
    assert len(app_module.response_cache) == 20

    now = app_module._now()
    monkeypatch.setattr(app_module, "_now", lambda: now + app_module.PLAN_CACHE_SECONDS + 1)
    client.get("/api/plans", params={"has_feature": "sso"})
    assert len(app_module.response_cache) == 1


def test_cache_size_is_capped(client, monkeypatch):
    monkeypatch.setattr(app_module, "PLAN_CACHE_MAX_ENTRIES", 5)
    for i in range(12):
        client.get("/api/plans", params={"has_feature": f"f{i}"})
    assert len(app_module.response_cache) == 5
    newest = app_module.cache_key("plans", {"interval": None, "featured": None, "has_feature": "f11"})
    assert newest in app_module.response_cache


def test_seeded_plans_have_timestamps(client):
    with Session(engine) as session:
        plan = session.exec(select(Plan).where(Plan.slug == "pro")).first()
    assert plan.created_at is not None
    assert plan.updated_at is not None

    data = client.get("/api/plans/pro").json()["data"]
    assert data["created_at"].startswith(str(plan.created_at.year))
    assert data["updated_at"] is not None


def test_show_plan(client):
    resp = client.get("/api/plans/enterprise")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["formatted_price"] == "$199.99"
    assert data["limit_highlights"][0] == "Unlimited users"
    assert data["promotional_message"] == "Start with 30-day free trial"


def test_show_missing_plan(client):
    resp = client.get("/api/plans/nope")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Plan not found"}


def test_compare_plans(client):
    resp = client.get("/api/plans/compare", params={"slugs": "enterprise,starter,pro", "features": "sso"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [p["slug"] for p in data["plans"]] == ["starter", "pro", "enterprise"]
    assert data["all_features"][0] == "sso"
    assert data["recommended_plan"] == {
        "plan_id": data["plans"][1]["id"],
        "plan_slug": "pro",
        "reason": "Most popular choice",
    }
    storage = next(row for row in data["comparison_matrix"]["limits"] if row["name"] == "max_storage_mb")
    assert [cell["display_value"] for cell in storage["plans"]] == ["1000", "10.0GB", "Unlimited"]


def test_compare_without_popular_plan(client):
    data = client.get("/api/plans/compare", params={"slugs": "free,starter"}).json()["data"]
    assert data["recommended_plan"]["plan_slug"] == "starter"
    assert data["recommended_plan"]["reason"] == "Best value for money"


def test_compare_validation(client):
    resp = client.get("/api/plans/compare")
    assert resp.status_code == 422
    assert "slugs" in resp.json()["errors"]

    resp = client.get("/api/plans/compare", params={"slugs": "pro"})
    assert resp.status_code == 422
    assert resp.json()["message"] == "At least 2 plans are required for comparison"

    resp = client.get("/api/plans/compare", params={"slugs": "a,b,c,d,e,f"})
    assert resp.status_code == 422
    assert resp.json()["message"] == "Cannot compare more than 5 plans at once"

    resp = client.get("/api/plans/compare", params={"slugs": "pro,pro"})
    assert resp.status_code == 422
    assert resp.json()["message"] == "At least 2 plans are required for comparison"


def test_compare_missing_plan(client):
    resp = client.get("/api/plans/compare", params={"slugs": "pro,ghost"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "One or more plans not found"}


def test_list_features(client):
    data = client.get("/api/plans/features").json()["data"]
    by_name = {f["name"]: f for f in data["features"]}
    assert by_name["api_access"]["available_in_plans"] == ["starter", "pro", "pro-yearly", "enterprise"]
    assert by_name["api_access"]["popular_in_plans"] == ["pro"]
    assert by_name["sso"]["display_name"] == "Sso"
    assert by_name["sla_guarantee"]["category"] == "general"
    assert data["categories"][:2] == ["analytics", "support"]


def test_list_features_by_category(client):
    data = client.get("/api/plans/features", params={"category": "security"}).json()["data"]
    assert sorted(f["name"] for f in data["features"]) == ["audit_logs", "sso"]
    assert "general" in data["categories"]

    resp = client.get("/api/plans/features", params={"category": "x" * 60})
    assert resp.status_code == 422
