from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import logging
import os

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field, Session, create_engine, select

from plans import PLANS

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./app.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=SQL_ECHO, connect_args=connect_args)

logger = logging.getLogger(__name__)


def utc_now():
    return datetime.now(timezone.utc)


class Plan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    billing_interval: str = Field(default="month", index=True)
    trial_days: int = Field(default=0)
    features: list = Field(default_factory=list, sa_column=Column(JSON))
    limits: dict = Field(default_factory=dict, sa_column=Column(JSON))
    stripe_price_id: Optional[str] = Field(default=None)
    # "metadata" is reserved on SQLModel classes, so only the column keeps the name.
    plan_metadata: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON))
    is_popular: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


def init_db(seed: bool = True):
    SQLModel.metadata.create_all(engine)
    if seed:
        seed_plans()


def seed_plans(catalog: Optional[dict] = None) -> int:
    catalog = PLANS if catalog is None else catalog
    changed = 0
    with Session(engine) as session:
        for slug, config in catalog.items():
            plan = session.exec(select(Plan).where(Plan.slug == slug)).first()
            if plan is None:
                plan = Plan(slug=slug, name=config["name"])
                logger.info("Creating plan %s", slug)
            else:
                logger.info("Updating plan %s", slug)
            plan.name = config["name"]
            plan.price = Decimal(str(config.get("price", "0")))
            plan.billing_interval = config.get("billing_interval", "month")
            plan.trial_days = config.get("trial_days", 0)
            plan.features = list(config.get("features", []))
            plan.limits = dict(config.get("limits", {}))
            plan.stripe_price_id = config.get("stripe_price_id")
            plan.plan_metadata = dict(config.get("metadata", {}))
            plan.is_popular = config.get("is_popular", False)
            plan.updated_at = utc_now()
            session.add(plan)
            changed += 1
        session.commit()
    return changed
