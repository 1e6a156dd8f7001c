import os
import tempfile

os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp()}/plans-test.db")
os.environ.setdefault("SEED_PLANS", "true")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from app import app, clear_cache
from db import engine, init_db


@pytest.fixture(autouse=True)
def fresh_catalog():
    SQLModel.metadata.drop_all(engine)
    init_db()
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
