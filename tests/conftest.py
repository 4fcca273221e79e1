import datetime as dt
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

# Ensure project root on sys.path so 'comms' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from comms.main import app  # noqa: E402
from comms.database import build_engine, get_session, init_db  # noqa: E402
from comms.core.metric_registry import MetricKind  # noqa: E402
from comms.storage import metrics_store as store  # noqa: E402


@pytest.fixture()
def engine():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client(engine):
    def _override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    yield TestClient(app)
    app.dependency_overrides.pop(get_session, None)


# ---------- Data factory helpers ----------


@pytest.fixture()
def social_factory(db_session):
    def _create(
        platform: str = "FACEBOOK",
        business_unit: str = "ASM",
        country: str = "GLOBAL",
        date: dt.date = dt.date(2024, 1, 1),
        **measures,
    ):
        return store.upsert_by_key(
            db_session,
            MetricKind.SOCIAL,
            {
                "platform": platform,
                "business_unit": business_unit,
                "country": country,
                "date": date,
                **measures,
            },
        )

    return _create


@pytest.fixture()
def website_factory(db_session):
    def _create(
        business_unit: str = "ASM",
        country: str = "GLOBAL",
        date: dt.date = dt.date(2024, 1, 1),
        **measures,
    ):
        return store.upsert_by_key(
            db_session,
            MetricKind.WEBSITE,
            {"business_unit": business_unit, "country": country, "date": date, **measures},
        )

    return _create


@pytest.fixture()
def newsletter_factory(db_session):
    def _create(
        business_unit: str = "ASM",
        country: str = "GLOBAL",
        date: dt.date = dt.date(2024, 1, 1),
        **measures,
    ):
        return store.upsert_by_key(
            db_session,
            MetricKind.NEWSLETTER,
            {"business_unit": business_unit, "country": country, "date": date, **measures},
        )

    return _create
