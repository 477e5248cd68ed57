"""Shared fixtures: isolated in-memory database, raw event factory, API client."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from depositlens.connectors.bank_marketing.loader import load_raw_events
from depositlens.core.field_registry import RAW_HEADERS
from depositlens.database import get_session
from depositlens.main import app

BASE_EVENT = {
    "age": 41,
    "job": "management",
    "marital": "married",
    "education": "tertiary",
    "has_default": "no",
    "balance": 1270,
    "housing": "yes",
    "loan": "no",
    "contact_channel": "cellular",
    "day": 5,
    "month": "may",
    "call_duration": 1389,
    "campaign_count": 1,
    "days_since_prev": -1,
    "previous_count": 0,
    "prev_outcome": "unknown",
    "deposit_result": "yes",
}


def make_event(**overrides):
    """A complete raw record with any attribute overridden."""
    event = dict(BASE_EVENT)
    event.update(overrides)
    return event


def make_csv(rows, delimiter=","):
    """Render raw records as CSV text with the canonical headers."""
    names = list(BASE_EVENT)
    lines = [delimiter.join(RAW_HEADERS)]
    for row in rows:
        lines.append(
            delimiter.join("" if row[n] is None else str(row[n]) for n in names)
        )
    return "\n".join(lines) + "\n"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def seed(session):
    """Load raw records into the staging table and commit."""

    def _seed(records):
        count = load_raw_events(session, iter(records))
        session.commit()
        return count

    return _seed


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()
