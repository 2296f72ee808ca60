import os

# Must be set before crm_backend.config is imported anywhere.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime  # noqa: E402
from decimal import Decimal  # noqa: E402
from itertools import count  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from crm_backend.db import Base, create_db_engine, get_db, init_db  # noqa: E402
from crm_backend.models import (  # noqa: E402
    Activity,
    Contact,
    Deal,
    PipelineStage,
    StageKind,
    Task,
    User,
)

# Fixed "now" used by service-level tests: mid-month, mid-day.
NOW = datetime(2026, 3, 15, 12, 0, 0)

STANDARD_STAGES = [
    ("Lead", 1, "blue", StageKind.OPEN),
    ("Qualified", 2, "indigo", StageKind.OPEN),
    ("Proposal", 3, "purple", StageKind.OPEN),
    ("Negotiation", 4, "amber", StageKind.OPEN),
    ("Closed Won", 5, "green", StageKind.WON),
    ("Closed Lost", 6, "red", StageKind.LOST),
]


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.rollback()
    db.close()


class CRMFactory:
    """Small row builder; every helper flushes so ids are populated."""

    def __init__(self, session):
        self.session = session
        self._seq = count(1)

    def _add(self, row):
        self.session.add(row)
        self.session.flush()
        return row

    def user(self, name=None, **overrides):
        n = next(self._seq)
        name = name or f"User {n}"
        data = {
            "username": f"user{n}",
            "name": name,
            "email": f"user{n}@example.com",
            "avatar_url": f"https://img.example.com/{n}.png",
        }
        data.update(overrides)
        return self._add(User(**data))

    def stage(self, name, order, kind=StageKind.OPEN, color="blue"):
        return self._add(
            PipelineStage(name=name, order=order, color=color, kind=kind.value)
        )

    def standard_stages(self):
        return {
            name: self.stage(name, order, kind, color)
            for name, order, color, kind in STANDARD_STAGES
        }

    def contact(self, name=None, **overrides):
        n = next(self._seq)
        data = {
            "name": name or f"Contact {n}",
            "email": f"contact{n}@example.com",
            "created_at": NOW,
            "updated_at": NOW,
        }
        data.update(overrides)
        return self._add(Contact(**data))

    def deal(self, stage, owner, value, contact=None, updated_at=NOW, **overrides):
        n = next(self._seq)
        contact = contact or self.contact()
        data = {
            "name": f"Deal {n}",
            "value": Decimal(str(value)),
            "stage_id": stage.id,
            "contact_id": contact.id,
            "owner_id": owner.id,
            "created_at": updated_at,
            "updated_at": updated_at,
        }
        data.update(overrides)
        return self._add(Deal(**data))

    def task(self, assignee, **overrides):
        n = next(self._seq)
        data = {
            "title": f"Task {n}",
            "assigned_to": assignee.id,
            "priority": "medium",
            "created_at": NOW,
            "updated_at": NOW,
        }
        data.update(overrides)
        return self._add(Task(**data))

    def activity(self, author, **overrides):
        n = next(self._seq)
        data = {
            "type": "note",
            "title": f"Activity {n}",
            "user_id": author.id,
            "created_at": NOW,
        }
        data.update(overrides)
        return self._add(Activity(**data))


@pytest.fixture
def crm(session):
    return CRMFactory(session)


@pytest.fixture
def client(session_factory):
    from crm_backend.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
