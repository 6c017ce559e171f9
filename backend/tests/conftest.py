import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from behavior_api.config import get_settings
from behavior_api.database import get_sessionmaker, init_db
from behavior_api.deps import get_db
from behavior_api.models_db import School, SchoolClass, Student, BehaviorLog

ADMIN_TOKEN = "admin-secret-token"


def make_jwt(sub):
    def b64(obj):
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()
    return f"{b64({'alg': 'HS256', 'typ': 'JWT'})}.{b64({'sub': sub})}.sig"


def bearer(sub="user-1"):
    return {"Authorization": f"Bearer {make_jwt(sub)}"}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://", future=True, poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = get_sessionmaker(engine)()
    yield session
    session.close()


@pytest.fixture
def client(engine, monkeypatch):
    monkeypatch.setenv("ADMIN_BEARER_TOKEN", ADMIN_TOKEN)
    monkeypatch.setenv("REPORT_SIGNING_SECRET", "test-secret")
    monkeypatch.setenv("REPORT_URL_BASE", "https://files.example.test/reports")
    get_settings.cache_clear()

    from behavior_api.main import app

    SessionLocal = get_sessionmaker(engine)

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
def seeded(db):
    """One school, two classes, three students and a handful of logs spread over time."""
    now = datetime.now(timezone.utc)
    school = School(id="sch-1", name="Hill School", short_code="HILL")
    c1 = SchoolClass(id="cls-1", school_id="sch-1", name="Year 7 Blue", room="B12")
    c2 = SchoolClass(id="cls-2", school_id="sch-1", name="Year 8 Red", room=None)
    s1 = Student(id="stu-1", school_id="sch-1", class_id="cls-1", first_name="Ada", last_name="Lovelace", code="AL1")
    s2 = Student(id="stu-2", school_id="sch-1", class_id="cls-2", first_name="Alan", last_name="Turing", code=None)
    s3 = Student(id="stu-3", school_id="sch-1", class_id=None, first_name=None, last_name=None, code="X9")
    db.add_all([school, c1, c2, s1, s2, s3])
    db.flush()
    logs = [
        BehaviorLog(id="log-1", student_id="stu-1", class_id="cls-1", severity="high", category="safety",
                    summary="Pushed, then said \"sorry\"", created_at=now - timedelta(days=1)),
        BehaviorLog(id="log-2", student_id="stu-1", class_id="cls-1", severity="high", category="respect",
                    summary="Rude", created_at=now - timedelta(days=2)),
        BehaviorLog(id="log-3", student_id="stu-1", class_id="cls-1", severity="low", category="work",
                    summary="No homework", created_at=now - timedelta(days=3)),
        BehaviorLog(id="log-4", student_id="stu-2", class_id="cls-2", room="Gym", severity="medium",
                    category="disruption", summary="Shouting", created_at=now - timedelta(days=5)),
        BehaviorLog(id="log-5", student_id="stu-3", class_id=None, room=None, severity=None,
                    category="other", summary="Late", created_at=now - timedelta(days=10)),
        BehaviorLog(id="log-6", student_id="stu-2", class_id="cls-2", severity="high",
                    category="safety", summary="Old incident", created_at=now - timedelta(days=60)),
    ]
    db.add_all(logs)
    db.commit()
    return {"now": now}
