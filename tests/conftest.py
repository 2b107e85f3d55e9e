import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("AUDIT_ENABLED", "true")

import mba_tracker.models  # noqa: E402,F401
from mba_tracker.core import audit  # noqa: E402
from mba_tracker.db.base import Base  # noqa: E402
from mba_tracker.db.session import SessionLocal, engine  # noqa: E402


class FailingAuditStore:
    def __init__(self):
        self.calls = 0

    def create(self, event):
        self.calls += 1
        raise RuntimeError("audit store unavailable")


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def failing_audit_store(monkeypatch):
    store = FailingAuditStore()
    monkeypatch.setattr(audit, "get_audit_store", lambda: store)
    return store
