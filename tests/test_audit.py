import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

from mba_tracker.core import audit
from mba_tracker.core.audit import AuditAction, AuditEvent, EntityType, log_audit
from mba_tracker.core.config import settings
from mba_tracker.models.audit_log import AuditLog
from mba_tracker.models.enums import MBAStatus


class RecordingStore:
    def __init__(self):
        self.events = []

    def create(self, event):
        self.events.append(event)
        return f"audit-{len(self.events)}", datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_failing_store_never_raises_and_logs(failing_audit_store, caplog):
    with caplog.at_level(logging.ERROR, logger="mba_tracker.audit"):
        result = log_audit(entity_type="Client", entity_id="c1", action="CREATE")

    assert result.ok is False
    assert isinstance(result.error, RuntimeError)
    assert failing_audit_store.calls == 1
    assert "Failed to create audit log" in caplog.text


def test_failure_is_reported_through_injected_logger(failing_audit_store):
    log = Mock()
    result = log_audit(
        entity_type=EntityType.MBA,
        entity_id="m1",
        action=AuditAction.UPDATE,
        changes={"status": {"old": "DRAFT", "new": "ACTIVE"}},
        log=log,
    )
    assert result.ok is False
    log.exception.assert_called_once()


def test_invalid_entity_type_is_swallowed_too():
    log = Mock()
    store = RecordingStore()
    result = log_audit(entity_type="Campaign", entity_id="x", action="CREATE", store=store, log=log)
    assert result.ok is False
    assert store.events == []
    log.exception.assert_called_once()


def test_exactly_one_create_per_call():
    store = RecordingStore()
    changes = {"amount": {"old": 100.0, "new": 150.0}}
    result = log_audit(
        entity_type="SpendEntry",
        entity_id="s1",
        action="UPDATE",
        changes=changes,
        user_id="u1",
        store=store,
    )
    assert result.ok is True
    assert result.record_id == "audit-1"
    assert store.events == [
        AuditEvent(
            entity_type=EntityType.SPEND_ENTRY,
            entity_id="s1",
            action=AuditAction.UPDATE,
            changes=changes,
            user_id="u1",
            user_email=None,
        )
    ]


def test_empty_changes_are_stored_as_absent():
    store = RecordingStore()
    log_audit(entity_type="MBA", entity_id="m1", action="UPDATE", changes={}, store=store)
    assert store.events[0].changes is None


def test_default_store_persists_one_row(db):
    result = log_audit(entity_type="Client", entity_id="c1", action="CREATE")

    assert result.ok is True
    rows = db.query(AuditLog).all()
    assert len(rows) == 1
    row = rows[0]
    assert row.id == result.record_id
    assert row.entity_type == "Client"
    assert row.entity_id == "c1"
    assert row.action == "CREATE"
    assert row.changes is None
    assert row.user_id is None
    assert row.user_email is None
    assert row.created_at is not None


def test_default_store_keeps_changes_and_actor(db):
    changes = {
        "client_paid": {"old": False, "new": True},
        "client_paid_amount": {"old": None, "new": 5000.0},
    }
    log_audit(
        entity_type="MBA",
        entity_id="m1",
        action="UPDATE",
        changes=changes,
        user_email="ops@agency.example",
    )
    row = db.query(AuditLog).one()
    assert row.changes == changes
    assert row.user_id is None
    assert row.user_email == "ops@agency.example"


def test_disabled_audit_is_a_noop(db, monkeypatch):
    monkeypatch.setattr(settings, "AUDIT_ENABLED", False)
    result = log_audit(entity_type="Client", entity_id="c1", action="DELETE")
    assert result.skipped is True
    assert db.query(AuditLog).count() == 0


def test_default_store_is_reused():
    assert audit.get_audit_store() is audit.get_audit_store()


def test_hand_built_changes_are_stored_as_json_primitives(db):
    result = log_audit(
        entity_type="MBA",
        entity_id="m1",
        action="UPDATE",
        changes={
            "budget": {"old": Decimal("1000.50"), "new": Decimal("1200")},
            "client_paid_date": {"old": None, "new": date(2024, 3, 1)},
            "status": {"old": MBAStatus.DRAFT, "new": MBAStatus.ACTIVE},
        },
    )

    assert result.ok is True
    assert db.query(AuditLog).one().changes == {
        "budget": {"old": 1000.5, "new": 1200.0},
        "client_paid_date": {"old": None, "new": "2024-03-01"},
        "status": {"old": "DRAFT", "new": "ACTIVE"},
    }
