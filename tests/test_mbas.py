from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from mba_tracker.core.errors import InvalidInputError, NotFoundError
from mba_tracker.models.enums import MBAStatus
from mba_tracker.models.mba import MBA
from mba_tracker.schemas.client import ClientCreate
from mba_tracker.schemas.mba import ClientPaymentUpdate, MBACreate, MBAOut
from mba_tracker.services.audit_trail import list_audit_logs
from mba_tracker.services.clients import create_client, delete_client
from mba_tracker.services.mbas import (
    create_mba,
    generate_mba_number,
    get_mba,
    list_mbas,
    update_client_payment,
    update_mba_status,
)


def _mba_payload(client_id: str, **overrides) -> MBACreate:
    data = {
        "client_id": client_id,
        "name": "Q1 Search",
        "budget": Decimal("10000"),
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 3, 31),
    }
    data.update(overrides)
    return MBACreate(**data)


def _updates(db, mba_id: str):
    return [log for log in list_audit_logs(db, entity_type="MBA", entity_id=mba_id) if log.action == "UPDATE"]


def test_create_mba_assigns_number_and_defaults(db):
    client = create_client(db, ClientCreate(name="Acme"))
    mba = create_mba(db, _mba_payload(client.id))

    year = date.today().year
    assert mba.mba_number == f"MBA-{year}-001"
    assert mba.status == "DRAFT"
    assert mba.currency == "USD"
    assert mba.client_paid is False

    out = MBAOut.model_validate(mba)
    assert out.budget == Decimal("10000")
    assert generate_mba_number(db) == f"MBA-{year}-002"
    assert generate_mba_number(db, year=1999) == "MBA-1999-001"

    logs = list_audit_logs(db, entity_type="MBA", entity_id=mba.id)
    assert [log.action for log in logs] == ["CREATE"]


def test_create_mba_for_unknown_client(db):
    with pytest.raises(NotFoundError):
        create_mba(db, _mba_payload("missing-client"))


def test_mba_end_date_must_not_precede_start():
    with pytest.raises(ValidationError):
        _mba_payload("c1", start_date=date(2024, 3, 1), end_date=date(2024, 2, 1))


def test_status_change_is_audited_once(db):
    client = create_client(db, ClientCreate(name="Acme"))
    mba = create_mba(db, _mba_payload(client.id))

    update_mba_status(db, mba.id, MBAStatus.ACTIVE)
    update_mba_status(db, mba.id, "ACTIVE")

    updates = _updates(db, mba.id)
    assert len(updates) == 1
    assert updates[0].changes == {"status": {"old": "DRAFT", "new": "ACTIVE"}}


def test_unknown_status_is_rejected(db):
    client = create_client(db, ClientCreate(name="Acme"))
    mba = create_mba(db, _mba_payload(client.id))
    with pytest.raises(InvalidInputError):
        update_mba_status(db, mba.id, "ARCHIVED")


def test_client_payment_changes_are_diffed(db):
    client = create_client(db, ClientCreate(name="Acme"))
    mba = create_mba(db, _mba_payload(client.id))

    payment = ClientPaymentUpdate(
        client_paid=True,
        client_paid_date=date(2024, 3, 1),
        client_paid_amount=Decimal("5000"),
    )
    update_client_payment(db, mba.id, payment)
    update_client_payment(db, mba.id, payment)

    updates = _updates(db, mba.id)
    assert len(updates) == 1
    assert updates[0].changes == {
        "client_paid": {"old": False, "new": True},
        "client_paid_date": {"old": None, "new": "2024-03-01"},
        "client_paid_amount": {"old": None, "new": 5000.0},
    }


def test_clearing_client_payment(db):
    client = create_client(db, ClientCreate(name="Acme"))
    mba = create_mba(db, _mba_payload(client.id))
    update_client_payment(db, mba.id, ClientPaymentUpdate(client_paid=True, client_paid_amount=Decimal("250")))

    mba = update_client_payment(db, mba.id, ClientPaymentUpdate(client_paid=False))

    assert mba.client_paid is False
    assert mba.client_paid_amount is None
    latest = _updates(db, mba.id)[0]
    assert latest.changes == {
        "client_paid": {"old": True, "new": False},
        "client_paid_amount": {"old": 250.0, "new": None},
    }


def test_list_mbas_filters_and_orders_by_client(db):
    zeta = create_client(db, ClientCreate(name="Zeta"))
    acme = create_client(db, ClientCreate(name="Acme"))
    z1 = create_mba(db, _mba_payload(zeta.id, status=MBAStatus.ACTIVE))
    a1 = create_mba(db, _mba_payload(acme.id, status=MBAStatus.ACTIVE))
    a2 = create_mba(db, _mba_payload(acme.id, name="Q2 Social"))

    assert [m.client_id for m in list_mbas(db)] == [acme.id, acme.id, zeta.id]
    assert {m.id for m in list_mbas(db, client_id=acme.id)} == {a1.id, a2.id}
    assert {m.id for m in list_mbas(db, status="ACTIVE")} == {a1.id, z1.id}


def test_get_mba_unknown(db):
    with pytest.raises(NotFoundError):
        get_mba(db, "missing")


def test_numbers_continue_after_a_client_is_deleted(db):
    first = create_client(db, ClientCreate(name="Acme"))
    second = create_client(db, ClientCreate(name="Globex"))
    create_mba(db, _mba_payload(first.id))
    kept = create_mba(db, _mba_payload(second.id))

    delete_client(db, first.id)
    created = create_mba(db, _mba_payload(second.id, name="Q2 Search"))

    year = date.today().year
    assert kept.mba_number == f"MBA-{year}-002"
    assert created.mba_number == f"MBA-{year}-003"


def test_generate_number_follows_highest_sequence(db):
    client = create_client(db, ClientCreate(name="Acme"))
    mba = create_mba(db, _mba_payload(client.id))
    mba.mba_number = "MBA-2030-041"
    db.commit()

    assert generate_mba_number(db, year=2030) == "MBA-2030-042"
    assert db.query(MBA).count() == 1
