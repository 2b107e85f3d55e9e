from datetime import date, datetime, timezone
from decimal import Decimal

from mba_tracker.core.changes import MISSING, compute_changes, normalize_value
from mba_tracker.models.enums import MBAStatus
from mba_tracker.schemas.snapshots import MBAPaymentSnapshot, SpendEntrySnapshot


def test_changed_field_is_reported_with_old_and_new():
    changes = compute_changes(
        {"amount": 100, "notes": "x"},
        {"amount": 150, "notes": "x"},
        ["amount", "notes"],
    )
    assert changes == {"amount": {"old": 100, "new": 150}}


def test_no_previous_snapshot_means_no_diff():
    assert compute_changes(None, {"status": "ACTIVE"}, ["status"]) is None
    assert compute_changes(None, {}, []) is None


def test_identical_snapshots_return_none_not_empty_dict():
    assert compute_changes({"status": "DRAFT"}, {"status": "DRAFT"}, ["status"]) is None


def test_missing_and_null_fields_register_as_changes():
    previous = {"clientPaid": False, "clientPaidAmount": None}
    current = {
        "clientPaid": True,
        "clientPaidDate": "2024-03-01T00:00:00.000Z",
        "clientPaidAmount": 5000,
    }
    changes = compute_changes(previous, current, ["clientPaid", "clientPaidDate", "clientPaidAmount"])
    assert changes == {
        "clientPaid": {"old": False, "new": True},
        "clientPaidDate": {"old": None, "new": "2024-03-01T00:00:00.000Z"},
        "clientPaidAmount": {"old": None, "new": 5000},
    }


def test_missing_is_not_the_same_as_none():
    changes = compute_changes({}, {"notes": None}, ["notes"])
    assert changes == {"notes": {"old": None, "new": None}}


def test_field_missing_on_both_sides_is_not_a_change():
    assert compute_changes({}, {}, ["notes"]) is None


def test_untracked_fields_are_ignored():
    changes = compute_changes(
        {"amount": 1, "notes": "a", "platform": "META"},
        {"amount": 1, "notes": "b", "platform": "BING"},
        ["amount", "notes"],
    )
    assert changes == {"notes": {"old": "a", "new": "b"}}
    assert compute_changes({"platform": "META"}, {"platform": "BING"}, ["amount"]) is None


def test_decimals_are_compared_as_numbers():
    assert compute_changes({"amount": Decimal("100.00")}, {"amount": 100}, ["amount"]) is None
    changes = compute_changes({"amount": Decimal("100.00")}, {"amount": Decimal("100.50")}, ["amount"])
    assert changes == {"amount": {"old": 100.0, "new": 100.5}}
    assert isinstance(changes["amount"]["old"], float)


def test_booleans_never_equal_numbers():
    changes = compute_changes({"flag": True}, {"flag": 1}, ["flag"])
    assert changes == {"flag": {"old": True, "new": 1}}
    assert compute_changes({"flag": 0}, {"flag": False}, ["flag"]) is not None


def test_strings_do_not_equal_numbers():
    assert compute_changes({"amount": "100"}, {"amount": 100}, ["amount"]) is not None


def test_result_follows_field_order():
    changes = compute_changes({"a": 1, "b": 1, "c": 1}, {"a": 2, "b": 2, "c": 2}, ["c", "a", "b"])
    assert list(changes) == ["c", "a", "b"]


def test_repeated_calls_give_equal_results():
    previous = {"amount": Decimal("10"), "notes": None}
    current = {"amount": Decimal("12"), "notes": "late invoice"}
    first = compute_changes(previous, current, ["amount", "notes"])
    second = compute_changes(previous, current, ["amount", "notes"])
    assert first == second
    assert first is not second


def test_enum_members_compare_by_value():
    changes = compute_changes({"status": MBAStatus.DRAFT}, {"status": "ACTIVE"}, ["status"])
    assert changes == {"status": {"old": "DRAFT", "new": "ACTIVE"}}


def test_normalize_value():
    assert normalize_value(Decimal("1.25")) == 1.25
    assert normalize_value(date(2024, 3, 1)) == "2024-03-01"
    assert normalize_value(datetime(2024, 3, 1, tzinfo=timezone.utc)) == "2024-03-01T00:00:00+00:00"
    assert normalize_value(MBAStatus.CLOSED) == "CLOSED"
    assert normalize_value(True) is True
    assert normalize_value(None) is None
    assert normalize_value(MISSING) is MISSING


def test_typed_snapshots_are_diffed_over_their_own_fields():
    before = SpendEntrySnapshot(amount=100.0, notes=None)
    after = SpendEntrySnapshot(amount=100.0, notes="adjusted")
    assert SpendEntrySnapshot.tracked_fields() == ("amount", "notes")
    assert compute_changes(before, after, SpendEntrySnapshot.tracked_fields()) == {
        "notes": {"old": None, "new": "adjusted"}
    }


def test_snapshot_from_model_normalizes_values():
    class _Row:
        client_paid = True
        client_paid_date = date(2024, 3, 1)
        client_paid_amount = Decimal("5000.00")

    snapshot = MBAPaymentSnapshot.from_model(_Row())
    assert snapshot.client_paid_date == "2024-03-01"
    assert snapshot.client_paid_amount == 5000.0
    assert MBAPaymentSnapshot.tracked_fields() == (
        "client_paid",
        "client_paid_date",
        "client_paid_amount",
    )
