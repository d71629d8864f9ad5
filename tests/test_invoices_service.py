import pytest
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from backend.app.core.errors import AccountingMismatchError, InvalidStateError, NotFoundError
from backend.app.core.time import as_utc
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_payment import InvoicePayment
from backend.app.models.property import Property
from backend.app.models.user import User
from backend.app.services.invoices import (
    create_invoice,
    delete_invoice,
    find_integrity_violations,
    get_invoice,
    is_locked,
    issue_invoice,
    list_overdue_invoices,
    update_invoice,
    validate_integrity,
    void_invoice,
    void_overdue_invoices,
)
from backend.app.services.payments import confirm_payment

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def _seed(db):
    landlord = User(email="landlord@example.com", hashed_password="x")
    alice = User(email="alice@example.com", hashed_password="x")
    bob = User(email="bob@example.com", hashed_password="x")
    db.add_all([landlord, alice, bob])
    db.commit()
    prop = Property(landlord_id=landlord.id, nickname="Flat 4")
    db.add(prop)
    db.commit()
    return prop.id, alice.id, bob.id


def split(user_id, amount_owed, extension_days=0):
    return SimpleNamespace(user_id=user_id, amount_owed=amount_owed, extension_days=extension_days)


def _create(db, prop_id, splits, total=10000, due_date=None, status="open"):
    return create_invoice(
        db,
        property_id=prop_id,
        type="rent",
        description="June rent",
        total_amount=total,
        due_date=due_date or NOW + timedelta(days=10),
        splits=splits,
        status=status,
        now=NOW,
    )


def test_validate_integrity_message_names_both_amounts():
    with pytest.raises(AccountingMismatchError) as exc_info:
        validate_integrity(10000, [split(1, 4000), split(2, 5000)])
    assert exc_info.value.detail == "Accounting Mismatch: Total is 100.00, but splits sum to 90.00"


def test_mismatched_splits_are_rejected_before_any_row_is_written():
    db = SessionLocal()
    try:
        prop_id, alice, bob = _seed(db)
        with pytest.raises(AccountingMismatchError):
            _create(db, prop_id, [split(alice, 5000), split(bob, 4000)])

        assert db.query(Invoice).count() == 0
        assert db.query(InvoicePayment).count() == 0
    finally:
        db.close()


def test_create_invoice_writes_one_payment_per_split():
    db = SessionLocal()
    try:
        prop_id, alice, bob = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 6000), split(bob, 4000)])

        assert invoice.status == "open"
        assert [(p.user_id, p.amount_owed, p.amount_paid) for p in invoice.payments] == [
            (alice, 6000, 0),
            (bob, 4000, 0),
        ]
        assert all(p.status == "pending" for p in invoice.payments)
        assert invoice.balance_due == 10000
    finally:
        db.close()


def test_create_invoice_with_past_due_date_is_reconciled_immediately():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 10000)], due_date=NOW - timedelta(days=1))
        assert invoice.status == "overdue"
    finally:
        db.close()


def test_split_extension_days_are_recorded_as_approved():
    db = SessionLocal()
    try:
        prop_id, alice, bob = _seed(db)
        invoice = _create(
            db,
            prop_id,
            [split(alice, 5000, extension_days=5), split(bob, 5000)],
            due_date=NOW - timedelta(days=2),
        )
        alice_share = invoice.payments[0]
        assert alice_share.extension_status == "approved"
        assert alice_share.due_date_extension_days == 5
        # Bob has no extension so the invoice is still overdue.
        assert invoice.status == "overdue"
    finally:
        db.close()


def test_new_invoice_cannot_start_in_a_derived_status():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        with pytest.raises(InvalidStateError):
            _create(db, prop_id, [split(alice, 10000)], status="paid")
    finally:
        db.close()


def test_get_invoice_is_scoped_to_property_ids():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 10000)])

        assert get_invoice(db, invoice.id, [prop_id]).id == invoice.id
        with pytest.raises(NotFoundError):
            get_invoice(db, invoice.id, [prop_id + 1])
    finally:
        db.close()


def test_update_before_any_payment_replaces_splits():
    db = SessionLocal()
    try:
        prop_id, alice, bob = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 10000)])

        updated = update_invoice(
            db, invoice, {"total_amount": 12000}, splits=[split(alice, 6000), split(bob, 6000)], now=NOW
        )

        assert updated.total_amount == 12000
        assert sorted(p.amount_owed for p in updated.payments) == [6000, 6000]
        assert db.query(InvoicePayment).count() == 2
    finally:
        db.close()


def test_update_total_without_matching_splits_is_rejected():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 10000)])

        with pytest.raises(AccountingMismatchError):
            update_invoice(db, invoice, {"total_amount": 12000}, now=NOW)
        db.refresh(invoice)
        assert invoice.total_amount == 10000
    finally:
        db.close()


def test_paid_invoice_is_locked_to_description_and_due_date():
    db = SessionLocal()
    try:
        prop_id, alice, bob = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 5000), split(bob, 5000)])
        confirm_payment(db, invoice.id, invoice.payments[0].id, now=NOW)
        db.refresh(invoice)
        assert is_locked(invoice)

        with pytest.raises(InvalidStateError):
            update_invoice(db, invoice, {"total_amount": 20000}, now=NOW)
        with pytest.raises(InvalidStateError):
            update_invoice(db, invoice, {}, splits=[split(alice, 10000)], now=NOW)

        new_due = NOW + timedelta(days=20)
        updated = update_invoice(db, invoice, {"description": "Late June rent", "due_date": new_due}, now=NOW)
        assert updated.description == "Late June rent"
        assert as_utc(updated.due_date) == new_due
        assert updated.status == "partial"
    finally:
        db.close()


def test_void_invoice_cannot_be_edited():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = void_invoice(db, _create(db, prop_id, [split(alice, 10000)]))
        with pytest.raises(InvalidStateError):
            update_invoice(db, invoice, {"description": "x"}, now=NOW)
    finally:
        db.close()


def test_delete_unpaid_invoice_removes_payments():
    db = SessionLocal()
    try:
        prop_id, alice, bob = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 5000), split(bob, 5000)])

        delete_invoice(db, invoice)

        assert db.query(Invoice).count() == 0
        assert db.query(InvoicePayment).count() == 0
    finally:
        db.close()


def test_delete_refused_once_money_collected():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 10000)])
        confirm_payment(db, invoice.id, invoice.payments[0].id, amount=100, now=NOW)
        db.refresh(invoice)

        with pytest.raises(InvalidStateError):
            delete_invoice(db, invoice)
        assert db.query(Invoice).count() == 1
    finally:
        db.close()


def test_draft_is_not_reconciled_until_issued():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = _create(db, prop_id, [split(alice, 10000)], due_date=NOW - timedelta(days=1), status="draft")
        assert invoice.status == "draft"

        issued = issue_invoice(db, invoice, now=NOW)
        assert issued.status == "overdue"

        with pytest.raises(InvalidStateError):
            issue_invoice(db, issued, now=NOW)
    finally:
        db.close()


def test_void_is_sticky():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        invoice = void_invoice(db, _create(db, prop_id, [split(alice, 10000)]))
        assert invoice.status == "void"
        assert void_invoice(db, invoice).status == "void"
    finally:
        db.close()


def test_void_overdue_invoices_only_touches_overdue():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        overdue = _create(db, prop_id, [split(alice, 10000)], due_date=NOW - timedelta(days=3))
        current = _create(db, prop_id, [split(alice, 10000)])

        assert void_overdue_invoices(db, [prop_id]) == 1
        db.expire_all()
        assert db.get(Invoice, overdue.id).status == "void"
        assert db.get(Invoice, current.id).status == "open"
    finally:
        db.close()


def test_list_overdue_sweeps_before_listing():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        # Due in the future at creation time, but past due by the time we list.
        invoice = _create(db, prop_id, [split(alice, 10000)], due_date=NOW + timedelta(days=1))
        assert invoice.status == "open"

        later = NOW + timedelta(days=2)
        overdue = list_overdue_invoices(db, [prop_id], now=later)
        assert [i.id for i in overdue] == [invoice.id]
        assert overdue[0].status == "overdue"
    finally:
        db.close()


def test_integrity_report_lists_out_of_balance_invoices():
    db = SessionLocal()
    try:
        prop_id, alice, _ = _seed(db)
        healthy = _create(db, prop_id, [split(alice, 10000)])
        broken = Invoice(
            property_id=prop_id,
            type="water",
            total_amount=10000,
            due_date=NOW,
            payments=[InvoicePayment(user_id=alice, amount_owed=7000)],
        )
        empty = Invoice(property_id=prop_id, type="gas", total_amount=500, due_date=NOW)
        db.add_all([broken, empty])
        db.commit()

        report = find_integrity_violations(db, [prop_id])

        assert healthy.id not in [row["invoice_id"] for row in report]
        assert report == [
            {"invoice_id": broken.id, "property_id": prop_id, "total_amount": 10000, "splits_total": 7000},
            {"invoice_id": empty.id, "property_id": prop_id, "total_amount": 500, "splits_total": 0},
        ]
    finally:
        db.close()
