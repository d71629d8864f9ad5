"""Invoice lifecycle: creation, edits, administrative status changes."""

import logging
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.core.errors import AccountingMismatchError, InvalidStateError, NotFoundError
from backend.app.core.money import format_cents, sum_cents
from backend.app.core.time import as_utc, utc_now
from backend.app.models.enums import ExtensionStatus, InvoiceStatus, PaymentStatus
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_payment import InvoicePayment
from backend.app.services.reconciliation import reconcile, sweep_overdue

logger = logging.getLogger("billing.invoices")

# Fields that may still change once money has been collected.
_LOCKED_EDITABLE_FIELDS = {"description", "due_date"}


def validate_integrity(total_amount: int, splits: Iterable) -> None:
    """Enforce sum(split.amount_owed) == total_amount before anything is written."""
    split_sum = sum_cents(s.amount_owed for s in splits)
    if split_sum != total_amount:
        raise AccountingMismatchError(
            f"Accounting Mismatch: Total is {format_cents(total_amount)}, "
            f"but splits sum to {format_cents(split_sum)}"
        )


def _payment_from_split(split) -> InvoicePayment:
    extension_days = getattr(split, "extension_days", 0) or 0
    return InvoicePayment(
        user_id=split.user_id,
        amount_owed=split.amount_owed,
        amount_paid=0,
        status=PaymentStatus.PENDING.value,
        due_date_extension_days=extension_days,
        extension_status=ExtensionStatus.APPROVED.value if extension_days > 0 else ExtensionStatus.NONE.value,
    )


def create_invoice(
    db: Session,
    *,
    property_id: int,
    type: str,
    description: str | None,
    total_amount: int,
    due_date: datetime,
    splits: Sequence,
    status: str = InvoiceStatus.OPEN.value,
    now: datetime | None = None,
) -> Invoice:
    if status not in (InvoiceStatus.OPEN.value, InvoiceStatus.DRAFT.value):
        raise InvalidStateError("New invoices start as 'open' or 'draft'")
    validate_integrity(total_amount, splits)

    now = now or utc_now()
    invoice = Invoice(
        property_id=property_id,
        type=type,
        description=description,
        total_amount=total_amount,
        status=status,
        due_date=as_utc(due_date),
        issued_date=now,
        payments=[_payment_from_split(s) for s in splits],
    )
    db.add(invoice)
    db.commit()
    logger.info("Created invoice %s for property %s (%s)", invoice.id, property_id, format_cents(total_amount))

    reconcile(db, invoice.id, now=now)
    db.refresh(invoice)
    return invoice


def get_invoice(db: Session, invoice_id: int, property_ids: Sequence[int] | None = None) -> Invoice:
    query = db.query(Invoice).filter(Invoice.id == invoice_id)
    if property_ids is not None:
        query = query.filter(Invoice.property_id.in_(list(property_ids)))
    invoice = query.first()
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def is_locked(invoice: Invoice) -> bool:
    """An invoice is locked for financial edits once any money has been recorded."""
    return any((p.amount_paid or 0) > 0 for p in invoice.payments)


def update_invoice(
    db: Session,
    invoice: Invoice,
    changes: dict,
    splits: Sequence | None = None,
    now: datetime | None = None,
) -> Invoice:
    if invoice.status == InvoiceStatus.VOID:
        raise InvalidStateError("Void invoices cannot be edited")

    if is_locked(invoice):
        amount_changed = "total_amount" in changes and changes["total_amount"] != invoice.total_amount
        if amount_changed or splits is not None or set(changes) - _LOCKED_EDITABLE_FIELDS - {"total_amount"}:
            raise InvalidStateError(
                "Payments have already been made. Only description and due date can change; void the invoice to restart."
            )
    else:
        new_total = changes.get("total_amount", invoice.total_amount)
        if splits is not None:
            validate_integrity(new_total, splits)
            invoice.payments = [_payment_from_split(s) for s in splits]
        elif new_total != invoice.total_amount:
            validate_integrity(new_total, invoice.payments)

    for field, value in changes.items():
        if field == "due_date":
            value = as_utc(value)
        setattr(invoice, field, value)
    db.commit()

    reconcile(db, invoice.id, now=now)
    db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    if is_locked(invoice):
        raise InvalidStateError("Cannot delete invoice with payments")
    invoice_id = invoice.id
    # cascade removes the payment rows before the invoice row
    db.delete(invoice)
    db.commit()
    logger.info("Deleted invoice %s", invoice_id)


def void_invoice(db: Session, invoice: Invoice) -> Invoice:
    if invoice.status != InvoiceStatus.VOID:
        invoice.status = InvoiceStatus.VOID.value
        db.commit()
        db.refresh(invoice)
        logger.info("Voided invoice %s", invoice.id)
    return invoice


def issue_invoice(db: Session, invoice: Invoice, now: datetime | None = None) -> Invoice:
    """Move a draft into the derived lifecycle."""
    if invoice.status != InvoiceStatus.DRAFT:
        raise InvalidStateError("Only draft invoices can be issued")
    invoice.status = InvoiceStatus.OPEN.value
    invoice.issued_date = now or utc_now()
    db.commit()
    reconcile(db, invoice.id, now=now)
    db.refresh(invoice)
    return invoice


def void_overdue_invoices(db: Session, property_ids: Sequence[int] | None = None) -> int:
    query = db.query(Invoice).filter(Invoice.status == InvoiceStatus.OVERDUE.value)
    if property_ids is not None:
        query = query.filter(Invoice.property_id.in_(list(property_ids)))
    count = query.update({Invoice.status: InvoiceStatus.VOID.value}, synchronize_session=False)
    db.commit()
    logger.info("Voided %s overdue invoices", count)
    return count


def list_overdue_invoices(db: Session, property_ids: Sequence[int], now: datetime | None = None) -> list[Invoice]:
    sweep_overdue(db, property_ids=property_ids, now=now)
    if not property_ids:
        return []
    return (
        db.query(Invoice)
        .filter(Invoice.property_id.in_(list(property_ids)), Invoice.status == InvoiceStatus.OVERDUE.value)
        .order_by(Invoice.due_date.asc(), Invoice.id.asc())
        .all()
    )


def find_integrity_violations(db: Session, property_ids: Sequence[int] | None = None) -> list[dict]:
    """Invoices whose stored splits do not add up to the invoice total."""
    owed = func.coalesce(func.sum(InvoicePayment.amount_owed), 0)
    query = (
        db.query(Invoice.id, Invoice.property_id, Invoice.total_amount, owed.label("owed"))
        .outerjoin(InvoicePayment, InvoicePayment.invoice_id == Invoice.id)
    )
    if property_ids is not None:
        query = query.filter(Invoice.property_id.in_(list(property_ids)))
    query = query.group_by(Invoice.id, Invoice.property_id, Invoice.total_amount).having(owed != Invoice.total_amount)
    return [
        {
            "invoice_id": row.id,
            "property_id": row.property_id,
            "total_amount": row.total_amount,
            "splits_total": int(row.owed),
        }
        for row in query.order_by(Invoice.id).all()
    ]
