"""Tenant payment workflow and the landlord decisions that answer it.

Tenants only ever *claim* things (a payment was made, an extension is
wanted). Money and due-date math change only when the landlord confirms,
which is also when reconciliation has something new to derive from.
"""

import logging
import math
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from backend.app.core.errors import InvalidStateError, NotFoundError
from backend.app.core.settings import get_settings
from backend.app.core.time import as_utc, utc_now
from backend.app.models.enums import ExtensionStatus, InvoiceStatus, PaymentStatus
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_payment import InvoicePayment
from backend.app.services.reconciliation import reconcile, sweep_overdue

logger = logging.getLogger("billing.payments")


def _get_tenant_payment(db: Session, payment_id: int, caller_id: int) -> InvoicePayment:
    """Tenants never see shares of a draft invoice; it has not been issued to them yet."""
    payment = (
        db.query(InvoicePayment)
        .join(Invoice, InvoicePayment.invoice_id == Invoice.id)
        .filter(
            InvoicePayment.id == payment_id,
            InvoicePayment.user_id == caller_id,
            Invoice.status != InvoiceStatus.DRAFT.value,
        )
        .first()
    )
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def _get_invoice_payment(db: Session, invoice_id: int, payment_id: int) -> InvoicePayment:
    payment = (
        db.query(InvoicePayment)
        .filter(InvoicePayment.id == payment_id, InvoicePayment.invoice_id == invoice_id)
        .first()
    )
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def list_tenant_payments(db: Session, caller_id: int, now: datetime | None = None) -> list[InvoicePayment]:
    property_ids = [
        row.property_id
        for row in db.query(Invoice.property_id)
        .join(InvoicePayment, InvoicePayment.invoice_id == Invoice.id)
        .filter(InvoicePayment.user_id == caller_id)
        .distinct()
        .all()
    ]
    sweep_overdue(db, property_ids=property_ids, now=now)
    return (
        db.query(InvoicePayment)
        .join(Invoice, InvoicePayment.invoice_id == Invoice.id)
        .filter(InvoicePayment.user_id == caller_id, Invoice.status != InvoiceStatus.DRAFT.value)
        .order_by(Invoice.due_date.desc(), InvoicePayment.id.desc())
        .all()
    )


# --- Tenant actions ---


def mark_paid(
    db: Session,
    payment_id: int,
    caller_id: int,
    reference: str | None = None,
    now: datetime | None = None,
) -> InvoicePayment:
    """Record the tenant's claim that they paid. amount_paid is left alone."""
    payment = _get_tenant_payment(db, payment_id, caller_id)
    invoice = payment.invoice
    if invoice.status == InvoiceStatus.PAID or payment.status == PaymentStatus.PAID:
        raise InvalidStateError("Already paid")
    if invoice.status == InvoiceStatus.VOID:
        raise InvalidStateError("Invoice has been voided")

    payment.tenant_marked_paid_at = now or utc_now()
    payment.payment_reference = reference
    db.commit()
    logger.info("Tenant %s flagged payment %s as paid (ref=%s)", caller_id, payment.id, reference)

    reconcile(db, payment.invoice_id, now=now)
    db.refresh(payment)
    return payment


def request_extension(
    db: Session,
    payment_id: int,
    caller_id: int,
    requested_date: datetime,
    reason: str | None = None,
    now: datetime | None = None,
) -> InvoicePayment:
    payment = _get_tenant_payment(db, payment_id, caller_id)
    if payment.extension_status in (ExtensionStatus.PENDING.value, ExtensionStatus.APPROVED.value):
        raise InvalidStateError(f"An extension is already {payment.extension_status}")

    invoice = payment.invoice
    if invoice.status in (InvoiceStatus.PAID.value, InvoiceStatus.VOID.value):
        raise InvalidStateError(f"Invoice is {invoice.status}")
    cutoff = timedelta(days=get_settings().extension_request_cutoff_days)
    if as_utc(now or utc_now()) - as_utc(invoice.due_date) > cutoff:
        raise InvalidStateError("Severely overdue")

    payment.extension_status = ExtensionStatus.PENDING.value
    payment.extension_requested_date = as_utc(requested_date)
    payment.extension_reason = reason
    db.commit()
    db.refresh(payment)
    logger.info("Tenant %s requested extension on payment %s until %s", caller_id, payment.id, requested_date)
    return payment


def cancel_extension(db: Session, payment_id: int, caller_id: int) -> InvoicePayment:
    payment = _get_tenant_payment(db, payment_id, caller_id)
    if payment.extension_status != ExtensionStatus.PENDING:
        raise InvalidStateError("No pending extension request")

    payment.extension_status = ExtensionStatus.NONE.value
    payment.extension_requested_date = None
    payment.extension_reason = None
    db.commit()
    db.refresh(payment)
    return payment


# --- Landlord decisions ---


def confirm_payment(
    db: Session,
    invoice_id: int,
    payment_id: int,
    amount: int | None = None,
    now: datetime | None = None,
) -> InvoicePayment:
    """Turn a claim (or an offline receipt) into an authoritative paid amount."""
    payment = _get_invoice_payment(db, invoice_id, payment_id)
    if payment.invoice.status == InvoiceStatus.VOID:
        raise InvalidStateError("Cannot apply payment to a void invoice")

    paid = payment.amount_owed if amount is None else amount
    payment.amount_paid = paid
    if paid >= payment.amount_owed:
        payment.status = PaymentStatus.PAID.value
    elif paid > 0:
        payment.status = PaymentStatus.PARTIAL.value
    else:
        payment.status = PaymentStatus.PENDING.value
    payment.paid_at = (now or utc_now()) if paid > 0 else None
    db.commit()
    logger.info("Confirmed payment %s on invoice %s: %s cents", payment.id, invoice_id, paid)

    reconcile(db, invoice_id, now=now)
    db.refresh(payment)
    return payment


def reject_payment_claim(db: Session, invoice_id: int, payment_id: int, note: str | None = None) -> InvoicePayment:
    payment = _get_invoice_payment(db, invoice_id, payment_id)
    if payment.tenant_marked_paid_at is None:
        raise InvalidStateError("No payment claim to reject")
    if payment.status == PaymentStatus.PAID:
        raise InvalidStateError("Payment already confirmed")

    payment.status = PaymentStatus.PENDING.value
    payment.tenant_marked_paid_at = None
    payment.admin_note = note
    db.commit()

    reconcile(db, invoice_id)
    db.refresh(payment)
    return payment


def approve_extension(
    db: Session,
    invoice_id: int,
    payment_id: int,
    days: int | None = None,
    now: datetime | None = None,
) -> InvoicePayment:
    payment = _get_invoice_payment(db, invoice_id, payment_id)
    if payment.extension_status != ExtensionStatus.PENDING:
        raise InvalidStateError("No pending extension request")

    if days is None:
        gap = as_utc(payment.extension_requested_date) - as_utc(payment.invoice.due_date)
        days = max(0, math.ceil(gap / timedelta(days=1)))
    payment.extension_status = ExtensionStatus.APPROVED.value
    payment.due_date_extension_days = days
    db.commit()
    logger.info("Approved %s-day extension on payment %s", days, payment.id)

    reconcile(db, invoice_id, now=now)
    db.refresh(payment)
    return payment


def reject_extension(
    db: Session,
    invoice_id: int,
    payment_id: int,
    note: str | None = None,
    now: datetime | None = None,
) -> InvoicePayment:
    payment = _get_invoice_payment(db, invoice_id, payment_id)
    if payment.extension_status != ExtensionStatus.PENDING:
        raise InvalidStateError("No pending extension request")

    payment.extension_status = ExtensionStatus.REJECTED.value
    payment.admin_note = note
    db.commit()

    reconcile(db, invoice_id, now=now)
    db.refresh(payment)
    return payment
