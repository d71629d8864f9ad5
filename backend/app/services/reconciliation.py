"""Invoice status reconciliation.

An invoice's status is derived from its payment lines and the current time,
except while it sits in an administrative status (draft or void). Everything
that can move money or due dates calls ``reconcile`` afterwards; list views
call ``sweep_overdue`` first so time-dependent ``overdue`` transitions show up
without any mutation having happened.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from backend.app.core.errors import IntegrityViolationError
from backend.app.core.money import format_cents, sum_cents
from backend.app.core.settings import get_settings
from backend.app.core.time import as_utc, utc_now
from backend.app.models.enums import (
    ADMINISTRATIVE_STATUSES,
    DERIVED_STATUSES,
    ExtensionPolicy,
    ExtensionStatus,
    InvoiceStatus,
    PaymentStatus,
)
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_payment import InvoicePayment

logger = logging.getLogger("billing.reconcile")

_EXTENSION_STATES_BY_POLICY = {
    ExtensionPolicy.APPROVED_OR_NONE: frozenset({ExtensionStatus.APPROVED.value, ExtensionStatus.NONE.value}),
    ExtensionPolicy.APPROVED_ONLY: frozenset({ExtensionStatus.APPROVED.value}),
    ExtensionPolicy.ALWAYS: frozenset(s.value for s in ExtensionStatus),
}


def resolve_extension_policy(policy: ExtensionPolicy | str | None = None) -> ExtensionPolicy:
    if policy is None:
        policy = get_settings().extension_policy
    return ExtensionPolicy(policy)


def effective_due_date(
    due_date: datetime,
    payment: InvoicePayment,
    policy: ExtensionPolicy | str | None = None,
) -> datetime:
    """Invoice due date pushed out by this tenant's extension days, if the policy counts them."""
    due = as_utc(due_date)
    extension_days = payment.due_date_extension_days or 0
    if extension_days and payment.extension_status in _EXTENSION_STATES_BY_POLICY[resolve_extension_policy(policy)]:
        return due + timedelta(days=extension_days)
    return due


def derive_invoice_status(
    invoice: Invoice,
    payments: Sequence[InvoicePayment],
    now: datetime,
    policy: ExtensionPolicy | str | None = None,
) -> InvoiceStatus:
    """Pure status derivation for an invoice outside the administrative statuses."""
    total_amount = invoice.total_amount or 0
    total_paid = sum_cents(p.amount_paid for p in payments)

    if total_paid >= total_amount and total_amount > 0:
        return InvoiceStatus.PAID
    if total_paid > 0:
        return InvoiceStatus.PARTIAL

    now = as_utc(now)
    for payment in payments:
        if payment.status == PaymentStatus.PAID:
            continue
        if now > effective_due_date(invoice.due_date, payment, policy):
            return InvoiceStatus.OVERDUE
    return InvoiceStatus.OPEN


def check_invoice_integrity(invoice: Invoice, payments: Iterable[InvoicePayment]) -> None:
    owed = sum_cents(p.amount_owed for p in payments)
    if owed != invoice.total_amount:
        raise IntegrityViolationError(
            f"Invoice {invoice.id} is out of balance: total is {format_cents(invoice.total_amount)}, "
            f"but splits sum to {format_cents(owed)}"
        )


def reconcile(
    db: Session,
    invoice_id: int,
    now: datetime | None = None,
    policy: ExtensionPolicy | str | None = None,
) -> InvoiceStatus | None:
    """Recompute and persist an invoice's status; write only when it changed.

    Returns the resulting status, or None when the invoice no longer exists.
    Raises IntegrityViolationError, without writing, when the stored splits do
    not add up to the invoice total.
    """
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if invoice is None:
        return None
    if invoice.status in ADMINISTRATIVE_STATUSES:
        return InvoiceStatus(invoice.status)

    payments = db.query(InvoicePayment).filter(InvoicePayment.invoice_id == invoice_id).all()
    try:
        check_invoice_integrity(invoice, payments)
    except IntegrityViolationError as exc:
        logger.error("Skipping reconciliation: %s", exc.detail)
        raise

    new_status = derive_invoice_status(invoice, payments, now or utc_now(), policy)
    if invoice.status != new_status:
        logger.info("Invoice %s status %s -> %s", invoice.id, invoice.status, new_status.value)
        invoice.status = new_status.value
        db.commit()
    return new_status


def sweep_overdue(
    db: Session,
    property_ids: Sequence[int] | None = None,
    now: datetime | None = None,
) -> dict:
    """Reconcile every non-terminal invoice whose due date has passed.

    Integrity violations are logged and counted per invoice; they never stop
    the sweep.
    """
    now = now or utc_now()
    query = db.query(Invoice.id, Invoice.status).filter(
        Invoice.status.in_(sorted(DERIVED_STATUSES - {InvoiceStatus.PAID.value})),
        Invoice.due_date < now,
    )
    if property_ids is not None:
        if not property_ids:
            return {"checked": 0, "updated": 0, "flagged": 0}
        query = query.filter(Invoice.property_id.in_(list(property_ids)))

    checked = updated = flagged = 0
    for invoice_id, stored_status in query.all():
        checked += 1
        try:
            status = reconcile(db, invoice_id, now=now)
        except IntegrityViolationError:
            flagged += 1
            continue
        if status is not None and status != stored_status:
            updated += 1

    if updated or flagged:
        logger.info("Overdue sweep checked=%s updated=%s flagged=%s", checked, updated, flagged)
    return {"checked": checked, "updated": updated, "flagged": flagged}
