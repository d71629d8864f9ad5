"""Recurring invoice schedules and the batch generator that materializes them."""

import logging
from datetime import datetime, timedelta
from typing import Sequence

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError
from backend.app.core.settings import get_settings
from backend.app.core.time import as_utc, utc_now
from backend.app.models.enums import Frequency, InvoiceStatus, PaymentStatus
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_payment import InvoicePayment
from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.models.recurring_invoice_split import RecurringInvoiceSplit
from backend.app.services.invoices import validate_integrity

logger = logging.getLogger("billing.recurring")


def calculate_next_run_date(current: datetime, frequency: str) -> datetime:
    """Advance a schedule cursor by exactly one cycle."""
    frequency = Frequency(frequency)
    if frequency == Frequency.WEEKLY:
        return current + timedelta(days=7)
    if frequency == Frequency.FORTNIGHTLY:
        return current + timedelta(days=14)
    if frequency == Frequency.MONTHLY:
        return current + relativedelta(months=1)
    return current + relativedelta(years=1)


def _splits_from(splits) -> list[RecurringInvoiceSplit]:
    return [RecurringInvoiceSplit(user_id=s.user_id, amount_owed=s.amount_owed) for s in splits]


def create_recurring_schedule(
    db: Session,
    *,
    property_id: int,
    type: str,
    description: str | None,
    total_amount: int,
    frequency: str,
    start_date: datetime,
    splits: Sequence,
    end_date: datetime | None = None,
    due_days_offset: int | None = None,
) -> RecurringInvoice:
    """Create a schedule. The start cycle is billed by hand, so the first automated run is one cycle later."""
    validate_integrity(total_amount, splits)
    if due_days_offset is None:
        due_days_offset = get_settings().default_due_days_offset

    schedule = RecurringInvoice(
        property_id=property_id,
        type=type,
        description=description,
        total_amount=total_amount,
        frequency=Frequency(frequency).value,
        active=True,
        next_run_date=calculate_next_run_date(as_utc(start_date), frequency),
        due_days_offset=due_days_offset,
        end_date=as_utc(end_date),
        splits=_splits_from(splits),
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info("Created %s recurring schedule %s for property %s", schedule.frequency, schedule.id, property_id)
    return schedule


def get_schedule(db: Session, schedule_id: int, property_ids: Sequence[int] | None = None) -> RecurringInvoice:
    query = db.query(RecurringInvoice).filter(RecurringInvoice.id == schedule_id)
    if property_ids is not None:
        query = query.filter(RecurringInvoice.property_id.in_(list(property_ids)))
    schedule = query.first()
    if not schedule:
        raise NotFoundError("Recurring invoice not found")
    return schedule


def list_schedules(db: Session, property_ids: Sequence[int]) -> list[RecurringInvoice]:
    if not property_ids:
        return []
    return (
        db.query(RecurringInvoice)
        .filter(RecurringInvoice.property_id.in_(list(property_ids)))
        .order_by(RecurringInvoice.next_run_date.asc(), RecurringInvoice.id.asc())
        .all()
    )


def update_recurring_schedule(
    db: Session,
    schedule: RecurringInvoice,
    changes: dict,
    splits: Sequence | None = None,
) -> RecurringInvoice:
    new_total = changes.get("total_amount", schedule.total_amount)
    if splits is not None:
        validate_integrity(new_total, splits)
    elif new_total != schedule.total_amount:
        validate_integrity(new_total, schedule.splits)

    for field, value in changes.items():
        if field in ("next_run_date", "end_date"):
            value = as_utc(value)
        elif field == "frequency":
            value = Frequency(value).value
        setattr(schedule, field, value)
    if splits is not None:
        # Splits are only a template for future invoices; replace them wholesale.
        schedule.splits = _splits_from(splits)
    db.commit()
    db.refresh(schedule)
    return schedule


def toggle_schedule(db: Session, schedule: RecurringInvoice, active: bool) -> RecurringInvoice:
    schedule.active = active
    db.commit()
    db.refresh(schedule)
    return schedule


def _generate_for_schedule(db: Session, schedule_id: int, now: datetime) -> str | None:
    """Run one schedule inside the caller's transaction.

    Returns "generated", "retired", or None when there is nothing to do
    (deactivated meanwhile, or another run already advanced the cursor).
    """
    schedule = (
        db.query(RecurringInvoice)
        .filter(RecurringInvoice.id == schedule_id, RecurringInvoice.active.is_(True))
        .first()
    )
    if schedule is None:
        return None
    cursor = schedule.next_run_date
    if as_utc(cursor) > now:
        return None

    if schedule.end_date is not None and as_utc(schedule.end_date) < now:
        schedule.active = False
        return "retired"

    # Compare-and-set on the cursor: only the transaction that moves it may bill this cycle.
    next_run = calculate_next_run_date(as_utc(cursor), schedule.frequency)
    claimed = (
        db.query(RecurringInvoice)
        .filter(RecurringInvoice.id == schedule.id, RecurringInvoice.next_run_date == cursor)
        .update({RecurringInvoice.next_run_date: next_run}, synchronize_session=False)
    )
    if claimed != 1:
        return None

    period_start = as_utc(cursor)
    invoice = Invoice(
        property_id=schedule.property_id,
        recurring_invoice_id=schedule.id,
        type=schedule.type,
        description=schedule.description or f"Recurring: {schedule.type}",
        total_amount=schedule.total_amount,
        status=InvoiceStatus.OPEN.value,
        due_date=now + timedelta(days=schedule.due_days_offset),
        issued_date=now,
        period_start=period_start,
        idempotency_key=f"recurring-{schedule.id}-{period_start.date().isoformat()}",
        payments=[
            InvoicePayment(
                user_id=split.user_id,
                amount_owed=split.amount_owed,
                amount_paid=0,
                status=PaymentStatus.PENDING.value,
            )
            for split in schedule.splits
        ],
    )
    db.add(invoice)
    db.flush()
    logger.info(
        "Generated invoice %s from schedule %s for cycle %s; next run %s",
        invoice.id,
        schedule.id,
        period_start.date(),
        next_run.date(),
    )
    return "generated"


def process_due_invoices(db: Session, now: datetime | None = None) -> dict:
    """Materialize one invoice for every due schedule.

    Each schedule commits or rolls back on its own; a failure is logged and
    counted and the batch moves on to the next schedule.
    """
    now = as_utc(now) if now else utc_now()
    due_ids = [
        row.id
        for row in db.query(RecurringInvoice.id)
        .filter(RecurringInvoice.active.is_(True), RecurringInvoice.next_run_date <= now)
        .order_by(RecurringInvoice.next_run_date.asc(), RecurringInvoice.id.asc())
        .all()
    ]

    results = {"generated": 0, "errors": 0, "retired": 0}
    for schedule_id in due_ids:
        try:
            outcome = _generate_for_schedule(db, schedule_id, now)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to process recurring schedule %s", schedule_id)
            results["errors"] += 1
            continue
        if outcome == "generated":
            results["generated"] += 1
        elif outcome == "retired":
            results["retired"] += 1
            logger.info("Retired recurring schedule %s (end date passed)", schedule_id)

    logger.info(
        "Recurring run: generated=%s errors=%s retired=%s",
        results["generated"],
        results["errors"],
        results["retired"],
    )
    return results
