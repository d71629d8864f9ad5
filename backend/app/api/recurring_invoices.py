"""Recurring invoice schedules owned by landlords."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.dependencies.properties import ensure_owned_property, get_owned_property_ids
from backend.app.models.user import User
from backend.app.schemas.recurring_invoice import (
    RecurringInvoiceCreate,
    RecurringInvoiceRead,
    RecurringInvoiceToggle,
    RecurringInvoiceUpdate,
)
from backend.app.services import recurring as recurring_service

router = APIRouter(prefix="/recurring-invoices", tags=["recurring-invoices"])


@router.post("/", response_model=RecurringInvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    payload: RecurringInvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owned_property(db, payload.property_id, current_user.id)
    return recurring_service.create_recurring_schedule(
        db,
        property_id=payload.property_id,
        type=payload.type,
        description=payload.description,
        total_amount=payload.total_amount,
        frequency=payload.frequency,
        start_date=payload.start_date,
        end_date=payload.end_date,
        due_days_offset=payload.due_days_offset,
        splits=payload.splits,
    )


@router.get("/", response_model=List[RecurringInvoiceRead])
async def list_schedules(
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    return recurring_service.list_schedules(db, property_ids)


@router.get("/{schedule_id}", response_model=RecurringInvoiceRead)
async def get_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    return recurring_service.get_schedule(db, schedule_id, property_ids)


@router.put("/{schedule_id}", response_model=RecurringInvoiceRead)
async def update_schedule(
    schedule_id: int,
    payload: RecurringInvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    schedule = recurring_service.get_schedule(db, schedule_id, property_ids)
    changes = payload.model_dump(exclude_unset=True, exclude={"splits"})
    if "property_id" in changes:
        ensure_owned_property(db, changes["property_id"], current_user.id)
    return recurring_service.update_recurring_schedule(db, schedule, changes, splits=payload.splits)


@router.post("/{schedule_id}/toggle", response_model=RecurringInvoiceRead)
async def toggle_schedule(
    schedule_id: int,
    payload: RecurringInvoiceToggle,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    schedule = recurring_service.get_schedule(db, schedule_id, property_ids)
    return recurring_service.toggle_schedule(db, schedule, payload.active)
