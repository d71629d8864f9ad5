"""Admin billing endpoints: batch jobs and a cross-landlord invoice view."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.invoices import order_invoices
from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.models.invoice import Invoice
from backend.app.models.property import Property
from backend.app.models.user import User
from backend.app.schemas.invoice import InvoiceRead, SweepResult
from backend.app.schemas.recurring_invoice import GenerationResult
from backend.app.services.invoices import void_overdue_invoices
from backend.app.services.reconciliation import sweep_overdue
from backend.app.services.recurring import process_due_invoices

router = APIRouter(prefix="/admin/billing", tags=["admin-billing"])


@router.post("/run-recurring", response_model=GenerationResult)
async def run_recurring(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return process_due_invoices(db)


@router.post("/sweep", response_model=SweepResult)
async def run_sweep(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return sweep_overdue(db)


@router.post("/void-overdue")
async def void_overdue(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    sweep_overdue(db)
    return {"voided": void_overdue_invoices(db)}


@router.get("/invoices", response_model=List[InvoiceRead])
async def list_all_invoices(
    landlord_id: int | None = None,
    property_id: int | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    query = db.query(Invoice)
    if landlord_id is not None:
        query = query.join(Property, Invoice.property_id == Property.id).filter(Property.landlord_id == landlord_id)
    if property_id is not None:
        query = query.filter(Invoice.property_id == property_id)
    if status is not None:
        query = query.filter(Invoice.status == status)
    return order_invoices(query, sort_by, sort_order).offset(skip).limit(limit).all()
