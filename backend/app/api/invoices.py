"""Invoice routes for landlords."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.dependencies.properties import ensure_owned_property, get_owned_property_ids
from backend.app.models.invoice import Invoice
from backend.app.models.user import User
from backend.app.schemas.invoice import (
    IntegrityViolationRead,
    InvoiceCreate,
    InvoiceDetail,
    InvoiceRead,
    InvoiceUpdate,
)
from backend.app.schemas.payment import AdminNote, ExtensionApprove, InvoicePaymentRead, PaymentConfirm
from backend.app.services import invoices as invoice_service
from backend.app.services import payments as payment_service
from backend.app.services.reconciliation import reconcile, sweep_overdue

router = APIRouter(prefix="/invoices", tags=["invoices"])

SUPPORTED_SORT_FIELDS = {
    "created_at": Invoice.created_at,
    "status": Invoice.status,
    "total_amount": Invoice.total_amount,
    "due_date": Invoice.due_date,
}


def order_invoices(query, sort_by: str, sort_order: str):
    if sort_by not in SUPPORTED_SORT_FIELDS:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")
    sort_column = SUPPORTED_SORT_FIELDS[sort_by]
    if sort_order_normalized == "asc":
        return query.order_by(sort_column.asc(), Invoice.id.asc())
    return query.order_by(sort_column.desc(), Invoice.id.desc())


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    status: str | None = None,
    property_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    sweep_overdue(db, property_ids=property_ids)
    if not property_ids:
        return []

    query = db.query(Invoice).filter(Invoice.property_id.in_(property_ids))
    if status:
        query = query.filter(Invoice.status == status)
    if property_id:
        query = query.filter(Invoice.property_id == property_id)
    return order_invoices(query, sort_by, sort_order).offset(skip).limit(limit).all()


@router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owned_property(db, payload.property_id, current_user.id)
    return invoice_service.create_invoice(
        db,
        property_id=payload.property_id,
        type=payload.type,
        description=payload.description,
        total_amount=payload.total_amount,
        due_date=payload.due_date,
        splits=payload.splits,
        status=payload.status,
    )


@router.get("/overdue", response_model=List[InvoiceRead])
async def list_overdue_invoices(
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    return invoice_service.list_overdue_invoices(db, property_ids)


@router.get("/integrity", response_model=List[IntegrityViolationRead])
async def list_integrity_violations(
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    return invoice_service.find_integrity_violations(db, property_ids)


@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    return invoice_service.get_invoice(db, invoice_id, property_ids)


@router.put("/{invoice_id}", response_model=InvoiceDetail)
async def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice = invoice_service.get_invoice(db, invoice_id, property_ids)
    changes = payload.model_dump(exclude_unset=True, exclude={"splits"})
    if "property_id" in changes:
        ensure_owned_property(db, changes["property_id"], current_user.id)
    return invoice_service.update_invoice(db, invoice, changes, splits=payload.splits)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice = invoice_service.get_invoice(db, invoice_id, property_ids)
    invoice_service.delete_invoice(db, invoice)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{invoice_id}/void", response_model=InvoiceRead)
async def void_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice = invoice_service.get_invoice(db, invoice_id, property_ids)
    return invoice_service.void_invoice(db, invoice)


@router.post("/{invoice_id}/issue", response_model=InvoiceRead)
async def issue_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice = invoice_service.get_invoice(db, invoice_id, property_ids)
    return invoice_service.issue_invoice(db, invoice)


@router.post("/{invoice_id}/reconcile", response_model=InvoiceRead)
async def reconcile_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice = invoice_service.get_invoice(db, invoice_id, property_ids)
    reconcile(db, invoice.id)
    db.refresh(invoice)
    return invoice


@router.post("/{invoice_id}/payments/{payment_id}/confirm", response_model=InvoicePaymentRead)
async def confirm_payment(
    invoice_id: int,
    payment_id: int,
    payload: PaymentConfirm,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice_service.get_invoice(db, invoice_id, property_ids)
    return payment_service.confirm_payment(db, invoice_id, payment_id, amount=payload.amount)


@router.post("/{invoice_id}/payments/{payment_id}/reject", response_model=InvoicePaymentRead)
async def reject_payment(
    invoice_id: int,
    payment_id: int,
    payload: AdminNote,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice_service.get_invoice(db, invoice_id, property_ids)
    return payment_service.reject_payment_claim(db, invoice_id, payment_id, note=payload.note)


@router.post("/{invoice_id}/payments/{payment_id}/extension/approve", response_model=InvoicePaymentRead)
async def approve_extension(
    invoice_id: int,
    payment_id: int,
    payload: ExtensionApprove,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice_service.get_invoice(db, invoice_id, property_ids)
    return payment_service.approve_extension(db, invoice_id, payment_id, days=payload.days)


@router.post("/{invoice_id}/payments/{payment_id}/extension/reject", response_model=InvoicePaymentRead)
async def reject_extension(
    invoice_id: int,
    payment_id: int,
    payload: AdminNote,
    db: Session = Depends(get_db),
    property_ids: List[int] = Depends(get_owned_property_ids),
):
    invoice_service.get_invoice(db, invoice_id, property_ids)
    return payment_service.reject_extension(db, invoice_id, payment_id, note=payload.note)
