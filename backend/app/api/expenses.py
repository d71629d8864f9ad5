"""Tenant-facing routes: a tenant's own payment lines ("expenses")."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.invoice import TenantPaymentRead
from backend.app.schemas.payment import ExtensionRequest, MarkPaidRequest
from backend.app.services import payments as payment_service

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("/", response_model=List[TenantPaymentRead])
async def list_expenses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return payment_service.list_tenant_payments(db, current_user.id)


@router.post("/{payment_id}/pay", response_model=TenantPaymentRead)
async def mark_paid(
    payment_id: int,
    payload: MarkPaidRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.mark_paid(db, payment_id, current_user.id, reference=payload.reference)


@router.post("/{payment_id}/extension", response_model=TenantPaymentRead)
async def request_extension(
    payment_id: int,
    payload: ExtensionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.request_extension(
        db,
        payment_id,
        current_user.id,
        requested_date=payload.requested_date,
        reason=payload.reason,
    )


@router.delete("/{payment_id}/extension", response_model=TenantPaymentRead)
async def cancel_extension(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.cancel_extension(db, payment_id, current_user.id)
