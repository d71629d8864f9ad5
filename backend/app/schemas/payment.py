"""Invoice payment (per-tenant split) schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SplitCreate(BaseModel):
    user_id: int
    amount_owed: int = Field(ge=0, description="Cents")
    extension_days: int = Field(default=0, ge=0)


class InvoicePaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    user_id: int
    amount_owed: int
    amount_paid: int
    status: str
    paid_at: Optional[datetime] = None
    tenant_marked_paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    extension_status: str
    extension_requested_date: Optional[datetime] = None
    extension_reason: Optional[str] = None
    due_date_extension_days: int
    admin_note: Optional[str] = None
    updated_at: datetime


class MarkPaidRequest(BaseModel):
    reference: Optional[str] = None


class ExtensionRequest(BaseModel):
    requested_date: datetime
    reason: Optional[str] = None


class PaymentConfirm(BaseModel):
    amount: Optional[int] = Field(default=None, ge=0, description="Cents; defaults to the amount owed")


class AdminNote(BaseModel):
    note: Optional[str] = None


class ExtensionApprove(BaseModel):
    days: Optional[int] = Field(default=None, ge=0)
