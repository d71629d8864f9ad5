"""Invoice schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.models.enums import InvoiceType
from backend.app.schemas.payment import InvoicePaymentRead, SplitCreate


class InvoiceCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    property_id: int
    type: InvoiceType
    description: Optional[str] = None
    total_amount: int = Field(ge=1, description="Cents")
    due_date: datetime
    splits: List[SplitCreate]
    status: Literal["open", "draft"] = "open"


class InvoiceUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    property_id: Optional[int] = None
    type: Optional[InvoiceType] = None
    description: Optional[str] = None
    total_amount: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[datetime] = None
    splits: Optional[List[SplitCreate]] = None

    @field_validator("property_id", "type", "total_amount", "due_date", mode="before")
    @classmethod
    def reject_null(cls, v):
        # Omitted means "leave unchanged"; an explicit null would clear a required column.
        if v is None:
            raise ValueError("may not be null")
        return v


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    recurring_invoice_id: Optional[int] = None
    type: str
    description: Optional[str] = None

    status: str
    total_amount: int
    amount_paid: int
    balance_due: int

    due_date: datetime
    issued_date: datetime
    period_start: Optional[datetime] = None

    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceRead):
    payments: List[InvoicePaymentRead] = []


class InvoiceSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    type: str
    description: Optional[str] = None
    status: str
    total_amount: int
    due_date: datetime


class TenantPaymentRead(InvoicePaymentRead):
    invoice: InvoiceSummary


class IntegrityViolationRead(BaseModel):
    invoice_id: int
    property_id: int
    total_amount: int
    splits_total: int


class SweepResult(BaseModel):
    checked: int
    updated: int
    flagged: int
