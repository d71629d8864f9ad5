"""Recurring invoice schedule schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.models.enums import Frequency, InvoiceType


class RecurringSplitCreate(BaseModel):
    user_id: int
    amount_owed: int = Field(ge=0)


class RecurringSplitRead(RecurringSplitCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class RecurringInvoiceCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    property_id: int
    type: InvoiceType
    description: Optional[str] = None
    total_amount: int = Field(ge=1)
    frequency: Frequency
    start_date: datetime
    end_date: Optional[datetime] = None
    due_days_offset: Optional[int] = Field(default=None, ge=0)
    splits: List[RecurringSplitCreate]


class RecurringInvoiceUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    property_id: Optional[int] = None
    type: Optional[InvoiceType] = None
    description: Optional[str] = None
    total_amount: Optional[int] = Field(default=None, ge=1)
    frequency: Optional[Frequency] = None
    next_run_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    due_days_offset: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None
    splits: Optional[List[RecurringSplitCreate]] = None

    @field_validator(
        "property_id", "type", "total_amount", "frequency", "next_run_date", "due_days_offset", "active", mode="before"
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class RecurringInvoiceToggle(BaseModel):
    active: bool


class RecurringInvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    type: str
    description: Optional[str] = None
    total_amount: int
    frequency: str
    active: bool
    next_run_date: datetime
    due_days_offset: int
    end_date: Optional[datetime] = None
    created_at: datetime
    splits: List[RecurringSplitRead] = []


class GenerationResult(BaseModel):
    generated: int
    errors: int
    retired: int
