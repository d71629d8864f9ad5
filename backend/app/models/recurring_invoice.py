"""Recurring invoice schedule: a template materialized once per cycle."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class RecurringInvoice(Base):
    __tablename__ = "recurring_invoices"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)

    type = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)
    total_amount = Column(Integer, nullable=False)

    frequency = Column(String(16), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    # Cursor: when the next invoice should be generated.
    next_run_date = Column(DateTime(timezone=True), nullable=False, index=True)
    due_days_offset = Column(Integer, nullable=False, default=7)
    end_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    property = relationship("Property", back_populates="recurring_invoices")
    splits = relationship(
        "RecurringInvoiceSplit",
        back_populates="recurring_invoice",
        cascade="all, delete-orphan",
        order_by="RecurringInvoiceSplit.id",
    )
    invoices = relationship("Invoice", back_populates="recurring_invoice")
