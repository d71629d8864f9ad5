"""Invoice model for property billing."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base
from backend.app.models.enums import InvoiceStatus


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        # Overdue sweep scans by (status, due_date).
        Index("ix_invoices_status_due_date", "status", "due_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    recurring_invoice_id = Column(Integer, ForeignKey("recurring_invoices.id", ondelete="SET NULL"), nullable=True, index=True)

    type = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)
    # Cents.
    total_amount = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default=InvoiceStatus.OPEN.value)

    due_date = Column(DateTime(timezone=True), nullable=False)
    issued_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    period_start = Column(DateTime(timezone=True), nullable=True)
    idempotency_key = Column(String(128), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    # Declared ahead of the relationships; the "property" relationship shadows the builtin below it.
    @property
    def amount_paid(self) -> int:
        return sum((p.amount_paid or 0 for p in self.payments), 0)

    @property
    def balance_due(self) -> int:
        return max((self.total_amount or 0) - self.amount_paid, 0)

    property = relationship("Property", back_populates="invoices")
    recurring_invoice = relationship("RecurringInvoice", back_populates="invoices")
    payments = relationship(
        "InvoicePayment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoicePayment.id",
    )
