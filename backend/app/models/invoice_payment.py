"""Per-tenant share of an invoice."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base
from backend.app.models.enums import ExtensionStatus, PaymentStatus


class InvoicePayment(Base):
    __tablename__ = "invoice_payments"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    amount_owed = Column(Integer, nullable=False)
    amount_paid = Column(Integer, nullable=False, default=0)
    # Mirror only; the invoice status is authoritative.
    status = Column(String(16), nullable=False, default=PaymentStatus.PENDING.value)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    tenant_marked_paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_reference = Column(String(255), nullable=True)

    extension_status = Column(String(16), nullable=False, default=ExtensionStatus.NONE.value)
    extension_requested_date = Column(DateTime(timezone=True), nullable=True)
    extension_reason = Column(Text, nullable=True)
    due_date_extension_days = Column(Integer, nullable=False, default=0)

    admin_note = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    invoice = relationship("Invoice", back_populates="payments")
    user = relationship("User", back_populates="invoice_payments", foreign_keys=[user_id])
