from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class RecurringInvoiceSplit(Base):
    __tablename__ = "recurring_invoice_splits"

    id = Column(Integer, primary_key=True, index=True)
    recurring_invoice_id = Column(Integer, ForeignKey("recurring_invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Fixed per-cycle share, cents.
    amount_owed = Column(Integer, nullable=False)

    recurring_invoice = relationship("RecurringInvoice", back_populates="splits")
    user = relationship("User")
