"""Property model; the billing engine only needs its id and landlord."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    nickname = Column(String(255), nullable=False)
    address = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    landlord = relationship("User", back_populates="properties", foreign_keys=[landlord_id])
    invoices = relationship("Invoice", back_populates="property")
    recurring_invoices = relationship("RecurringInvoice", back_populates="property")
