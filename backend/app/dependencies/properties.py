"""Property ownership checks performed before calling into the billing services."""

from typing import List

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.models.property import Property
from backend.app.models.user import User


def get_owned_property_ids(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[int]:
    return [row.id for row in db.query(Property.id).filter(Property.landlord_id == current_user.id).all()]


def ensure_owned_property(db: Session, property_id: int, landlord_id: int) -> Property:
    prop = db.query(Property).filter(Property.id == property_id, Property.landlord_id == landlord_id).first()
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return prop
