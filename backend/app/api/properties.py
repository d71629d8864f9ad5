"""Minimal property endpoints: enough for landlords to own something billable."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.models.property import Property
from backend.app.models.user import User
from backend.app.schemas.property import PropertyCreate, PropertyRead

router = APIRouter(prefix="/properties", tags=["properties"])


@router.post("/", response_model=PropertyRead, status_code=status.HTTP_201_CREATED)
async def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = Property(landlord_id=current_user.id, **payload.model_dump())
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


@router.get("/", response_model=List[PropertyRead])
async def list_properties(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return (
        db.query(Property)
        .filter(Property.landlord_id == current_user.id)
        .order_by(Property.created_at.desc(), Property.id.desc())
        .all()
    )
