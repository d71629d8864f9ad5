from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PropertyCreate(BaseModel):
    nickname: str = Field(min_length=1, max_length=255)
    address: Optional[str] = None


class PropertyRead(PropertyCreate):
    id: int
    landlord_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
