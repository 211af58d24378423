"""Competition Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CompetitionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None


class CompetitionOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    organizer_id: int
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
