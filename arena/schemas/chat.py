"""Team chat schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class MessageCreate(BaseModel):
    message: str


class MessageOut(BaseModel):
    id: int
    team_id: int
    sender_id: int
    sender_name: Optional[str] = None
    message: str
    created_at: Optional[datetime] = None


class ChatHistoryOut(BaseModel):
    messages: List[MessageOut]
