"""Join intent model: a seeker nobody matched yet, kept for captains to find."""

import enum
from datetime import datetime
from typing import List

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from arena.database import Base, utcnow


class IntentStatus(str, enum.Enum):
    PENDING = "pending"


class JoinIntent(Base):
    __tablename__ = "join_intents"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    competition_id: Mapped[int] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    desired_skills: Mapped[List[int]] = mapped_column(JSON, default=list)
    status: Mapped[IntentStatus] = mapped_column(Enum(IntentStatus), default=IntentStatus.PENDING)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
