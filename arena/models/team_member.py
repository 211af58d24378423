"""Team member model."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from arena.database import Base, utcnow


class MemberStatus(str, enum.Enum):
    ACCEPTED = "accepted"
    ACTIVE = "active"
    PENDING = "pending"


# Statuses that hold a seat on the team
SEATED = (MemberStatus.ACCEPTED, MemberStatus.ACTIVE)


class TeamMember(Base):
    __tablename__ = "team_members"

    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    is_captain: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[MemberStatus] = mapped_column(Enum(MemberStatus), default=MemberStatus.ACCEPTED)
    role_pref: Mapped[Optional[str]] = mapped_column(String(100))

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
