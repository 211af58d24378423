"""Team and TeamNeed models."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arena.database import Base, utcnow


class TeamStatus(str, enum.Enum):
    OPEN = "open"         # recruiting, candidates exist
    PENDING = "pending"   # waiting for matching candidates


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    competition_id: Mapped[int] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    status: Mapped[TeamStatus] = mapped_column(Enum(TeamStatus), default=TeamStatus.OPEN)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    need: Mapped[Optional["TeamNeed"]] = relationship(
        "TeamNeed", back_populates="team", uselist=False, cascade="all, delete-orphan"
    )


class TeamNeed(Base):
    """What a captain is hiring for. One row per team, upserted on edit."""

    __tablename__ = "team_needs"

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    needed_role: Mapped[Optional[str]] = mapped_column(String(200))
    # Ordered skill ids, as declared by the captain
    needed_skills: Mapped[List[int]] = mapped_column(JSON, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    team: Mapped[Team] = relationship(Team, back_populates="need")
