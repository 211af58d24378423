"""Team registration model: links a team to the competition it competes in."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from arena.database import Base, utcnow


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"


class TeamRegistration(Base):
    __tablename__ = "team_registrations"
    __table_args__ = (
        UniqueConstraint("team_id", "competition_id", name="uq_registration_team_competition"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    competition_id: Mapped[int] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(RegistrationStatus), default=RegistrationStatus.REGISTERED
    )
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
