"""Skill models: normalized skill slugs and the per-user skill snapshot."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arena.database import Base

SLUG_MAX_LENGTH = 150


class Skill(Base):
    __tablename__ = "skills"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    slug: Mapped[str] = mapped_column(String(SLUG_MAX_LENGTH), unique=True, nullable=False)


class UserSkill(Base):
    __tablename__ = "user_skills"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    skill_id: Mapped[int] = mapped_column(
        ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True
    )

    # ── Relationships ──
    user: Mapped["User"] = relationship("User", back_populates="skills")  # noqa: F821
    skill: Mapped[Skill] = relationship(Skill, lazy="joined")
