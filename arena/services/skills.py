"""Skill normalization: free-text skill names -> stable skill ids."""

import logging
from typing import Iterable, List, Union

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import upsert
from arena.exceptions import ValidationFailed
from arena.models.skill import SLUG_MAX_LENGTH, Skill, UserSkill

logger = logging.getLogger(__name__)


def normalize_skill_names(raw: Union[str, Iterable[str], None]) -> List[str]:
    """
    Trim and lower-case skill names, dropping blanks and repeats.

    Accepts either a comma-separated string ("React, node ,SQL") or an
    iterable of names. Order of first occurrence is preserved.
    Raises ``ValidationFailed`` for a name longer than a slug column holds.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw

    seen = set()
    names = []
    for part in parts:
        name = (part or "").strip().lower()
        if len(name) > SLUG_MAX_LENGTH:
            raise ValidationFailed(f"Skill names are limited to {SLUG_MAX_LENGTH} characters.")
        if name and name not in seen:
            seen.add(name)
            names.append(name)
    return names


async def ensure_skill_ids(db: AsyncSession, raw: Union[str, Iterable[str], None]) -> List[int]:
    """Return skill ids for ``raw`` in input order, creating unknown slugs."""
    names = normalize_skill_names(raw)
    if not names:
        return []

    # Losing a creation race to another request is fine: the re-select below
    # picks up whichever row won.
    await upsert(db, Skill, [{"slug": name} for name in names], conflict=["slug"])

    result = await db.execute(select(Skill.id, Skill.slug).where(Skill.slug.in_(names)))
    by_slug = {slug: skill_id for skill_id, slug in result.all()}
    return [by_slug[name] for name in names]


async def replace_user_skills(db: AsyncSession, user_id: int, skill_ids: List[int]) -> None:
    """Overwrite a user's skill snapshot (delete all, then insert)."""
    await db.execute(delete(UserSkill).where(UserSkill.user_id == user_id))
    if skill_ids:
        await db.execute(
            insert(UserSkill), [{"user_id": user_id, "skill_id": sid} for sid in skill_ids]
        )
    logger.debug("User %s now has %d skills", user_id, len(skill_ids))


async def skill_slugs(db: AsyncSession, skill_ids: Iterable[int]) -> List[str]:
    """Resolve ids back to slugs, keeping the given order."""
    ids = list(skill_ids)
    if not ids:
        return []
    result = await db.execute(select(Skill.id, Skill.slug).where(Skill.id.in_(ids)))
    by_id = dict(result.all())
    return [by_id[sid] for sid in ids if sid in by_id]
