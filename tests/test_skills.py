import pytest
from sqlalchemy import select

from arena.exceptions import ValidationFailed
from arena.models.skill import SLUG_MAX_LENGTH, Skill, UserSkill
from arena.services.skills import (
    ensure_skill_ids,
    normalize_skill_names,
    replace_user_skills,
    skill_slugs,
)


def test_normalize_trims_lowercases_and_dedupes():
    assert normalize_skill_names(" React , node,, SQL ,react") == ["react", "node", "sql"]


def test_normalize_accepts_iterables_and_none():
    assert normalize_skill_names(["Go", "  go ", "", "Rust"]) == ["go", "rust"]
    assert normalize_skill_names(None) == []
    assert normalize_skill_names(" , ,") == []


async def test_ensure_skill_ids_is_stable_across_spellings(db):
    first = await ensure_skill_ids(db, "React, SQL")
    second = await ensure_skill_ids(db, "sql,  REACT ")
    await db.commit()

    assert len(first) == 2
    assert second == [first[1], first[0]]

    result = await db.execute(select(Skill.slug).order_by(Skill.slug))
    assert result.scalars().all() == ["react", "sql"]


async def test_ensure_skill_ids_empty_input_creates_nothing(db):
    assert await ensure_skill_ids(db, "  ,  ") == []
    result = await db.execute(select(Skill))
    assert result.scalars().all() == []


async def test_replace_user_skills_overwrites_snapshot(db, make_user):
    user = await make_user("seeker@example.com")
    old = await ensure_skill_ids(db, "java, c")
    await replace_user_skills(db, user.id, old)
    new = await ensure_skill_ids(db, "python")
    await replace_user_skills(db, user.id, new)
    await db.commit()

    result = await db.execute(select(UserSkill.skill_id).where(UserSkill.user_id == user.id))
    assert result.scalars().all() == new


async def test_skill_slugs_keeps_order(db):
    ids = await ensure_skill_ids(db, "b, a, c")
    assert await skill_slugs(db, list(reversed(ids))) == ["c", "a", "b"]


def test_normalize_rejects_names_longer_than_a_slug():
    with pytest.raises(ValidationFailed):
        normalize_skill_names("react, " + "x" * (SLUG_MAX_LENGTH + 1))
    assert normalize_skill_names("y" * SLUG_MAX_LENGTH) == ["y" * SLUG_MAX_LENGTH]


async def test_overlong_skill_creates_nothing(db):
    with pytest.raises(ValidationFailed):
        await ensure_skill_ids(db, "z" * 200)
    result = await db.execute(select(Skill))
    assert result.scalars().all() == []
