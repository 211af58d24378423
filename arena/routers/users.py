"""Users router – profile and declared-skill lookups."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.skill import Skill, UserSkill
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.user import SkillOut, UserOut, UserSkillsOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(require_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.get("/me/skills", response_model=UserSkillsOut)
async def read_my_skills(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """The skill snapshot saved by the user's last team search."""
    result = await db.execute(
        select(Skill)
        .join(UserSkill, UserSkill.skill_id == Skill.id)
        .where(UserSkill.user_id == current_user.id)
        .order_by(Skill.slug)
    )
    skills = [SkillOut.model_validate(s) for s in result.scalars().all()]
    return UserSkillsOut(user_id=current_user.id, skills=skills)


@router.get("/{user_id}", response_model=UserOut)
async def read_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """Get a public user profile by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
