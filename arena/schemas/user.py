"""User Pydantic schemas: profile output."""

from typing import List, Optional

from pydantic import BaseModel


class UserOut(BaseModel):
    """Public user representation returned by the API."""
    id: int
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class SkillOut(BaseModel):
    id: int
    slug: str

    model_config = {"from_attributes": True}


class UserSkillsOut(BaseModel):
    user_id: int
    skills: List[SkillOut]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
