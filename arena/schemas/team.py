"""Team Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TeamCreate(BaseModel):
    name: str
    competition_id: int


class TeamOut(BaseModel):
    id: int
    name: str
    competition_id: int
    owner_id: int
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NeedsUpdate(BaseModel):
    needed_role: Optional[str] = None
    # Comma separated, e.g. "React, Node.js"
    skills: str = ""


class TeamNeedOut(BaseModel):
    team_id: int
    needed_role: Optional[str] = None
    needed_skills: List[int] = []
    skill_slugs: List[str] = []


class MemberOut(BaseModel):
    user_id: int
    full_name: Optional[str] = None
    is_captain: bool
    status: str
    joined_at: Optional[datetime] = None


class TeamDetail(BaseModel):
    team: TeamOut
    need: Optional[TeamNeedOut] = None
    members: List[MemberOut] = []


class CandidateOut(BaseModel):
    user_id: int
    full_name: Optional[str] = None
    score: float


class NeedsResultOut(BaseModel):
    need: TeamNeedOut
    status: str
    candidates: List[CandidateOut]
    message: Optional[str] = None


class InviteCreate(BaseModel):
    user_ids: List[int] = Field(min_length=1)


class InviteOutcomeOut(BaseModel):
    user_id: int
    invitation_id: Optional[int] = None
    skipped: Optional[str] = None


class InviteBatchOut(BaseModel):
    invited: int
    outcomes: List[InviteOutcomeOut]


class RegistrationOut(BaseModel):
    id: int
    team_id: int
    competition_id: int
    status: str
    registered_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
