"""Schemas for the seeker side: team search, join requests, decisions."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from arena.schemas.team import TeamOut


class SkillSearch(BaseModel):
    competition_id: int
    # Comma separated, e.g. "React, SQL"
    skills: str


class SuggestedTeamOut(BaseModel):
    team: TeamOut
    score: float
    needed_role: Optional[str] = None


class TeamSearchOut(BaseModel):
    skill_ids: List[int]
    teams: List[SuggestedTeamOut]
    pending: bool
    message: Optional[str] = None


class JoinRequestOut(BaseModel):
    id: int
    team_id: int
    user_id: int
    status: str
    requested_at: Optional[datetime] = None
    team_name: Optional[str] = None
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None


class InvitationOut(BaseModel):
    id: int
    team_id: int
    user_id: int
    status: str
    created_at: Optional[datetime] = None
    team_name: Optional[str] = None


class DecisionIn(BaseModel):
    action: Literal["accept", "reject"]


class DecisionOut(BaseModel):
    status: str
    team_id: int
    user_id: int
