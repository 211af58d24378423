"""Teams router – captain side of team formation."""

from typing import Dict, Iterable, List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.team import TeamNeed
from arena.models.team_member import TeamMember
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.team import (
    CandidateOut,
    InviteBatchOut,
    InviteCreate,
    InviteOutcomeOut,
    MemberOut,
    NeedsResultOut,
    NeedsUpdate,
    RegistrationOut,
    TeamCreate,
    TeamDetail,
    TeamNeedOut,
    TeamOut,
)
from arena.services import teams as team_service
from arena.services.matching import ScoredCandidate
from arena.services.notifications import send_invitation_email
from arena.services.skills import skill_slugs

router = APIRouter(prefix="/teams", tags=["teams"])

NO_CANDIDATES_MESSAGE = (
    "So far no one with these skills is looking for a team. "
    "Your team has been marked as pending; we will notify you."
)


async def _users_by_id(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
    ids = list(user_ids)
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}


async def _need_out(db: AsyncSession, need: TeamNeed) -> TeamNeedOut:
    return TeamNeedOut(
        team_id=need.team_id,
        needed_role=need.needed_role,
        needed_skills=list(need.needed_skills or []),
        skill_slugs=await skill_slugs(db, need.needed_skills or []),
    )


async def _candidates_out(db: AsyncSession, candidates: List[ScoredCandidate]) -> List[CandidateOut]:
    users = await _users_by_id(db, [c.user_id for c in candidates])
    return [
        CandidateOut(
            user_id=c.user_id,
            full_name=users[c.user_id].full_name if c.user_id in users else None,
            score=c.score,
        )
        for c in candidates
    ]


@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a team with the current user as captain."""
    return await team_service.create_team(db, current_user, payload.competition_id, payload.name)


@router.get("/{team_id}", response_model=TeamDetail)
async def team_detail(
    team_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Team, its declared need, and its roster."""
    team = await team_service.get_team(db, team_id)
    need = await team_service.get_need(db, team_id)

    result = await db.execute(
        select(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.is_captain.desc(), TeamMember.joined_at)
    )
    members = [
        MemberOut(
            user_id=mem.user_id,
            full_name=usr.full_name,
            is_captain=mem.is_captain,
            status=mem.status.value,
            joined_at=mem.joined_at,
        )
        for mem, usr in result.all()
    ]
    return TeamDetail(
        team=TeamOut.model_validate(team),
        need=await _need_out(db, need) if need else None,
        members=members,
    )


@router.put("/{team_id}/needs", response_model=NeedsResultOut)
async def update_needs(
    team_id: int,
    payload: NeedsUpdate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Declare what the team is hiring for and get matching candidates back."""
    result = await team_service.declare_needs(
        db, current_user, team_id, payload.needed_role, payload.skills
    )
    candidates = await _candidates_out(db, result.candidates)
    return NeedsResultOut(
        need=await _need_out(db, result.need),
        status=result.status.value,
        candidates=candidates,
        message=None if candidates else NO_CANDIDATES_MESSAGE,
    )


@router.get("/{team_id}/candidates", response_model=List[CandidateOut])
async def list_candidates(
    team_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Re-run the candidate search for the team's current need."""
    candidates = await team_service.find_candidates(db, current_user, team_id)
    return await _candidates_out(db, candidates)


@router.post("/{team_id}/invitations", response_model=InviteBatchOut, status_code=status.HTTP_201_CREATED)
async def send_invitations(
    team_id: int,
    payload: InviteCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Captain invites one or more candidates."""
    batch = await team_service.send_invitations(db, current_user, team_id, payload.user_ids)

    team = await team_service.get_team(db, team_id)
    invitees = await _users_by_id(db, [inv.user_id for inv in batch.invited])
    for invitee in invitees.values():
        background_tasks.add_task(
            send_invitation_email,
            recipient_email=invitee.email,
            team_name=team.name,
            captain_name=current_user.full_name or current_user.email,
        )

    return InviteBatchOut(
        invited=len(batch.invited),
        outcomes=[
            InviteOutcomeOut(
                user_id=o.user_id,
                invitation_id=o.invitation.id if o.invitation else None,
                skipped=o.skipped,
            )
            for o in batch.outcomes
        ],
    )


@router.post("/{team_id}/registration", response_model=RegistrationOut)
async def register_team(
    team_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Register the team for its competition. Safe to repeat."""
    return await team_service.register_team(db, current_user, team_id)
