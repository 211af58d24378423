"""Matching router – seekers find teams by skill overlap and ask to join."""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.matching import JoinRequestOut, SkillSearch, SuggestedTeamOut, TeamSearchOut
from arena.schemas.team import TeamOut
from arena.services import joining
from arena.services.notifications import send_join_request_email
from arena.services.teams import get_team, get_user

router = APIRouter(prefix="/match", tags=["matching"])


@router.post("/teams-for-me", response_model=TeamSearchOut)
async def teams_for_me(
    payload: SkillSearch,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Save the seeker's skills and return teams whose needs they cover, best first."""
    search = await joining.find_teams_for_user(
        db, current_user, payload.competition_id, payload.skills
    )
    return TeamSearchOut(
        skill_ids=search.skill_ids,
        teams=[
            SuggestedTeamOut(
                team=TeamOut.model_validate(s.team),
                score=s.score,
                needed_role=s.needed_role,
            )
            for s in search.teams
        ],
        pending=search.pending,
        message=search.message or None,
    )


@router.post("/join/{team_id}", response_model=JoinRequestOut, status_code=status.HTTP_201_CREATED)
async def request_to_join(
    team_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Ask the captain of a suggested team to take the current user on."""
    req = await joining.request_to_join(db, current_user, team_id)

    team = await get_team(db, team_id)
    captain = await get_user(db, team.owner_id)
    background_tasks.add_task(
        send_join_request_email,
        recipient_email=captain.email,
        team_name=team.name,
        requester_name=current_user.full_name or current_user.email,
    )

    return JoinRequestOut(
        id=req.id,
        team_id=req.team_id,
        user_id=req.user_id,
        status=req.status.value,
        requested_at=req.requested_at,
        team_name=team.name,
        requester_name=current_user.full_name,
        requester_email=current_user.email,
    )
