"""Join-requests router – captains review who asked to join their teams."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.matching import DecisionIn, DecisionOut, JoinRequestOut
from arena.services import resolution

router = APIRouter(prefix="/join-requests", tags=["join-requests"])


@router.get("", response_model=List[JoinRequestOut])
async def requests_for_my_teams(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Requests on every team the current user captains, newest first."""
    rows = await resolution.list_join_requests_for_owner(db, current_user)
    return [
        JoinRequestOut(
            id=req.id,
            team_id=req.team_id,
            user_id=req.user_id,
            status=req.status.value,
            requested_at=req.requested_at,
            team_name=team.name,
            requester_name=requester.full_name,
            requester_email=requester.email,
        )
        for req, team, requester in rows
    ]


@router.post("/{request_id}/respond", response_model=DecisionOut)
async def respond_join_request(
    request_id: int,
    payload: DecisionIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Captain accepts or rejects a join request."""
    decision = await resolution.respond_to_join_request(
        db, current_user, request_id, accept=payload.action == "accept"
    )
    return DecisionOut(status=decision.status, team_id=decision.team_id, user_id=decision.user_id)
