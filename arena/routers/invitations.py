"""Invitations router – the invitee's inbox and their accept/reject decision."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.matching import DecisionIn, DecisionOut, InvitationOut
from arena.services import resolution

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get("", response_model=List[InvitationOut])
async def my_invitations(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Invitations addressed to the current user."""
    rows = await resolution.list_invitations_for_user(db, current_user)
    return [
        InvitationOut(
            id=inv.id,
            team_id=inv.team_id,
            user_id=inv.user_id,
            status=inv.status.value,
            created_at=inv.created_at,
            team_name=team.name,
        )
        for inv, team in rows
    ]


@router.post("/{invitation_id}/respond", response_model=DecisionOut)
async def respond_invitation(
    invitation_id: int,
    payload: DecisionIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Accept or reject an invitation. The captain may reject to withdraw it."""
    decision = await resolution.respond_to_invitation(
        db, current_user, invitation_id, accept=payload.action == "accept"
    )
    return DecisionOut(status=decision.status, team_id=decision.team_id, user_id=decision.user_id)
