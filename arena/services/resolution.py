"""
Two-party approval flows: invitations (captain -> candidate) and join
requests (candidate -> captain).

A decision validates the status transition, applies its side effects and
deletes the row, all in one transaction.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import atomic
from arena.exceptions import NotFound, PermissionDenied
from arena.models.join_request import RequestStatus, TeamJoinRequest
from arena.models.notification import NotificationKind
from arena.models.team import Team
from arena.models.team_invitation import InvitationStatus, TeamInvitation
from arena.models.team_member import TeamMember
from arena.models.user import User
from arena.services import events
from arena.services.notifications import notify
from arena.services.teams import add_member, get_team
from arena.services.transitions import INVITATION_TRANSITIONS, JOIN_REQUEST_TRANSITIONS, transition

logger = logging.getLogger(__name__)


@dataclass
class Decision:
    status: str
    team_id: int
    user_id: int
    member: Optional[TeamMember] = None


def _display(user: User) -> str:
    return user.full_name or user.email


# ═══════════════════════════════════════════════════════════════
#  Invitations
# ═══════════════════════════════════════════════════════════════

async def respond_to_invitation(
    db: AsyncSession, actor: User, invitation_id: int, accept: bool
) -> Decision:
    """
    The invitee accepts or rejects; the captain may only reject (revoke).

    Accepting seats the invitee (which also clears their join intents for
    the competition) and removes the invitation.
    """
    async with atomic(db):
        inv = await db.get(TeamInvitation, invitation_id)
        if inv is None:
            raise NotFound("Invitation not found.")
        team = await get_team(db, inv.team_id)

        is_invitee = inv.user_id == actor.id
        is_captain = team.owner_id == actor.id
        if not (is_invitee or (is_captain and not accept)):
            raise PermissionDenied("Not authorized to respond to this invitation.")

        target = InvitationStatus.ACCEPTED if accept else InvitationStatus.REJECTED
        inv.status = transition(INVITATION_TRANSITIONS, inv.status, target)

        member = None
        if accept:
            member = await add_member(db, team, inv.user_id)

        other_party = team.owner_id if is_invitee else inv.user_id
        verb = "accepted" if accept else ("rejected" if is_invitee else "withdrew")
        notif = await notify(
            db,
            other_party,
            NotificationKind.DECISION,
            f"{_display(actor)} {verb} the invitation for {team.name}",
            team_id=team.id,
            link=f"/teams/{team.id}",
        )
        await db.delete(inv)

    await events.invitation_closed(inv)
    await events.notifications_created([notif])
    logger.info("Invitation %s %s by user %s", invitation_id, target.value, actor.id)
    return Decision(status=target.value, team_id=team.id, user_id=inv.user_id, member=member)


async def list_invitations_for_user(db: AsyncSession, user: User) -> List[tuple]:
    """``(invitation, team)`` pairs addressed to ``user``, newest first."""
    result = await db.execute(
        select(TeamInvitation, Team)
        .join(Team, Team.id == TeamInvitation.team_id)
        .where(TeamInvitation.user_id == user.id)
        .order_by(TeamInvitation.created_at.desc(), TeamInvitation.id.desc())
    )
    return list(result.all())


# ═══════════════════════════════════════════════════════════════
#  Join requests
# ═══════════════════════════════════════════════════════════════

async def respond_to_join_request(
    db: AsyncSession, actor: User, request_id: int, accept: bool
) -> Decision:
    """The team owner accepts or rejects; the request row is removed either way."""
    async with atomic(db):
        req = await db.get(TeamJoinRequest, request_id)
        if req is None:
            raise NotFound("Join request not found.")
        team = await get_team(db, req.team_id)
        if team.owner_id != actor.id:
            raise PermissionDenied("Only the team captain can answer join requests.")

        target = RequestStatus.ACCEPTED if accept else RequestStatus.REJECTED
        req.status = transition(JOIN_REQUEST_TRANSITIONS, req.status, target)

        member = None
        if accept:
            member = await add_member(db, team, req.user_id)

        notif = await notify(
            db,
            req.user_id,
            NotificationKind.DECISION,
            f"{_display(actor)} {target.value} your request to join {team.name}",
            team_id=team.id,
            link=f"/teams/{team.id}",
        )
        await db.delete(req)

    await events.join_request_closed(req, team.owner_id)
    await events.notifications_created([notif])
    logger.info("Join request %s %s by user %s", request_id, target.value, actor.id)
    return Decision(status=target.value, team_id=team.id, user_id=req.user_id, member=member)


async def list_join_requests_for_owner(db: AsyncSession, owner: User) -> List[tuple]:
    """``(request, team, requester)`` rows on teams ``owner`` captains, newest first."""
    result = await db.execute(
        select(TeamJoinRequest, Team, User)
        .join(Team, Team.id == TeamJoinRequest.team_id)
        .join(User, User.id == TeamJoinRequest.user_id)
        .where(Team.owner_id == owner.id)
        .order_by(TeamJoinRequest.requested_at.desc(), TeamJoinRequest.id.desc())
    )
    return list(result.all())
