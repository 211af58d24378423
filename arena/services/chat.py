"""Team chat: seated members post to and read their team's message history."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import atomic
from arena.exceptions import PermissionDenied, ValidationFailed
from arena.models.team import Team
from arena.models.team_member import SEATED, TeamMember
from arena.models.team_message import TeamMessage
from arena.models.user import User
from arena.realtime import INSERT, change_feed
from arena.services.teams import get_team

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
HISTORY_LIMIT = 50


@dataclass
class ChatLine:
    message: TeamMessage
    sender_name: Optional[str]


async def seated_member_ids(db: AsyncSession, team_id: int) -> List[int]:
    result = await db.execute(
        select(TeamMember.user_id).where(
            TeamMember.team_id == team_id,
            TeamMember.status.in_(SEATED),
        )
    )
    return list(result.scalars().all())


async def _require_seat(db: AsyncSession, team: Team, user: User) -> List[int]:
    members = await seated_member_ids(db, team.id)
    if user.id not in members:
        raise PermissionDenied("Not a team member")
    return members


def message_payload(msg: TeamMessage, recipient_ids: List[int]) -> Dict[str, Any]:
    # recipient_ids lets each member's socket pick up only its own teams
    return {
        "id": msg.id,
        "team_id": msg.team_id,
        "sender_id": msg.sender_id,
        "message": msg.message,
        "created_at": msg.created_at.isoformat() if msg.created_at else "",
        "recipient_ids": recipient_ids,
    }


async def post_message(db: AsyncSession, user: User, team_id: int, text: str) -> TeamMessage:
    text = (text or "").strip()
    if not text:
        raise ValidationFailed("Message is empty.")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationFailed(f"Messages are limited to {MAX_MESSAGE_LENGTH} characters.")

    async with atomic(db):
        team = await get_team(db, team_id)
        members = await _require_seat(db, team, user)
        msg = TeamMessage(team_id=team.id, sender_id=user.id, message=text)
        db.add(msg)
        await db.flush()

    await change_feed.publish("team_messages", INSERT, new=message_payload(msg, members))
    logger.debug("User %s posted message %s to team %s", user.id, msg.id, team_id)
    return msg


async def list_messages(
    db: AsyncSession, user: User, team_id: int, limit: int = HISTORY_LIMIT
) -> List[ChatLine]:
    """The newest ``limit`` messages, returned oldest first."""
    team = await get_team(db, team_id)
    await _require_seat(db, team, user)

    result = await db.execute(
        select(TeamMessage, User.full_name)
        .join(User, User.id == TeamMessage.sender_id)
        .where(TeamMessage.team_id == team.id)
        .order_by(desc(TeamMessage.created_at), desc(TeamMessage.id))
        .limit(limit)
    )
    lines = [ChatLine(message=msg, sender_name=name) for msg, name in result.all()]
    lines.reverse()  # chronological order for display
    return lines
