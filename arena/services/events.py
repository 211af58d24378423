"""Row payloads pushed through the change feed once a transaction commits."""

from typing import Any, Dict, Iterable

from arena.models.join_request import TeamJoinRequest
from arena.models.notification import Notification
from arena.models.team_invitation import TeamInvitation
from arena.realtime import DELETE, INSERT, change_feed
from arena.services.notifications import publish_notification


def _iso(value) -> str:
    return value.isoformat() if value else ""


def invitation_payload(inv: TeamInvitation) -> Dict[str, Any]:
    return {
        "id": inv.id,
        "team_id": inv.team_id,
        "user_id": inv.user_id,
        "status": inv.status.value,
        "created_at": _iso(inv.created_at),
    }


def join_request_payload(req: TeamJoinRequest, owner_id: int) -> Dict[str, Any]:
    # owner_id lets captains filter on requests for the teams they own
    return {
        "id": req.id,
        "team_id": req.team_id,
        "user_id": req.user_id,
        "owner_id": owner_id,
        "status": req.status.value,
        "requested_at": _iso(req.requested_at),
    }


async def invitation_created(inv: TeamInvitation) -> None:
    await change_feed.publish("team_invitations", INSERT, new=invitation_payload(inv))


async def invitation_closed(inv: TeamInvitation) -> None:
    await change_feed.publish("team_invitations", DELETE, old=invitation_payload(inv))


async def join_request_created(req: TeamJoinRequest, owner_id: int) -> None:
    await change_feed.publish(
        "team_join_requests", INSERT, new=join_request_payload(req, owner_id)
    )


async def join_request_closed(req: TeamJoinRequest, owner_id: int) -> None:
    await change_feed.publish(
        "team_join_requests", DELETE, old=join_request_payload(req, owner_id)
    )


async def notifications_created(notifs: Iterable[Notification]) -> None:
    for notif in notifs:
        await publish_notification(notif)
