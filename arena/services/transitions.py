"""
Status state machines for teams, invitations and join requests.

Every status change goes through :func:`transition`, which rejects moves the
tables below do not list.
"""

from typing import Dict, FrozenSet, Mapping, TypeVar

from arena.exceptions import InvalidTransition
from arena.models.join_request import RequestStatus
from arena.models.team import TeamStatus
from arena.models.team_invitation import InvitationStatus

S = TypeVar("S")

INVITATION_TRANSITIONS: Dict[InvitationStatus, FrozenSet[InvitationStatus]] = {
    InvitationStatus.PENDING: frozenset({InvitationStatus.ACCEPTED, InvitationStatus.REJECTED}),
    InvitationStatus.ACCEPTED: frozenset(),
    InvitationStatus.REJECTED: frozenset(),
}

JOIN_REQUEST_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.ACCEPTED, RequestStatus.REJECTED}),
    RequestStatus.ACCEPTED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}

# Search results flip a team between recruiting and waiting, in either direction
TEAM_TRANSITIONS: Dict[TeamStatus, FrozenSet[TeamStatus]] = {
    TeamStatus.OPEN: frozenset({TeamStatus.OPEN, TeamStatus.PENDING}),
    TeamStatus.PENDING: frozenset({TeamStatus.OPEN, TeamStatus.PENDING}),
}


def transition(table: Mapping[S, FrozenSet[S]], current: S, target: S) -> S:
    """Return ``target`` if ``current -> target`` is allowed, else raise."""
    allowed = table.get(current)
    if allowed is None:
        raise InvalidTransition(f"Unknown status {current!r}")
    if target not in allowed:
        raise InvalidTransition(
            f"Cannot move from {_label(current)} to {_label(target)}"
        )
    return target


def is_terminal(table: Mapping[S, FrozenSet[S]], status: S) -> bool:
    return not table.get(status)


def _label(status) -> str:
    return getattr(status, "value", str(status))
