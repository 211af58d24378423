"""Domain errors raised by the service layer and mapped to HTTP responses."""

from fastapi import status


class ArenaError(Exception):
    """Base class; carries the HTTP status the API reports it with."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationFailed(ArenaError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(ArenaError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ArenaError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ArenaError):
    status_code = status.HTTP_409_CONFLICT


class DuplicateInvitation(Conflict):
    pass


class DuplicateJoinRequest(Conflict):
    pass


class AlreadyMember(Conflict):
    pass


class AlreadyOnTeam(Conflict):
    """User already holds an accepted seat on another team of the competition."""


class InvalidTransition(Conflict):
    pass
