"""
Domain errors raised by the services. Each carries the HTTP status it maps to;
main.py turns them into {"detail": "..."} responses.
"""
from fastapi import status


class AccessError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ConflictError(AccessError):
    """An open access request (or stakeholder access) already exists for the pair."""
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(AccessError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AccessError):
    status_code = status.HTTP_404_NOT_FOUND


class NoOpError(AccessError):
    """Target already in the requested state. Nothing was written."""
    status_code = status.HTTP_400_BAD_REQUEST


class SelfActionForbiddenError(AccessError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AccessError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AccessError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidInputError(AccessError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
