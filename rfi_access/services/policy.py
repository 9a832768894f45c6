"""
Single place for role checks. Routers and admin actions call evaluate()/enforce()
with (actor, action, resource) instead of comparing roles inline.
"""
import enum
from dataclasses import dataclass
from typing import Any

from rfi_access.errors import ForbiddenError
from rfi_access.models.user import User, UserRole


class Action(str, enum.Enum):
    ACCESS_REQUEST_SUBMIT = "access_request.submit"
    ACCESS_REQUEST_LIST = "access_request.list"
    ACCESS_REQUEST_DECIDE = "access_request.decide"
    ACCESS_REQUEST_REVOKE = "access_request.revoke"
    USER_ACTIVATE = "user.activate"
    USER_DEACTIVATE = "user.deactivate"
    EMAIL_TEST = "email.test"
    EVENT_LOG_VIEW = "event_log.view"
    WEBHOOK_LOG_VIEW = "webhook_log.view"


# Actions open to any active, authenticated user. Everything else is admin only.
OPEN_ACTIONS = {Action.ACCESS_REQUEST_SUBMIT}


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: str = ""


def evaluate(actor: User | None, action: Action, resource: Any = None) -> PolicyDecision:
    if actor is None:
        return PolicyDecision(False, "Not authenticated")
    if not actor.active:
        return PolicyDecision(False, "Account is deactivated.")
    if action in OPEN_ACTIONS:
        return PolicyDecision(True)
    if actor.role != UserRole.ADMIN.value:
        return PolicyDecision(False, "Admin access required")
    return PolicyDecision(True)


def enforce(actor: User | None, action: Action, resource: Any = None) -> None:
    """Raise ForbiddenError unless evaluate() allows."""
    decision = evaluate(actor, action, resource)
    if not decision.allowed:
        raise ForbiddenError(decision.reason)
