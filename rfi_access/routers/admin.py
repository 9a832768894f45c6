from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from rfi_access.auth import require_action
from rfi_access.core.runtime import Runtime, get_runtime
from rfi_access.database import get_db
from rfi_access.models.user import User
from rfi_access.schemas.user import AdminUserActionResponse, EmailTestRequest, EmailTestResponse, UserResponse
from rfi_access.services import policy
from rfi_access.services.admin_actions import AdminActions

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/users/{user_id}/activate", response_model=AdminUserActionResponse)
def activate_user(
    user_id: str,
    admin: User = Depends(require_action(policy.Action.USER_ACTIVATE)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """Activate a user account (admin only)."""
    user = AdminActions(db, runtime.bus).activate_user(admin, user_id)
    return AdminUserActionResponse(
        message=f"{user.full_name or user.email} has been activated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/users/{user_id}/deactivate", response_model=AdminUserActionResponse)
def deactivate_user(
    user_id: str,
    admin: User = Depends(require_action(policy.Action.USER_DEACTIVATE)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """Deactivate a user account (admin only). Admins cannot deactivate themselves."""
    user = AdminActions(db, runtime.bus).deactivate_user(admin, user_id)
    return AdminUserActionResponse(
        message=f"{user.full_name or user.email} has been deactivated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/test-email", response_model=EmailTestResponse)
def send_test_email(
    body: EmailTestRequest,
    admin: User = Depends(require_action(policy.Action.EMAIL_TEST)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """Send a test email through the configured provider (admin only)."""
    result = AdminActions(db, runtime.bus, runtime.gateway).send_test_email(admin, str(body.recipient))
    return EmailTestResponse(success=result.success, error=result.error)


@router.get("/events")
def recent_events(
    _admin: User = Depends(require_action(policy.Action.EVENT_LOG_VIEW)),
    runtime: Runtime = Depends(get_runtime),
):
    """Most recent workflow events, newest first (admin only)."""
    events = runtime.event_log.entries()
    return {"count": len(events), "capacity": runtime.event_log.capacity, "events": events}
