"""
Admin actions on user accounts: activate, deactivate, and the email configuration test.
Every change writes an AdminAuditLog row in the same transaction and publishes one event.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from rfi_access.errors import NoOpError, NotFoundError, SelfActionForbiddenError
from rfi_access.models.admin_audit_log import AdminAuditLog
from rfi_access.models.user import User
from rfi_access.services import policy
from rfi_access.services.event_bus import EventBus, EventType
from rfi_access.services.notifications import NotificationGateway, NotificationResult, validate_recipient

logger = logging.getLogger(__name__)


class AdminActions:
    def __init__(self, db: Session, bus: EventBus, gateway: NotificationGateway | None = None):
        self.db = db
        self.bus = bus
        self.gateway = gateway

    def activate_user(self, acting_admin: User, target_user_id: str) -> User:
        policy.enforce(acting_admin, policy.Action.USER_ACTIVATE, target_user_id)
        return self._set_active(acting_admin, target_user_id, True)

    def deactivate_user(self, acting_admin: User, target_user_id: str) -> User:
        policy.enforce(acting_admin, policy.Action.USER_DEACTIVATE, target_user_id)
        if target_user_id == acting_admin.id:
            raise SelfActionForbiddenError("Cannot deactivate your own account")
        return self._set_active(acting_admin, target_user_id, False)

    def send_test_email(self, acting_admin: User, recipient: str) -> NotificationResult:
        policy.enforce(acting_admin, policy.Action.EMAIL_TEST)
        address = validate_recipient(recipient)
        if self.gateway is None:
            return NotificationResult(False, "No notification gateway configured")
        return self.gateway.send(
            "test-email",
            address,
            {
                "provider": self.gateway.provider.upper(),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "recipient": address,
            },
        )

    def _set_active(self, acting_admin: User, target_user_id: str, active: bool) -> User:
        target = self.db.query(User).filter(User.id == target_user_id).first()
        if not target:
            raise NotFoundError("User not found")
        if target.active == active:
            raise NoOpError("User is already active" if active else "User is already inactive")

        previous = target.active
        action = "user.activate" if active else "user.deactivate"
        target.active = active
        target.updated_at = datetime.utcnow()
        audit = AdminAuditLog(
            action=action,
            target_user_id=target.id,
            previous_active=previous,
            new_active=active,
            acting_admin_id=acting_admin.id,
        )
        self.db.add(audit)
        self.db.commit()
        self.db.refresh(target)
        self.db.refresh(audit)

        logger.info(
            "User %s by admin %s: %s (%s)",
            "activated" if active else "deactivated",
            acting_admin.email,
            target.email,
            target.role,
        )
        self.bus.emit(
            EventType.USER_ACTIVATED if active else EventType.USER_DEACTIVATED,
            {
                "user_id": target.id,
                "email": target.email,
                "full_name": target.full_name or target.email,
                "previous_active": previous,
                "active": active,
                "acting_admin_id": acting_admin.id,
                "audit_id": audit.id,
                "timestamp": audit.created_at.isoformat(),
            },
        )
        return target
