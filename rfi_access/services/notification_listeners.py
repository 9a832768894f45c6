"""
Event bus subscribers that email contacts, users and admins about workflow changes.
Failures are logged and dropped; the transition that raised the event is already committed.
"""
import logging

from rfi_access.errors import InvalidInputError
from rfi_access.models.access_request import AccessRequestStatus
from rfi_access.services.event_bus import Event, EventBus, EventType
from rfi_access.services.notifications import NotificationGateway, validate_recipient

logger = logging.getLogger(__name__)

DECISION_TEMPLATES = {
    AccessRequestStatus.APPROVED.value: "access-request-approved",
    AccessRequestStatus.REJECTED.value: "access-request-rejected",
}


class NotificationListeners:
    def __init__(self, gateway: NotificationGateway, admin_emails: list[str] | None = None):
        self.gateway = gateway
        self.admin_emails = list(admin_emails or [])

    def register(self, bus: EventBus) -> None:
        bus.subscribe(EventType.ACCESS_REQUEST_SUBMITTED, self.on_submitted)
        bus.subscribe(EventType.ACCESS_REQUEST_AUTO_APPROVED, self.on_auto_approved)
        bus.subscribe(EventType.ACCESS_REQUEST_DECIDED, self.on_decided)
        bus.subscribe(EventType.ACCESS_REQUEST_REVOKED, self.on_revoked)
        bus.subscribe(EventType.USER_ACTIVATED, self.on_user_activated)
        bus.subscribe(EventType.USER_DEACTIVATED, self.on_user_deactivated)

    def on_submitted(self, event: Event) -> None:
        for address in self.admin_emails:
            self._notify("access-request-received", address, event.payload)

    def on_auto_approved(self, event: Event) -> None:
        self._notify("access-request-approved", event.payload.get("contact_email"), event.payload)

    def on_decided(self, event: Event) -> None:
        template_id = DECISION_TEMPLATES.get(event.payload.get("status"))
        if template_id:
            self._notify(template_id, event.payload.get("contact_email"), event.payload)

    def on_revoked(self, event: Event) -> None:
        self._notify("access-request-revoked", event.payload.get("contact_email"), event.payload)

    def on_user_activated(self, event: Event) -> None:
        self._notify("account-activated", event.payload.get("email"), event.payload)

    def on_user_deactivated(self, event: Event) -> None:
        self._notify("account-deactivated", event.payload.get("email"), event.payload)

    def _notify(self, template_id: str, address: str | None, data: dict) -> bool:
        try:
            recipient = validate_recipient(address)
        except InvalidInputError as e:
            logger.warning("Skipping %s notification: %s", template_id, e.detail)
            return False
        result = self.gateway.send(template_id, recipient, data)
        if not result.success:
            logger.warning("Notification %s to %s failed: %s", template_id, recipient, result.error)
        return result.success
