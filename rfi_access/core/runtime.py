"""
Process-wide runtime objects: event bus, recent event log, inbound webhook log and
notification gateway. Built lazily on first use; listeners are registered once.
Routers get them through the get_* dependencies so tests can override them.
"""
import logging

from rfi_access.config import get_settings
from rfi_access.services.event_bus import Event, EventBus
from rfi_access.services.notification_listeners import NotificationListeners
from rfi_access.services.notifications import NotificationGateway
from rfi_access.services.recent_log import RecentLog

logger = logging.getLogger(__name__)


class Runtime:
    def __init__(
        self,
        bus: EventBus,
        event_log: RecentLog,
        webhook_log: RecentLog,
        gateway: NotificationGateway,
    ):
        self.bus = bus
        self.event_log = event_log
        self.webhook_log = webhook_log
        self.gateway = gateway

    def record_event(self, event: Event) -> None:
        self.event_log.append(event.to_dict())


def build_runtime(gateway: NotificationGateway | None = None) -> Runtime:
    """Wire a fresh bus with the notification listeners and the recent-event log."""
    settings = get_settings()
    gateway = gateway or NotificationGateway(settings)
    runtime = Runtime(
        bus=EventBus(),
        event_log=RecentLog(settings.event_log_capacity),
        webhook_log=RecentLog(settings.webhook_log_capacity),
        gateway=gateway,
    )
    NotificationListeners(gateway, settings.admin_notification_emails).register(runtime.bus)
    runtime.bus.subscribe_all(runtime.record_event)
    logger.info("Runtime ready (email provider: %s)", settings.email_provider)
    return runtime


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    """Lazy singleton."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime()
    return _runtime


def reset_runtime() -> None:
    global _runtime
    _runtime = None
