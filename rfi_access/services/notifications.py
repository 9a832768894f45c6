"""
Notification gateway: renders an email template and hands it to the configured provider.
send() never raises; every failure (unknown template, transport error, timeout,
non-2xx response) comes back as NotificationResult(success=False, error=...).
Recipient addresses are validated by callers with validate_recipient() before send().
"""
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import EmailStr, TypeAdapter, ValidationError

from rfi_access.config import Settings, get_settings
from rfi_access.errors import InvalidInputError

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    body: str


TEMPLATES: dict[str, EmailTemplate] = {
    "access-request-received": EmailTemplate(
        subject="New access request for {project_name}",
        body=(
            "{contact_name} <{contact_email}> requested {requested_role} access to project "
            "{project_number} ({project_name}).\n\nJustification: {justification}\n"
        ),
    ),
    "access-request-approved": EmailTemplate(
        subject="Access approved: {project_name}",
        body=(
            "Hello {contact_name},\n\nYour request for access to project {project_number} "
            "({project_name}) has been approved.\n"
        ),
    ),
    "access-request-rejected": EmailTemplate(
        subject="Access request declined: {project_name}",
        body=(
            "Hello {contact_name},\n\nYour request for access to project {project_number} "
            "({project_name}) was not approved. Contact the project administrator for details.\n"
        ),
    ),
    "access-request-revoked": EmailTemplate(
        subject="Access removed: {project_name}",
        body=(
            "Hello {contact_name},\n\nYour access to project {project_number} ({project_name}) "
            "has been revoked.\n"
        ),
    ),
    "account-activated": EmailTemplate(
        subject="Your RFI System account is active",
        body="Hello {full_name},\n\nYour account has been activated. You can log in again.\n",
    ),
    "account-deactivated": EmailTemplate(
        subject="Your RFI System account has been deactivated",
        body="Hello {full_name},\n\nYour account has been deactivated. Contact an administrator for help.\n",
    ),
    "test-email": EmailTemplate(
        subject="{provider} Test Email - RFI System",
        body=(
            "Email Configuration Test\n\nThis is a test email to verify your {provider} configuration.\n"
            "Timestamp: {timestamp}\nTest recipient: {recipient}\n"
        ),
    ),
}


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: str | None = None


class _Defaults(dict):
    """format_map mapping that renders missing keys as empty strings."""

    def __missing__(self, key):
        return ""


def validate_recipient(address: str | None) -> str:
    """Return the normalized address or raise InvalidInputError."""
    try:
        return str(_email_adapter.validate_python((address or "").strip()))
    except ValidationError:
        raise InvalidInputError(f"Invalid email address: {address!r}")


def render(template_id: str, data: dict[str, Any]) -> tuple[str, str]:
    template = TEMPLATES[template_id]
    values = _Defaults({k: "" if v is None else v for k, v in data.items()})
    return template.subject.format_map(values), template.body.format_map(values)


class NotificationGateway:
    def __init__(self, settings: Settings | None = None, client: httpx.Client | None = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def provider(self) -> str:
        return self.settings.email_provider

    def send(self, template_id: str, recipient: str, data: dict[str, Any] | None = None) -> NotificationResult:
        if template_id not in TEMPLATES:
            logger.warning("Unknown email template %r (recipient %s)", template_id, recipient)
            return NotificationResult(False, f"Unknown template: {template_id}")
        try:
            subject, body = render(template_id, data or {})
        except (ValueError, KeyError) as e:
            logger.warning("Rendering template %s failed: %s", template_id, e)
            return NotificationResult(False, f"Template rendering failed: {e}")

        if self.provider == "log":
            logger.info("Email [%s] to %s: %s\n%s", template_id, recipient, subject, body)
            return NotificationResult(True)
        if self.provider == "brevo":
            return self._send_brevo(recipient, subject, body)
        logger.warning("Email provider %r not configured; %s to %s not sent", self.provider, template_id, recipient)
        return NotificationResult(False, f"Unsupported email provider: {self.provider}")

    def _send_brevo(self, recipient: str, subject: str, body: str) -> NotificationResult:
        if not self.settings.brevo_api_key:
            return NotificationResult(False, "Brevo API key is not configured")
        payload = {
            "sender": {"email": self.settings.email_from},
            "to": [{"email": recipient}],
            "subject": subject,
            "textContent": body,
        }
        headers = {"api-key": self.settings.brevo_api_key, "accept": "application/json"}
        timeout = self.settings.notification_timeout_seconds
        try:
            if self._client is not None:
                res = self._client.post(self.settings.brevo_api_url, json=payload, headers=headers, timeout=timeout)
            else:
                with httpx.Client(timeout=timeout) as client:
                    res = client.post(self.settings.brevo_api_url, json=payload, headers=headers)
        except httpx.TimeoutException:
            logger.warning("Email to %s timed out after %ss", recipient, timeout)
            return NotificationResult(False, f"Timed out after {timeout}s")
        except httpx.HTTPError as e:
            logger.warning("Email to %s failed: %s", recipient, e)
            return NotificationResult(False, str(e))
        if res.status_code >= 300:
            logger.warning("Email to %s rejected by provider: %s %s", recipient, res.status_code, res.text[:200])
            return NotificationResult(False, f"Provider responded {res.status_code}")
        return NotificationResult(True)
