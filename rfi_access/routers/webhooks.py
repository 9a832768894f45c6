"""
Inbound email webhook log. Providers POST form data (Mailgun) or JSON; a short summary is
kept in the bounded webhook log for debugging delivery. Admins read it back.
"""
import json
import logging
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, Request
from rfi_access.auth import require_action
from rfi_access.core.runtime import Runtime, get_runtime
from rfi_access.models.user import User
from rfi_access.services import policy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

LOGGED_HEADERS = ("user-agent", "content-type", "x-forwarded-for")


async def _read_body(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if "form" in content_type:
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {"error": "Could not parse body"}
    return data if isinstance(data, dict) else {"value": data}


@router.post("/email")
async def log_email_webhook(request: Request, runtime: Runtime = Depends(get_runtime)):
    body = await _read_body(request)
    entry = {
        "id": str(uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "headers": {h: request.headers.get(h) for h in LOGGED_HEADERS},
        "recipient": body.get("recipient") or body.get("to") or "unknown",
        "sender": body.get("sender") or body.get("from") or "unknown",
        "subject": body.get("subject") or "no subject",
        "body": body,
    }
    runtime.webhook_log.append(entry)
    logger.info("Email webhook logged: %s -> %s", entry["sender"], entry["recipient"])
    return {"success": True, "message": "Webhook logged", "log_id": entry["id"]}


@router.get("/email")
def list_email_webhooks(
    _admin: User = Depends(require_action(policy.Action.WEBHOOK_LOG_VIEW)),
    runtime: Runtime = Depends(get_runtime),
):
    logs = runtime.webhook_log.entries()
    return {"message": "Recent webhook logs", "count": len(logs), "logs": logs}
