"""
Access requests: any active user submits on behalf of a contact; admins list, review and revoke.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from rfi_access.auth import require_action, require_active
from rfi_access.core.runtime import Runtime, get_runtime
from rfi_access.database import get_db
from rfi_access.models.access_request import AccessRequest, AccessRequestStatus
from rfi_access.models.user import User
from rfi_access.schemas.access_request import AccessRequestCreate, AccessRequestResponse, AccessRequestReview
from rfi_access.services import policy
from rfi_access.services.access_workflow import AccessWorkflow

router = APIRouter(prefix="/api/access-requests", tags=["access-requests"])


def _response(req: AccessRequest, has_access: bool | None = None) -> AccessRequestResponse:
    out = AccessRequestResponse.model_validate(req)
    out.currently_has_access = has_access
    return out


@router.post("", response_model=AccessRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_access_request(
    body: AccessRequestCreate,
    user: User = Depends(require_active),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """Submit an access request. May be approved immediately by an auto-approval rule."""
    policy.enforce(user, policy.Action.ACCESS_REQUEST_SUBMIT)
    workflow = AccessWorkflow(db, runtime.bus)
    req = workflow.submit_request(
        body.contact_id,
        body.project_id,
        body.requested_role.value,
        body.justification,
    )
    return _response(req, workflow.has_stakeholder_access(req.contact_id, req.project_id))


@router.get("", response_model=list[AccessRequestResponse])
def list_access_requests(
    status_filter: str | None = None,
    project_id: str | None = None,
    contact_id: str | None = None,
    _admin: User = Depends(require_action(policy.Action.ACCESS_REQUEST_LIST)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """List access requests (admin only), PENDING first. Optional ?status_filter=PENDING."""
    status_value = None
    if status_filter and status_filter.upper() in AccessRequestStatus.__members__:
        status_value = status_filter.upper()
    rows = AccessWorkflow(db, runtime.bus).list_requests(
        project_id=project_id,
        contact_id=contact_id,
        status=status_value,
    )
    return [_response(req, has_access) for req, has_access in rows]


@router.get("/{request_id}", response_model=AccessRequestResponse)
def get_access_request(
    request_id: str,
    _admin: User = Depends(require_action(policy.Action.ACCESS_REQUEST_LIST)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    workflow = AccessWorkflow(db, runtime.bus)
    req = workflow.get(request_id)
    return _response(req, workflow.has_stakeholder_access(req.contact_id, req.project_id))


@router.patch("/{request_id}", response_model=AccessRequestResponse)
def review_access_request(
    request_id: str,
    body: AccessRequestReview,
    admin: User = Depends(require_action(policy.Action.ACCESS_REQUEST_DECIDE)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """Approve or reject a PENDING request (admin only). Approval grants project access."""
    workflow = AccessWorkflow(db, runtime.bus)
    req = workflow.decide(request_id, body.status.value, admin.id)
    return _response(req, workflow.has_stakeholder_access(req.contact_id, req.project_id))


@router.post("/{request_id}/revoke", response_model=AccessRequestResponse)
def revoke_access_request(
    request_id: str,
    admin: User = Depends(require_action(policy.Action.ACCESS_REQUEST_REVOKE)),
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    """Revoke an APPROVED request (admin only). Removes project access."""
    workflow = AccessWorkflow(db, runtime.bus)
    req = workflow.revoke(request_id, admin.id)
    return _response(req, False)
