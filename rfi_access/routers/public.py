"""
Public access request form: no login. Finds the project by number or name, creates the
contact if it does not exist yet, and submits a STAKEHOLDER_L1 request.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from rfi_access.core.runtime import Runtime, get_runtime
from rfi_access.database import get_db
from rfi_access.errors import NotFoundError
from rfi_access.models.access_request import AccessRequestStatus
from rfi_access.models.project import Contact, Project
from rfi_access.models.user import UserRole
from rfi_access.schemas.access_request import PublicAccessRequestBody, PublicAccessRequestResponse
from rfi_access.services.access_workflow import AccessWorkflow

router = APIRouter(prefix="/api/public", tags=["public"])


@router.post("/access-request", response_model=PublicAccessRequestResponse)
def submit_public_access_request(
    body: PublicAccessRequestBody,
    db: Session = Depends(get_db),
    runtime: Runtime = Depends(get_runtime),
):
    term = body.project_number.strip().lower()
    project = (
        db.query(Project)
        .filter(
            or_(
                func.lower(Project.project_number) == term,
                func.lower(Project.name).contains(term, autoescape=True),
            )
        )
        .order_by(Project.created_at)
        .first()
    )
    if not project:
        raise NotFoundError("Project not found in our system.")

    email = str(body.email).lower()
    contact = (
        db.query(Contact)
        .filter(func.lower(Contact.email) == email, Contact.client_id == project.client_id)
        .first()
    )
    if not contact:
        contact = Contact(name=body.name.strip()[:100], email=email, client_id=project.client_id)
        db.add(contact)
        db.commit()
        db.refresh(contact)

    req = AccessWorkflow(db, runtime.bus).submit_request(
        contact.id,
        project.id,
        UserRole.STAKEHOLDER_L1.value,
        body.reason,
    )
    if req.status == AccessRequestStatus.APPROVED.value:
        return PublicAccessRequestResponse(
            success=True,
            message="Access request approved automatically!",
            status=req.status,
            next_steps="An administrator will set up your account and send you login credentials.",
        )
    return PublicAccessRequestResponse(
        success=True,
        message="Access request submitted successfully!",
        status=req.status,
        next_steps=(
            "Your request has been sent to the project administrators. "
            "You will receive an email notification once your request is reviewed."
        ),
    )
