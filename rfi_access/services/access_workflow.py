"""
Access request workflow: submit, decide, revoke.
Each transition commits first, then publishes exactly one event, so subscribers
always see the committed ledger state. Subscriber failures never undo a transition.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfi_access.config import get_settings
from rfi_access.errors import ConflictError, InvalidInputError, NotFoundError
from rfi_access.models.access_request import AccessRequest, AccessRequestStatus
from rfi_access.models.project import Contact, Project, ProjectStakeholder
from rfi_access.models.user import UserRole
from rfi_access.repositories.access_ledger import AccessLedger
from rfi_access.services.auto_approval import ApprovalContext, evaluate_rules
from rfi_access.services.event_bus import EventBus, EventType

logger = logging.getLogger(__name__)

REQUESTABLE_ROLES = {UserRole.STAKEHOLDER_L1.value, UserRole.STAKEHOLDER_L2.value}
DECISIONS = {AccessRequestStatus.APPROVED.value, AccessRequestStatus.REJECTED.value}


def _stakeholder_level(role: str) -> int:
    return 2 if role == UserRole.STAKEHOLDER_L2.value else 1


class AccessWorkflow:
    def __init__(
        self,
        db: Session,
        bus: EventBus,
        *,
        rule_names: list[str] | None = None,
        max_auto_role: str | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.bus = bus
        self.ledger = AccessLedger(db)
        self._rule_names = settings.auto_approval_rules if rule_names is None else rule_names
        self._max_auto_role = max_auto_role or settings.auto_approval_max_role

    # ---------- Queries ----------

    def get(self, request_id: str) -> AccessRequest:
        req = self.ledger.get_by_id(request_id)
        if req is None:
            raise NotFoundError("Access request not found")
        return req

    def list_requests(
        self,
        project_id: str | None = None,
        contact_id: str | None = None,
        status: str | None = None,
    ) -> list[tuple[AccessRequest, bool]]:
        """Requests with whether the contact currently has stakeholder access to the project."""
        rows = self.ledger.list_by(project_id=project_id, contact_id=contact_id, status=status)
        if not rows:
            return []
        stakeholders = (
            self.db.query(ProjectStakeholder.contact_id, ProjectStakeholder.project_id)
            .filter(
                ProjectStakeholder.contact_id.in_(list({r.contact_id for r in rows})),
                ProjectStakeholder.project_id.in_(list({r.project_id for r in rows})),
            )
            .all()
        )
        granted = {(c, p) for c, p in stakeholders}
        return [(r, (r.contact_id, r.project_id) in granted) for r in rows]

    def has_stakeholder_access(self, contact_id: str, project_id: str) -> bool:
        return self._stakeholder(contact_id, project_id) is not None

    # ---------- Transitions ----------

    def submit_request(
        self,
        contact_id: str,
        project_id: str,
        requested_role: str,
        justification: str | None = None,
    ) -> AccessRequest:
        if requested_role not in REQUESTABLE_ROLES:
            raise InvalidInputError(f"requested_role must be one of {', '.join(sorted(REQUESTABLE_ROLES))}")
        contact = self.db.query(Contact).filter(Contact.id == contact_id).first()
        if not contact:
            raise NotFoundError("Contact not found")
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project not found")
        if self.ledger.find_open_by_pair(contact_id, project_id) is not None:
            raise ConflictError("A request for this project is already open")
        if self.has_stakeholder_access(contact_id, project_id):
            raise ConflictError("Already a stakeholder for this project")

        justification = (justification or "").strip() or None
        reason = evaluate_rules(
            ApprovalContext(
                db=self.db,
                contact=contact,
                project=project,
                requested_role=requested_role,
                max_role=self._max_auto_role,
            ),
            self._rule_names,
        )
        if reason:
            req = self.ledger.create(
                contact_id,
                project_id,
                requested_role,
                justification=justification,
                status=AccessRequestStatus.APPROVED.value,
                auto_approval_reason=reason,
                processed_at=datetime.utcnow(),
            )
            self._grant(req, added_by_id=None, auto_approved=True)
            event_type = EventType.ACCESS_REQUEST_AUTO_APPROVED
        else:
            req = self.ledger.create(contact_id, project_id, requested_role, justification=justification)
            event_type = EventType.ACCESS_REQUEST_SUBMITTED
        self._commit()
        self.db.refresh(req)
        logger.info("Access request %s submitted for contact %s on project %s (%s)",
                    req.id, contact_id, project_id, req.status)
        self.bus.emit(event_type, self._payload(req, contact, project))
        return req

    def decide(self, request_id: str, decision: str, acting_admin_id: str) -> AccessRequest:
        decision = getattr(decision, "value", decision)
        if decision not in DECISIONS:
            raise InvalidInputError("status must be APPROVED or REJECTED")
        req = self.ledger.update(
            request_id,
            {
                "status": decision,
                "processed_at": datetime.utcnow(),
                "processed_by_id": acting_admin_id,
            },
        )
        if decision == AccessRequestStatus.APPROVED.value:
            self._grant(req, added_by_id=acting_admin_id, auto_approved=False)
        self._commit()
        self.db.refresh(req)
        logger.info("Access request %s %s by %s", req.id, req.status, acting_admin_id)
        self.bus.emit(EventType.ACCESS_REQUEST_DECIDED, self._payload(req))
        return req

    def revoke(self, request_id: str, acting_admin_id: str) -> AccessRequest:
        req = self.ledger.update(
            request_id,
            {
                "status": AccessRequestStatus.REVOKED.value,
                "revoked_at": datetime.utcnow(),
                "revoked_by_id": acting_admin_id,
            },
        )
        stakeholder = self._stakeholder(req.contact_id, req.project_id)
        if stakeholder is not None:
            self.db.delete(stakeholder)
        self._commit()
        self.db.refresh(req)
        logger.info("Access request %s revoked by %s", req.id, acting_admin_id)
        self.bus.emit(EventType.ACCESS_REQUEST_REVOKED, self._payload(req))
        return req

    # ---------- Helpers ----------

    def _stakeholder(self, contact_id: str, project_id: str) -> ProjectStakeholder | None:
        return (
            self.db.query(ProjectStakeholder)
            .filter(ProjectStakeholder.contact_id == contact_id, ProjectStakeholder.project_id == project_id)
            .first()
        )

    def _grant(self, req: AccessRequest, *, added_by_id: str | None, auto_approved: bool) -> None:
        self.db.add(
            ProjectStakeholder(
                project_id=req.project_id,
                contact_id=req.contact_id,
                stakeholder_level=_stakeholder_level(req.requested_role),
                auto_approved=auto_approved,
                added_by_id=added_by_id,
            )
        )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "project_stakeholders" in str(e.orig):
                raise ConflictError("Contact already has access to this project")
            raise ConflictError("An open access request already exists for this contact and project")

    def _payload(
        self,
        req: AccessRequest,
        contact: Contact | None = None,
        project: Project | None = None,
    ) -> dict:
        """Full record plus the contact/project details notification listeners need."""
        contact = contact or self.db.query(Contact).filter(Contact.id == req.contact_id).first()
        project = project or self.db.query(Project).filter(Project.id == req.project_id).first()
        payload = req.to_dict()
        payload["contact_name"] = contact.name if contact else ""
        payload["contact_email"] = contact.email if contact else ""
        payload["project_name"] = project.name if project else ""
        payload["project_number"] = project.project_number if project else ""
        return payload
