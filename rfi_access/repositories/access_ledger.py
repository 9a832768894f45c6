"""
Access ledger: durable store of access requests.
The ledger only flushes; the caller owns the transaction and commits.
Open-record uniqueness is enforced by the partial unique index on
(contact_id, project_id) WHERE status IN ('PENDING', 'APPROVED'); the
find-first check only gives the common case a clean error.
"""
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfi_access.errors import ConflictError, InvalidInputError, InvalidTransitionError, NotFoundError
from rfi_access.models.access_request import AccessRequest, AccessRequestStatus, OPEN_STATUSES

PATCHABLE_FIELDS = {
    "status",
    "justification",
    "auto_approval_reason",
    "processed_at",
    "processed_by_id",
    "revoked_at",
    "revoked_by_id",
}
# Fields that may change during the APPROVED -> REVOKED step
REVOKE_FIELDS = {"status", "revoked_at", "revoked_by_id"}


class AccessLedger:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, request_id: str) -> AccessRequest | None:
        return self.db.query(AccessRequest).filter(AccessRequest.id == request_id).first()

    def find_open_by_pair(self, contact_id: str, project_id: str) -> AccessRequest | None:
        return (
            self.db.query(AccessRequest)
            .filter(
                AccessRequest.contact_id == contact_id,
                AccessRequest.project_id == project_id,
                AccessRequest.status.in_(OPEN_STATUSES),
            )
            .first()
        )

    def create(
        self,
        contact_id: str,
        project_id: str,
        requested_role: str,
        *,
        justification: str | None = None,
        status: str = AccessRequestStatus.PENDING.value,
        auto_approval_reason: str | None = None,
        processed_at=None,
    ) -> AccessRequest:
        """Insert a new record. Raises ConflictError if an open record exists for the pair."""
        if status not in OPEN_STATUSES:
            raise InvalidInputError(f"New access requests cannot start as {status}")
        if self.find_open_by_pair(contact_id, project_id) is not None:
            raise ConflictError("An open access request already exists for this contact and project")
        req = AccessRequest(
            contact_id=contact_id,
            project_id=project_id,
            requested_role=requested_role,
            justification=justification,
            status=status,
            auto_approval_reason=auto_approval_reason,
            processed_at=processed_at,
        )
        self.db.add(req)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost the race to a concurrent insert for the same pair
            self.db.rollback()
            raise ConflictError("An open access request already exists for this contact and project")
        return req

    def update(self, request_id: str, patch: dict) -> AccessRequest:
        """
        Apply `patch` to one record. Status changes must follow the transition table;
        non-PENDING records only accept the APPROVED -> REVOKED step.
        """
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        req = self.get_by_id(request_id)
        if req is None:
            raise NotFoundError("Access request not found")

        new_status = patch.get("status")
        if new_status is not None and not req.can_transition_to(new_status):
            raise InvalidTransitionError(f"Cannot change access request from {req.status} to {new_status}")
        if req.status != AccessRequestStatus.PENDING.value:
            if new_status != AccessRequestStatus.REVOKED.value or set(patch) - REVOKE_FIELDS:
                raise InvalidTransitionError("This request has already been processed.")

        auto_reason = patch.get("auto_approval_reason", req.auto_approval_reason)
        processed_by = patch.get("processed_by_id", req.processed_by_id)
        if auto_reason and processed_by:
            raise InvalidInputError("A request is either auto-approved or processed by an admin, not both")

        # Status is compared again in the UPDATE: 0 rows means another session moved the record first
        result = self.db.execute(
            update(AccessRequest)
            .where(AccessRequest.id == request_id, AccessRequest.status == req.status)
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.expire(req)
            raise InvalidTransitionError("This request has already been processed.")
        self.db.refresh(req)
        return req

    def list_by(
        self,
        project_id: str | None = None,
        contact_id: str | None = None,
        status: str | None = None,
    ) -> list[AccessRequest]:
        """PENDING first, then newest first."""
        q = self.db.query(AccessRequest)
        if project_id:
            q = q.filter(AccessRequest.project_id == project_id)
        if contact_id:
            q = q.filter(AccessRequest.contact_id == contact_id)
        if status:
            q = q.filter(AccessRequest.status == status)
        pending_first = case((AccessRequest.status == AccessRequestStatus.PENDING.value, 0), else_=1)
        return q.order_by(pending_first, AccessRequest.created_at.desc()).all()
