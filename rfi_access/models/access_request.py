import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, CheckConstraint, text
from rfi_access.database import Base


class AccessRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVOKED = "REVOKED"


OPEN_STATUSES = (AccessRequestStatus.PENDING.value, AccessRequestStatus.APPROVED.value)

# Legal status changes. Anything not listed here is refused by the ledger.
ALLOWED_TRANSITIONS = {
    AccessRequestStatus.PENDING.value: {AccessRequestStatus.APPROVED.value, AccessRequestStatus.REJECTED.value},
    AccessRequestStatus.APPROVED.value: {AccessRequestStatus.REVOKED.value},
    AccessRequestStatus.REJECTED.value: set(),
    AccessRequestStatus.REVOKED.value: set(),
}

_OPEN_WHERE = "status IN ('PENDING', 'APPROVED')"


class AccessRequest(Base):
    """Request from a contact for access to a project. Never deleted; REVOKED is terminal."""
    __tablename__ = "access_requests"
    __table_args__ = (
        # One open (PENDING/APPROVED) request per contact+project
        Index(
            "ix_access_requests_contact_project_open",
            "contact_id",
            "project_id",
            unique=True,
            postgresql_where=text(_OPEN_WHERE),
            sqlite_where=text(_OPEN_WHERE),
        ),
        CheckConstraint(
            "NOT (auto_approval_reason IS NOT NULL AND processed_by_id IS NOT NULL)",
            name="ck_access_requests_single_approver",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=False, index=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=AccessRequestStatus.PENDING.value)
    requested_role = Column(String(20), nullable=False)
    justification = Column(Text, nullable=True)
    auto_approval_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    processed_at = Column(DateTime, nullable=True)
    processed_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    revoked_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def can_transition_to(self, status: str) -> bool:
        return status in ALLOWED_TRANSITIONS.get(self.status, set())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "contact_id": self.contact_id,
            "project_id": self.project_id,
            "status": self.status,
            "requested_role": self.requested_role,
            "justification": self.justification,
            "auto_approval_reason": self.auto_approval_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "processed_by_id": self.processed_by_id,
            "revoked_at": self.revoked_at.isoformat() if self.revoked_at else None,
            "revoked_by_id": self.revoked_by_id,
        }
