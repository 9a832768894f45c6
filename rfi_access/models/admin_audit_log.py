import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from rfi_access.database import Base


class AdminAuditLog(Base):
    """One row per admin change to a user account (activate/deactivate)."""
    __tablename__ = "admin_audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String(50), nullable=False)
    target_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    previous_active = Column(Boolean, nullable=False)
    new_active = Column(Boolean, nullable=False)
    acting_admin_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
