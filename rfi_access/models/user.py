import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from rfi_access.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"
    STAKEHOLDER_L1 = "STAKEHOLDER_L1"
    STAKEHOLDER_L2 = "STAKEHOLDER_L2"


# Higher rank = more privilege. Used by the role-threshold auto-approval rule.
ROLE_RANK = {
    UserRole.STAKEHOLDER_L1.value: 1,
    UserRole.STAKEHOLDER_L2.value: 2,
    UserRole.USER.value: 3,
    UserRole.MANAGER.value: 4,
    UserRole.ADMIN.value: 5,
}


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=True)
    full_name = Column(String(100), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
