"""Projects, the contacts of the clients that own them, and who may see which project."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from rfi_access.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    project_number = Column(String(50), unique=True, nullable=False, index=True)
    client_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, index=True)
    client_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class ProjectStakeholder(Base):
    """A contact with access to a project. Exists while an access request for the pair is APPROVED."""
    __tablename__ = "project_stakeholders"
    __table_args__ = (
        UniqueConstraint("project_id", "contact_id", name="uq_project_stakeholders_project_contact"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=False, index=True)
    stakeholder_level = Column(Integer, nullable=False, default=1)
    auto_approved = Column(Boolean, nullable=False, default=False)
    added_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
