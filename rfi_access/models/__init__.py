from rfi_access.models.user import User, UserRole, ROLE_RANK
from rfi_access.models.project import Project, Contact, ProjectStakeholder
from rfi_access.models.access_request import AccessRequest, AccessRequestStatus
from rfi_access.models.admin_audit_log import AdminAuditLog

__all__ = [
    "User", "UserRole", "ROLE_RANK", "Project", "Contact", "ProjectStakeholder",
    "AccessRequest", "AccessRequestStatus", "AdminAuditLog",
]
