from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from rfi_access.models.access_request import AccessRequestStatus
from rfi_access.models.user import UserRole


class AccessRequestCreate(BaseModel):
    """Body for submitting an access request on behalf of a contact."""
    contact_id: str
    project_id: str
    requested_role: UserRole = UserRole.STAKEHOLDER_L1
    justification: str | None = None


class AccessRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    contact_id: str
    project_id: str
    status: str
    requested_role: str
    justification: str | None
    auto_approval_reason: str | None
    created_at: datetime
    processed_at: datetime | None
    processed_by_id: str | None
    revoked_at: datetime | None
    revoked_by_id: str | None
    currently_has_access: bool | None = None


class AccessRequestReview(BaseModel):
    """Body for admin approve/reject."""
    status: AccessRequestStatus  # APPROVED or REJECTED


class PublicAccessRequestBody(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    project_number: str = Field(min_length=3)
    reason: str = Field(min_length=10)


class PublicAccessRequestResponse(BaseModel):
    success: bool
    message: str
    status: str | None = None
    next_steps: str
