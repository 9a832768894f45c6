from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    role: str
    active: bool
    created_at: datetime
    updated_at: datetime


class TokenPayload(BaseModel):
    sub: str  # user id
    email: str
    exp: int
    type: str = "access"


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SetPasswordRequest(BaseModel):
    new_password: str


class AdminUserActionResponse(BaseModel):
    message: str
    user: UserResponse


class EmailTestRequest(BaseModel):
    recipient: EmailStr


class EmailTestResponse(BaseModel):
    success: bool
    error: str | None = None
