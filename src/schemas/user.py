"""User and authentication schema definitions."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

import pytz
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Roles a user account can hold."""

    STUDENT = "student"
    CLASS_REPRESENTATIVE = "class-representative"
    ADMIN = "admin"


class User(BaseModel):
    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: f"user-{uuid.uuid4().hex[:12]}",
    )
    email: str = Field(description="Institutional email address, lower-cased.")
    first_name: str
    last_name: str
    student_id: str = Field(description="Student number in XX-XXXX format.")
    # Kept as a plain string so records with an unrecognized role still load
    role: str = Field(default=Role.STUDENT.value)
    requested_role: Optional[str] = Field(
        default=None,
        description="Pending upgrade request; only 'class-representative'.",
    )
    password_hash: str
    verified: bool = False
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PublicUser(BaseModel):
    """User information safe to return to clients."""

    user_id: str
    email: str
    first_name: str
    last_name: str
    student_id: str
    role: str
    requested_role: Optional[str] = None
    verified: bool
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(**user.model_dump(exclude={"password_hash"}))


class SignupRequest(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    student_id: str = ""
    password: str = ""
    confirm_password: str = ""
    role: str = Field(
        default=Role.STUDENT.value,
        description="'student' or 'class-representative'. The latter is "
        "recorded as a request for an admin to confirm.",
    )


class PendingVerification(BaseModel):
    user_id: str
    email: str
    expires_at: str
    requested_role: Optional[str] = None


class VerifyEmailRequest(BaseModel):
    email: str
    code: str


class ResendCodeRequest(BaseModel):
    email: str


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user: PublicUser
    token: str
    expires_at: str


class CurrentUserResponse(BaseModel):
    user: PublicUser
    session_id: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    email: str
    code: str
    new_password: str
    confirm_password: str


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    student_id: Optional[str] = None


class ValidationErrorDetail(BaseModel):
    message: str
    fields: Dict[str, str]
