"""Session and verification record definitions.

A Session is created on login and deleted on logout; the bearer token only
names it. A Verification holds the hashed one-time code sent to an email
address for signup confirmation or password reset.
"""

import uuid
from datetime import datetime
from enum import Enum

import pytz
from pydantic import BaseModel, Field

from schemas.user import User


class Session(BaseModel):
    session_id: str = Field(
        description="The unique identifier for the session.",
        default_factory=lambda: uuid.uuid4().hex,
        frozen=True,
    )
    user_id: str
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )
    expires_at: str


class SessionContext(BaseModel):
    """The authenticated session passed explicitly to request handlers."""

    session: Session
    user: User


class VerificationPurpose(str, Enum):
    SIGNUP = "signup"
    PASSWORD_RESET = "password_reset"


class Verification(BaseModel):
    email: str
    purpose: VerificationPurpose
    code_hash: str
    expires_at: str
    attempts: int = 0


class SessionToken(BaseModel):
    """Result of a successful login."""

    token: str
    session: Session
    user: User
