"""Authentication backend.

``AuthBackend`` is the interface the auth routes talk to: account
registration with email verification, login/logout over server-side
sessions, session lookup from a bearer token and password reset.
``StoreAuthBackend`` implements it on top of any RecordStore.
"""

import hashlib
import hmac
import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

import pytz

import config
from core.exceptions import (
    AuthError,
    DeliveryError,
    EmailNotVerifiedError,
    SignupValidationError,
    UserAlreadyExistsError,
    VerificationError,
)
from core.security import create_access_token, decode_access_token
from schemas.session import (
    Session,
    SessionContext,
    SessionToken,
    Verification,
    VerificationPurpose,
)
from schemas.user import PasswordResetConfirm, PendingVerification, Role, SignupRequest, User
from utils.notifier import VerificationNotifier
from utils.record_store import RecordStore, is_expired
from utils.user_manager import UserManager
from utils.validators import validate_signup

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Six-digit numeric one-time code."""
    return str(100000 + secrets.randbelow(900000))


def hash_code(code: str) -> str:
    return hashlib.sha256(code.strip().encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(pytz.utc)


class AuthBackend(ABC):
    """Identity operations used by the HTTP layer."""

    @abstractmethod
    def register_account(self, form: SignupRequest) -> PendingVerification:
        ...

    @abstractmethod
    def verify_email(self, email: str, code: str) -> User:
        ...

    @abstractmethod
    def resend_verification(self, email: str) -> PendingVerification:
        ...

    @abstractmethod
    def authenticate(self, email: str, password: str) -> SessionToken:
        ...

    @abstractmethod
    def current_session(self, token: str) -> Optional[SessionContext]:
        ...

    @abstractmethod
    def logout(self, session_id: str) -> None:
        ...

    @abstractmethod
    def request_password_reset(self, email: str) -> None:
        ...

    @abstractmethod
    def reset_password(self, req: PasswordResetConfirm) -> None:
        ...


class StoreAuthBackend(AuthBackend):
    """AuthBackend over a RecordStore and a verification notifier."""

    def __init__(self, store: RecordStore, notifier: VerificationNotifier):
        self.store = store
        self.notifier = notifier
        self.users = UserManager(store)

    # --- One-time codes ---

    def _issue_code(self, email: str, purpose: VerificationPurpose) -> Verification:
        code = generate_code()
        verification = Verification(
            email=email,
            purpose=purpose,
            code_hash=hash_code(code),
            expires_at=(
                _now() + timedelta(minutes=config.VERIFICATION_CODE_TTL_MINUTES)
            ).isoformat(),
        )
        self.store.save_verification(verification)
        self.notifier.send_code(email, code, purpose)
        return verification

    def _consume_code(self, email: str, purpose: VerificationPurpose, code: str) -> None:
        """Check a code and delete it on success.

        Raises:
            VerificationError: If there is no live code or it does not match.
        """
        verification = self.store.get_verification(email, purpose)
        if verification is None:
            raise VerificationError("No pending code for this email. Request a new one.")

        if is_expired(verification.expires_at):
            self.store.delete_verification(email, purpose)
            raise VerificationError("The code has expired. Request a new one.")

        if not hmac.compare_digest(verification.code_hash, hash_code(code or "")):
            attempts = verification.attempts + 1
            if attempts >= config.VERIFICATION_MAX_ATTEMPTS:
                self.store.delete_verification(email, purpose)
                logger.warning("Too many wrong %s codes for %s", purpose.value, email)
                raise VerificationError("Too many attempts. Request a new code.")
            self.store.save_verification(
                verification.model_copy(update={"attempts": attempts})
            )
            raise VerificationError("Invalid verification code. Please try again.")

        self.store.delete_verification(email, purpose)

    # --- Registration ---

    def register_account(self, form: SignupRequest) -> PendingVerification:
        """Create an unverified student account and send its verification code.

        Raises:
            SignupValidationError: If a field is missing or malformed.
            UserAlreadyExistsError: If the email is already registered.
            DeliveryError: If the code could not be sent. The account is removed
                again so the signup can be retried.
        """
        validate_signup(form)
        email = form.email.strip().lower()
        if self.store.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError(f"User '{email}' already exists")

        requested_role = (
            Role.CLASS_REPRESENTATIVE.value
            if form.role == Role.CLASS_REPRESENTATIVE.value
            else None
        )
        user = self.users.create_user(
            email=email,
            password=form.password,
            first_name=form.first_name,
            last_name=form.last_name,
            student_id=form.student_id,
            role=Role.STUDENT.value,
            requested_role=requested_role,
            verified=False,
        )
        try:
            verification = self._issue_code(email, VerificationPurpose.SIGNUP)
        except DeliveryError:
            # The account only exists once its code is out
            self.store.delete_verification(email, VerificationPurpose.SIGNUP)
            self.store.delete_user(user.user_id)
            logger.warning("Signup of %s rolled back, code not delivered", email)
            raise
        return PendingVerification(
            user_id=user.user_id,
            email=email,
            expires_at=verification.expires_at,
            requested_role=requested_role,
        )

    def verify_email(self, email: str, code: str) -> User:
        user = self.users.get_user_by_email(email)
        if user is None:
            raise VerificationError("No pending code for this email. Request a new one.")
        if user.verified:
            return user
        self._consume_code(user.email, VerificationPurpose.SIGNUP, code)
        return self.users.mark_verified(user)

    def resend_verification(self, email: str) -> PendingVerification:
        user = self.users.get_user_by_email(email)
        if user is None or user.verified:
            raise VerificationError("There is no unverified account for this email.")
        verification = self._issue_code(user.email, VerificationPurpose.SIGNUP)
        return PendingVerification(
            user_id=user.user_id,
            email=user.email,
            expires_at=verification.expires_at,
            requested_role=user.requested_role,
        )

    # --- Sessions ---

    def authenticate(self, email: str, password: str) -> SessionToken:
        """Check credentials and open a session.

        Raises:
            AuthError: If the email or password is wrong.
            EmailNotVerifiedError: If the account has not been verified.
        """
        user = self.users.get_user_by_email(email or "")
        if user is None or not self.users.verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password")
        if not user.verified:
            raise EmailNotVerifiedError("Please verify your email before logging in")

        lifetime = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        session = Session(user_id=user.user_id, expires_at=(_now() + lifetime).isoformat())
        self.store.add_session(session)
        token = create_access_token(
            {"sub": user.user_id, "sid": session.session_id}, expires_delta=lifetime
        )
        logger.info("Opened session %s for %s", session.session_id, user.email)
        return SessionToken(token=token, session=session, user=user)

    def current_session(self, token: str) -> Optional[SessionContext]:
        payload = decode_access_token(token)
        if not payload:
            return None
        session_id = payload.get("sid")
        user_id = payload.get("sub")
        if not session_id or not user_id:
            return None

        session = self.store.get_session(session_id)
        if session is None or session.user_id != user_id:
            return None
        if is_expired(session.expires_at):
            self.store.delete_session(session_id)
            return None

        user = self.store.get_user(user_id)
        if user is None:
            return None
        return SessionContext(session=session, user=user)

    def logout(self, session_id: str) -> None:
        self.store.delete_session(session_id)
        logger.info("Closed session %s", session_id)

    # --- Password reset ---

    def request_password_reset(self, email: str) -> None:
        user = self.users.get_user_by_email(email or "")
        if user is None or not user.verified:
            # Account existence is not disclosed
            logger.info("Password reset requested for unknown or unverified %s", email)
            return
        self._issue_code(user.email, VerificationPurpose.PASSWORD_RESET)

    def reset_password(self, req: PasswordResetConfirm) -> None:
        """Set a new password after checking the emailed reset code.

        Raises:
            SignupValidationError: If the new password is blank or unconfirmed.
            VerificationError: If the code is wrong or expired.

        Every open session of the user is closed.
        """
        if not req.new_password:
            raise SignupValidationError({"new_password": "This field is required"})
        if req.new_password != req.confirm_password:
            raise SignupValidationError({"confirm_password": "Passwords do not match"})

        user = self.users.get_user_by_email(req.email or "")
        if user is None:
            raise VerificationError("No pending code for this email. Request a new one.")
        self._consume_code(user.email, VerificationPurpose.PASSWORD_RESET, req.code)
        self.users.set_password(user, req.new_password)
        closed = self.store.delete_user_sessions(user.user_id)
        logger.info("Password reset for %s closed %d session(s)", user.email, closed)
