"""User management utilities.

This module provides user management functionality including password
hashing, account creation, profile edits and class-representative role
requests.
"""

import logging
from typing import List, Optional

import bcrypt

import config
from core.exceptions import (
    UserNotFoundError,
    ValidationError,
)
from schemas.user import ProfileUpdateRequest, Role, User
from utils.record_store import RecordStore
from utils.validators import is_valid_student_id, student_id_error

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class UserManager:
    """Manages user data persistence and operations."""

    def __init__(self, store: RecordStore):
        """Initialize UserManager.

        Args:
            store: The configured RecordStore.
        """
        self.store = store

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            logger.warning(
                "Password exceeds %d bytes, truncating", BCRYPT_MAX_BYTES
            )
            password_bytes = password_bytes[:BCRYPT_MAX_BYTES]

        salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        student_id: str,
        role: str = Role.STUDENT.value,
        requested_role: Optional[str] = None,
        verified: bool = False,
    ) -> User:
        """Create a new user.

        Args:
            email: Institutional email address.
            password: Plain text password.
            first_name: Given name.
            last_name: Family name.
            student_id: Student number (XX-XXXX).
            role: Initial role.
            requested_role: Pending upgrade request, if any.
            verified: Whether the email is already confirmed.

        Returns:
            Created User object.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """
        user = User(
            email=email.strip().lower(),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            student_id=student_id.strip(),
            role=role,
            requested_role=requested_role,
            password_hash=self.hash_password(password),
            verified=verified,
        )
        self.store.add_user(user)
        logger.info("Created user: %s (%s)", user.email, user.role)
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.store.get_user_by_email(email.strip().lower())

    def get_user_by_id(self, user_id: str) -> User:
        """Get a user by user ID.

        Raises:
            UserNotFoundError: If no user has that id.
        """
        user = self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def list_users(self) -> List[User]:
        return self.store.list_users()

    def mark_verified(self, user: User) -> User:
        updated = user.model_copy(update={"verified": True})
        self.store.save_user(updated)
        logger.info("Verified user: %s", user.email)
        return updated

    def set_password(self, user: User, password: str) -> User:
        updated = user.model_copy(update={"password_hash": self.hash_password(password)})
        self.store.save_user(updated)
        logger.info("Password changed for user: %s", user.email)
        return updated

    def update_profile(self, user: User, req: ProfileUpdateRequest) -> User:
        """Apply self-service profile edits.

        Raises:
            ValidationError: If a name is blank or the student id is malformed.
        """
        changes = {}
        for name in ("first_name", "last_name"):
            value = getattr(req, name)
            if value is not None:
                if not value.strip():
                    raise ValidationError(f"{name} must not be empty")
                changes[name] = value.strip()
        if req.student_id is not None:
            if not is_valid_student_id(req.student_id):
                raise ValidationError(student_id_error())
            changes["student_id"] = req.student_id

        if not changes:
            return user
        updated = user.model_copy(update=changes)
        self.store.save_user(updated)
        logger.info("Updated profile of %s: %s", user.email, sorted(changes))
        return updated

    # --- Class representative requests ---

    def request_class_representative(self, user: User) -> User:
        """Record a student's request to become a class representative.

        Raises:
            ValidationError: If the user is not a student.
        """
        if user.role != Role.STUDENT.value:
            raise ValidationError("Only students can request the class representative role")
        if user.requested_role == Role.CLASS_REPRESENTATIVE.value:
            return user
        updated = user.model_copy(
            update={"requested_role": Role.CLASS_REPRESENTATIVE.value}
        )
        self.store.save_user(updated)
        logger.info("User %s requested class representative role", user.email)
        return updated

    def list_role_requests(self) -> List[User]:
        return [
            u
            for u in self.store.list_users()
            if u.requested_role == Role.CLASS_REPRESENTATIVE.value
        ]

    def decide_role_request(self, user_id: str, approve: bool) -> User:
        """Approve or reject a pending class representative request.

        Either way ``requested_role`` is cleared; approval also sets the role.

        Raises:
            UserNotFoundError: If no user has that id.
            ValidationError: If the user has no pending request.
        """
        user = self.get_user_by_id(user_id)
        if user.requested_role != Role.CLASS_REPRESENTATIVE.value:
            raise ValidationError("User has no pending role request")

        changes = {"requested_role": None}
        if approve:
            changes["role"] = Role.CLASS_REPRESENTATIVE.value
        updated = user.model_copy(update=changes)
        self.store.save_user(updated)
        logger.info(
            "Class representative request for %s %s",
            user.email,
            "approved" if approve else "rejected",
        )
        return updated

    def ensure_admin(self, email: str, password: str) -> User:
        """Create a verified admin with ``email`` unless one already exists."""
        existing = self.get_user_by_email(email)
        if existing is not None:
            if existing.role != Role.ADMIN.value:
                logger.warning(
                    "Bootstrap admin email %s belongs to a %s account; leaving it unchanged",
                    email,
                    existing.role,
                )
            return existing
        return self.create_user(
            email=email,
            password=password,
            first_name="Admin",
            last_name="User",
            student_id="00-0000",
            role=Role.ADMIN.value,
            verified=True,
        )
