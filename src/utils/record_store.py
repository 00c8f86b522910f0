"""Record store interface.

Users, tickets, pending verifications and login sessions are persisted through
a RecordStore. Two implementations exist: JsonRecordStore (a key-value JSON
file) and SqlRecordStore (SQLAlchemy). Which one serves requests is decided
once at process start from STORE_BACKEND.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

import pytz

from schemas.session import Session, Verification, VerificationPurpose
from schemas.ticket import Ticket, TicketStatus
from schemas.user import User


class RecordStore(ABC):
    """Persistence operations needed by the managers."""

    # --- Users ---

    @abstractmethod
    def list_users(self) -> List[User]:
        ...

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    def add_user(self, user: User) -> User:
        """Insert a new user.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """

    @abstractmethod
    def save_user(self, user: User) -> None:
        """Overwrite an existing user; a missing user is ignored."""

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        """Remove a user; a missing user is ignored."""

    # --- Tickets ---

    @abstractmethod
    def list_tickets(
        self,
        owner_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]:
        """List tickets, newest first, optionally by owner and/or status."""

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ...

    @abstractmethod
    def add_ticket(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    def save_ticket(self, ticket: Ticket) -> None:
        """Overwrite an existing ticket; a missing ticket is ignored."""

    @abstractmethod
    def delete_ticket(self, ticket_id: str) -> bool:
        """Remove a ticket. Returns True if a record was removed."""

    # --- Verifications ---

    @abstractmethod
    def get_verification(
        self, email: str, purpose: VerificationPurpose
    ) -> Optional[Verification]:
        ...

    @abstractmethod
    def save_verification(self, verification: Verification) -> None:
        """Insert or replace the verification for (email, purpose).

        Expired verifications are pruned on the way.
        """

    @abstractmethod
    def delete_verification(self, email: str, purpose: VerificationPurpose) -> None:
        ...

    # --- Sessions ---

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    def add_session(self, session: Session) -> None:
        """Insert a session. Expired sessions are pruned on the way."""

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        ...

    @abstractmethod
    def delete_user_sessions(self, user_id: str) -> int:
        """Remove every session of a user. Returns how many were removed."""


def now_iso() -> str:
    return datetime.now(pytz.utc).isoformat()


def is_expired(expires_at: str, now: Optional[datetime] = None) -> bool:
    return (now or datetime.now(pytz.utc)) >= datetime.fromisoformat(expires_at)


def sort_newest_first(tickets: List[Ticket]) -> List[Ticket]:
    return sorted(tickets, key=lambda t: t.created_at, reverse=True)
