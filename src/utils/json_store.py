"""Key-value JSON file record store.

All collections live in one JSON object on disk, each under its own string
key and each stored whole: reads load a full collection, writes replace it.
An unreadable or malformed file reads as an empty store; the next write
rewrites it in a valid shape.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import UserAlreadyExistsError
from schemas.session import Session, Verification, VerificationPurpose
from schemas.ticket import Ticket, TicketStatus
from schemas.user import User
from utils.record_store import RecordStore, is_expired, sort_newest_first

logger = logging.getLogger(__name__)

USERS_KEY = "cira_users"
TICKETS_KEY = "cira_tickets"
VERIFICATIONS_KEY = "cira_verifications"
SESSIONS_KEY = "cira_sessions"

RecordT = TypeVar("RecordT", bound=BaseModel)


class JsonRecordStore(RecordStore):
    """RecordStore backed by a single JSON file."""

    def __init__(self, path: Path):
        """Initialize JsonRecordStore.

        Args:
            path: Location of the JSON file. Created on first write.
        """
        self.path = Path(path)
        self._lock = threading.RLock()

    # --- Key-value layer ---

    def _read_file(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("Cannot read record store %s: %s", self.path, e)
            return {}
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(
                "Record store %s is not valid JSON, treating it as empty: %s",
                self.path,
                e,
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Record store %s does not hold an object, treating it as empty",
                self.path,
            )
            return {}
        return data

    def _write_file(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_all(self, key: str, record_type: Type[RecordT]) -> List[RecordT]:
        """Load every record stored under ``key``.

        Entries that do not validate as ``record_type`` are skipped.
        """
        with self._lock:
            items = self._read_file().get(key, [])
        if not isinstance(items, list):
            logger.warning("Collection %s is not a list, treating it as empty", key)
            return []
        records = []
        for item in items:
            try:
                records.append(record_type.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed %s record: %s", key, e)
        return records

    def save_all(self, key: str, records: List[BaseModel]) -> None:
        """Replace the collection stored under ``key``."""
        with self._lock:
            data = self._read_file()
            data[key] = [r.model_dump(mode="json") for r in records]
            self._write_file(data)

    # --- Users ---

    def list_users(self) -> List[User]:
        return self.get_all(USERS_KEY, User)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.list_users() if u.user_id == user_id), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self.list_users() if u.email == email), None)

    def add_user(self, user: User) -> User:
        with self._lock:
            users = self.list_users()
            if any(u.email == user.email for u in users):
                raise UserAlreadyExistsError(f"User '{user.email}' already exists")
            users.append(user)
            self.save_all(USERS_KEY, users)
        return user

    def save_user(self, user: User) -> None:
        with self._lock:
            users = self.list_users()
            for i, existing in enumerate(users):
                if existing.user_id == user.user_id:
                    users[i] = user
                    self.save_all(USERS_KEY, users)
                    return

    def delete_user(self, user_id: str) -> None:
        with self._lock:
            users = self.list_users()
            remaining = [u for u in users if u.user_id != user_id]
            if len(remaining) != len(users):
                self.save_all(USERS_KEY, remaining)

    # --- Tickets ---

    def list_tickets(
        self,
        owner_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]:
        tickets = self.get_all(TICKETS_KEY, Ticket)
        if owner_id is not None:
            tickets = [t for t in tickets if t.user_id == owner_id]
        if status is not None:
            tickets = [t for t in tickets if t.status == status]
        return sort_newest_first(tickets)

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        tickets = self.get_all(TICKETS_KEY, Ticket)
        return next((t for t in tickets if t.ticket_id == ticket_id), None)

    def add_ticket(self, ticket: Ticket) -> Ticket:
        with self._lock:
            tickets = self.get_all(TICKETS_KEY, Ticket)
            tickets.append(ticket)
            self.save_all(TICKETS_KEY, tickets)
        return ticket

    def save_ticket(self, ticket: Ticket) -> None:
        with self._lock:
            tickets = self.get_all(TICKETS_KEY, Ticket)
            for i, existing in enumerate(tickets):
                if existing.ticket_id == ticket.ticket_id:
                    tickets[i] = ticket
                    self.save_all(TICKETS_KEY, tickets)
                    return

    def delete_ticket(self, ticket_id: str) -> bool:
        with self._lock:
            tickets = self.get_all(TICKETS_KEY, Ticket)
            remaining = [t for t in tickets if t.ticket_id != ticket_id]
            if len(remaining) == len(tickets):
                return False
            self.save_all(TICKETS_KEY, remaining)
        return True

    # --- Verifications ---

    def get_verification(
        self, email: str, purpose: VerificationPurpose
    ) -> Optional[Verification]:
        email = email.lower()
        return next(
            (
                v
                for v in self.get_all(VERIFICATIONS_KEY, Verification)
                if v.email == email and v.purpose == purpose
            ),
            None,
        )

    def save_verification(self, verification: Verification) -> None:
        with self._lock:
            items = [
                v
                for v in self.get_all(VERIFICATIONS_KEY, Verification)
                if not is_expired(v.expires_at)
                and not (
                    v.email == verification.email
                    and v.purpose == verification.purpose
                )
            ]
            items.append(verification)
            self.save_all(VERIFICATIONS_KEY, items)

    def delete_verification(self, email: str, purpose: VerificationPurpose) -> None:
        email = email.lower()
        with self._lock:
            items = self.get_all(VERIFICATIONS_KEY, Verification)
            remaining = [
                v for v in items if not (v.email == email and v.purpose == purpose)
            ]
            if len(remaining) != len(items):
                self.save_all(VERIFICATIONS_KEY, remaining)

    # --- Sessions ---

    def get_session(self, session_id: str) -> Optional[Session]:
        return next(
            (
                s
                for s in self.get_all(SESSIONS_KEY, Session)
                if s.session_id == session_id
            ),
            None,
        )

    def add_session(self, session: Session) -> None:
        with self._lock:
            sessions = [
                s for s in self.get_all(SESSIONS_KEY, Session)
                if not is_expired(s.expires_at)
            ]
            sessions.append(session)
            self.save_all(SESSIONS_KEY, sessions)

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            sessions = self.get_all(SESSIONS_KEY, Session)
            remaining = [s for s in sessions if s.session_id != session_id]
            if len(remaining) != len(sessions):
                self.save_all(SESSIONS_KEY, remaining)

    def delete_user_sessions(self, user_id: str) -> int:
        with self._lock:
            sessions = self.get_all(SESSIONS_KEY, Session)
            remaining = [s for s in sessions if s.user_id != user_id]
            removed = len(sessions) - len(remaining)
            if removed:
                self.save_all(SESSIONS_KEY, remaining)
        return removed
