"""SQLAlchemy record store."""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from core.exceptions import UserAlreadyExistsError
from models.login_session import LoginSessionModel
from models.ticket import TicketModel
from models.user import UserModel
from models.verification import VerificationModel
from schemas.session import Session, Verification, VerificationPurpose
from schemas.ticket import Ticket, TicketStatus
from schemas.user import User
from utils.converters import (
    copy_into,
    model_to_session,
    model_to_ticket,
    model_to_user,
    model_to_verification,
    session_to_model,
    ticket_to_model,
    user_to_model,
    verification_to_model,
)
from utils.record_store import RecordStore, now_iso

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """RecordStore backed by a request-scoped SQLAlchemy session."""

    def __init__(self, db: DBSession):
        """Initialize SqlRecordStore.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    # --- Users ---

    def list_users(self) -> List[User]:
        models = self.db.query(UserModel).order_by(UserModel.created_at).all()
        return [model_to_user(m) for m in models]

    def get_user(self, user_id: str) -> Optional[User]:
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        return model_to_user(model) if model else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == email.lower())
            .first()
        )
        return model_to_user(model) if model else None

    def add_user(self, user: User) -> User:
        existing = (
            self.db.query(UserModel).filter(UserModel.email == user.email).first()
        )
        if existing:
            raise UserAlreadyExistsError(f"User '{user.email}' already exists")

        # The unique constraint still catches two requests racing past the check
        try:
            self.db.add(user_to_model(user))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "email" in str(e).lower() or "unique" in str(e).lower():
                raise UserAlreadyExistsError(
                    f"User '{user.email}' already exists"
                ) from e
            raise
        return user

    def save_user(self, user: User) -> None:
        model = (
            self.db.query(UserModel).filter(UserModel.user_id == user.user_id).first()
        )
        if not model:
            return
        copy_into(model, user)
        self.db.commit()

    def delete_user(self, user_id: str) -> None:
        model = (
            self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        )
        if model:
            self.db.delete(model)
            self.db.commit()

    # --- Tickets ---

    def list_tickets(
        self,
        owner_id: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]:
        query = self.db.query(TicketModel)
        if owner_id is not None:
            query = query.filter(TicketModel.user_id == owner_id)
        if status is not None:
            query = query.filter(TicketModel.status == TicketStatus(status).value)
        models = query.order_by(TicketModel.created_at.desc()).all()
        return [model_to_ticket(m) for m in models]

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        model = (
            self.db.query(TicketModel)
            .filter(TicketModel.ticket_id == ticket_id)
            .first()
        )
        return model_to_ticket(model) if model else None

    def add_ticket(self, ticket: Ticket) -> Ticket:
        self.db.add(ticket_to_model(ticket))
        self.db.commit()
        return ticket

    def save_ticket(self, ticket: Ticket) -> None:
        model = (
            self.db.query(TicketModel)
            .filter(TicketModel.ticket_id == ticket.ticket_id)
            .first()
        )
        if not model:
            return
        copy_into(model, ticket)
        self.db.commit()

    def delete_ticket(self, ticket_id: str) -> bool:
        model = (
            self.db.query(TicketModel)
            .filter(TicketModel.ticket_id == ticket_id)
            .first()
        )
        if not model:
            return False
        self.db.delete(model)
        self.db.commit()
        return True

    # --- Verifications ---

    def _verification_model(
        self, email: str, purpose: VerificationPurpose
    ) -> Optional[VerificationModel]:
        return (
            self.db.query(VerificationModel)
            .filter(
                VerificationModel.email == email.lower(),
                VerificationModel.purpose == VerificationPurpose(purpose).value,
            )
            .first()
        )

    def get_verification(
        self, email: str, purpose: VerificationPurpose
    ) -> Optional[Verification]:
        model = self._verification_model(email, purpose)
        return model_to_verification(model) if model else None

    def save_verification(self, verification: Verification) -> None:
        # ISO-8601 UTC strings compare in time order
        self.db.query(VerificationModel).filter(
            VerificationModel.expires_at <= now_iso()
        ).delete(synchronize_session=False)
        model = self._verification_model(verification.email, verification.purpose)
        if model:
            copy_into(model, verification)
        else:
            self.db.add(verification_to_model(verification))
        self.db.commit()

    def delete_verification(self, email: str, purpose: VerificationPurpose) -> None:
        model = self._verification_model(email, purpose)
        if model:
            self.db.delete(model)
            self.db.commit()

    # --- Sessions ---

    def get_session(self, session_id: str) -> Optional[Session]:
        model = (
            self.db.query(LoginSessionModel)
            .filter(LoginSessionModel.session_id == session_id)
            .first()
        )
        return model_to_session(model) if model else None

    def add_session(self, session: Session) -> None:
        self.db.query(LoginSessionModel).filter(
            LoginSessionModel.expires_at <= now_iso()
        ).delete(synchronize_session=False)
        self.db.add(session_to_model(session))
        self.db.commit()

    def delete_session(self, session_id: str) -> None:
        model = (
            self.db.query(LoginSessionModel)
            .filter(LoginSessionModel.session_id == session_id)
            .first()
        )
        if model:
            self.db.delete(model)
            self.db.commit()

    def delete_user_sessions(self, user_id: str) -> int:
        removed = (
            self.db.query(LoginSessionModel)
            .filter(LoginSessionModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed
