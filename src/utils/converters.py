"""Conversions between pydantic records and SQLAlchemy rows."""

from models.login_session import LoginSessionModel
from models.ticket import TicketModel
from models.user import UserModel
from models.verification import VerificationModel
from schemas.session import Session, Verification
from schemas.ticket import Ticket
from schemas.user import User


def user_to_model(user: User) -> UserModel:
    return UserModel(**user.model_dump())


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        email=model.email,
        first_name=model.first_name,
        last_name=model.last_name,
        student_id=model.student_id,
        role=model.role,
        requested_role=model.requested_role,
        password_hash=model.password_hash,
        verified=bool(model.verified),
        created_at=model.created_at,
    )


def ticket_to_model(ticket: Ticket) -> TicketModel:
    return TicketModel(**ticket.model_dump(mode="json"))


def model_to_ticket(model: TicketModel) -> Ticket:
    return Ticket(
        ticket_id=model.ticket_id,
        user_id=model.user_id,
        classroom=model.classroom,
        unit_id=model.unit_id,
        issue_type=model.issue_type,
        issue_subtype=model.issue_subtype,
        issue_description=model.issue_description,
        image_url=model.image_url,
        status=model.status,
        created_at=model.created_at,
        updated_at=model.updated_at,
        resolution_note=model.resolution_note,
        reviewed_by=model.reviewed_by,
    )


def copy_into(model, record) -> None:
    """Overwrite the columns of an ORM row with a record's fields."""
    for key, value in record.model_dump(mode="json").items():
        setattr(model, key, value)


def verification_to_model(verification: Verification) -> VerificationModel:
    return VerificationModel(**verification.model_dump(mode="json"))


def model_to_verification(model: VerificationModel) -> Verification:
    return Verification(
        email=model.email,
        purpose=model.purpose,
        code_hash=model.code_hash,
        expires_at=model.expires_at,
        attempts=model.attempts or 0,
    )


def session_to_model(session: Session) -> LoginSessionModel:
    return LoginSessionModel(**session.model_dump())


def model_to_session(model: LoginSessionModel) -> Session:
    return Session(
        session_id=model.session_id,
        user_id=model.user_id,
        created_at=model.created_at,
        expires_at=model.expires_at,
    )
