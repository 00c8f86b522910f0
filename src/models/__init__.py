from .base import Base
from .user import UserModel
from .ticket import TicketModel
from .verification import VerificationModel
from .login_session import LoginSessionModel

__all__ = [
    "Base",
    "UserModel",
    "TicketModel",
    "VerificationModel",
    "LoginSessionModel",
]
