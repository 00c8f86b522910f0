from sqlalchemy import Column, String

from .base import Base


class LoginSessionModel(Base):
    __tablename__ = "sessions"

    session_id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    created_at = Column(String, nullable=False)
    expires_at = Column(String, nullable=False)
