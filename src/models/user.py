"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Boolean, Column, String
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    student_id = Column(String, nullable=False)
    role = Column(String, nullable=False)  # 'student', 'class-representative' or 'admin'
    requested_role = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)  # ISO format string
