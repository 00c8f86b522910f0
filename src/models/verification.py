from sqlalchemy import Column, Integer, String, UniqueConstraint

from .base import Base


class VerificationModel(Base):
    __tablename__ = "verifications"
    __table_args__ = (
        UniqueConstraint("email", "purpose", name="uq_verifications_email_purpose"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, index=True, nullable=False)
    purpose = Column(String, nullable=False)  # 'signup' or 'password_reset'
    code_hash = Column(String, nullable=False)
    expires_at = Column(String, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
