"""Ticket database model."""

from sqlalchemy import Column, String, Text
from .base import Base


class TicketModel(Base):
    __tablename__ = "tickets"

    ticket_id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    classroom = Column(String, nullable=False)
    unit_id = Column(String, nullable=False)
    issue_type = Column(String, nullable=False)
    issue_subtype = Column(String, nullable=True)
    issue_description = Column(Text, nullable=False)
    image_url = Column(String, nullable=True)
    status = Column(String, index=True, nullable=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
    resolution_note = Column(Text, nullable=True)
    reviewed_by = Column(String, nullable=True)
