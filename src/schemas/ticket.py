"""Ticket schema definitions.

This module defines the Ticket record, its status and workflow action enums,
and the request bodies used by the ticket routes.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field, field_validator


class TicketStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class TicketAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    START = "start"
    RESOLVE = "resolve"


def _now() -> str:
    return datetime.now(pytz.utc).isoformat()


class Ticket(BaseModel):
    ticket_id: str = Field(
        description="The unique identifier for the ticket.",
        default_factory=lambda: f"ticket-{uuid.uuid4().hex[:12]}",
    )
    user_id: str = Field(description="The user_id of the reporting user.")
    classroom: str
    unit_id: str
    issue_type: str
    issue_subtype: Optional[str] = None
    issue_description: str
    image_url: Optional[str] = None
    status: TicketStatus = TicketStatus.PENDING
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)
    resolution_note: Optional[str] = None
    reviewed_by: Optional[str] = None


class TicketCreate(BaseModel):
    """Report form submitted by a student or class representative."""

    classroom: str
    unit_id: str
    issue_type: str
    issue_subtype: Optional[str] = None
    issue_description: str
    image_url: Optional[str] = None

    @field_validator("classroom", "unit_id", "issue_type", "issue_description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class TicketUpdate(BaseModel):
    """Owner edits to a ticket that has not been reviewed yet."""

    classroom: Optional[str] = None
    unit_id: Optional[str] = None
    issue_type: Optional[str] = None
    issue_subtype: Optional[str] = None
    issue_description: Optional[str] = None
    image_url: Optional[str] = None


class TicketActionRequest(BaseModel):
    action: TicketAction
    resolution_note: Optional[str] = None


class TicketView(BaseModel):
    """A ticket together with the workflow actions the viewer may take."""

    ticket: Ticket
    allowed_actions: List[TicketAction] = []
