"""Ticket lifecycle management.

This module provides creation, editing, deletion and querying of tickets, and
the single entry point (``apply_action``) through which ticket status changes.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytz

from core.exceptions import (
    PermissionDeniedError,
    TicketNotFoundError,
    TransitionRejected,
    ValidationError,
)
from schemas.ticket import Ticket, TicketAction, TicketCreate, TicketStatus
from schemas.user import Role, User
from utils.record_store import RecordStore
from utils.ticket_workflow import transition

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "classroom",
        "unit_id",
        "issue_type",
        "issue_subtype",
        "issue_description",
        "image_url",
    }
)

REQUIRED_FIELDS = ("classroom", "unit_id", "issue_type", "issue_description")

REPORTER_ROLES = (Role.STUDENT.value, Role.CLASS_REPRESENTATIVE.value)


def next_timestamp(previous: Optional[str] = None) -> str:
    """Return the current UTC time, strictly later than ``previous``."""
    now = datetime.now(pytz.utc)
    if previous:
        last = datetime.fromisoformat(previous)
        if now <= last:
            now = last + timedelta(microseconds=1)
    return now.isoformat()


def search_tickets(tickets: List[Ticket], query: Optional[str]) -> List[Ticket]:
    """Case-insensitive substring match on description, classroom and issue type."""
    if not query or not query.strip():
        return list(tickets)
    needle = query.strip().lower()
    return [
        t
        for t in tickets
        if needle in t.issue_description.lower()
        or needle in t.classroom.lower()
        or needle in t.issue_type.lower()
    ]


class TicketManager:
    """Manages ticket persistence and workflow operations."""

    def __init__(self, store: RecordStore):
        """Initialize TicketManager.

        Args:
            store: The configured RecordStore.
        """
        self.store = store

    def create_ticket(self, reporter: User, data: TicketCreate) -> Ticket:
        """Create a pending ticket owned by ``reporter``.

        Args:
            reporter: The submitting user.
            data: The report form.

        Returns:
            The stored Ticket.

        Raises:
            PermissionDeniedError: If the reporter is an admin or holds an
                unknown role.
            ValidationError: If a required field is blank.
        """
        if reporter.role not in REPORTER_ROLES:
            raise PermissionDeniedError(
                "Only students and class representatives can submit tickets"
            )
        for name in REQUIRED_FIELDS:
            if not str(getattr(data, name) or "").strip():
                raise ValidationError(f"{name} must not be empty")

        now = next_timestamp()
        ticket = Ticket(
            user_id=reporter.user_id,
            classroom=data.classroom.strip(),
            unit_id=data.unit_id.strip(),
            issue_type=data.issue_type.strip(),
            issue_subtype=data.issue_subtype,
            issue_description=data.issue_description.strip(),
            image_url=data.image_url,
            status=TicketStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.store.add_ticket(ticket)
        logger.info("Created ticket %s for user %s", ticket.ticket_id, reporter.user_id)
        return ticket

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self.store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def update_ticket(self, ticket_id: str, fields: Dict[str, Any]) -> Optional[Ticket]:
        """Merge editable fields into a ticket and refresh ``updated_at``.

        Status, resolution note and reviewer only change through
        ``apply_action``.

        Args:
            ticket_id: Ticket to update.
            fields: Partial field values.

        Returns:
            The updated Ticket, or None if no ticket has that id.

        Raises:
            ValidationError: If ``fields`` names a non-editable field or
                blanks a required one.
        """
        refused = set(fields) - EDITABLE_FIELDS
        if refused:
            raise ValidationError(
                f"Fields cannot be edited directly: {', '.join(sorted(refused))}"
            )
        for name in REQUIRED_FIELDS:
            if name in fields and not str(fields[name] or "").strip():
                raise ValidationError(f"{name} must not be empty")

        ticket = self.store.get_ticket(ticket_id)
        if ticket is None:
            return None

        updated = ticket.model_copy(
            update={**fields, "updated_at": next_timestamp(ticket.updated_at)}
        )
        self.store.save_ticket(updated)
        logger.info("Updated ticket %s fields: %s", ticket_id, sorted(fields))
        return updated

    def delete_ticket(self, ticket_id: str) -> bool:
        """Delete a ticket. Returns True if one was removed."""
        removed = self.store.delete_ticket(ticket_id)
        if removed:
            logger.info("Deleted ticket %s", ticket_id)
        return removed

    def list_tickets(self) -> List[Ticket]:
        return self.store.list_tickets()

    def list_user_tickets(self, user_id: str) -> List[Ticket]:
        return self.store.list_tickets(owner_id=user_id)

    def list_tickets_by_status(self, status: TicketStatus) -> List[Ticket]:
        return self.store.list_tickets(status=TicketStatus(status))

    def review_queue(
        self, reviewer: User, status: Optional[TicketStatus] = None
    ) -> List[Ticket]:
        """Tickets a class representative may review; never their own."""
        tickets = self.store.list_tickets(
            status=TicketStatus(status) if status is not None else None
        )
        return [t for t in tickets if t.user_id != reviewer.user_id]

    def apply_action(
        self,
        ticket_id: str,
        action: TicketAction,
        actor: User,
        resolution_note: Optional[str] = None,
    ) -> Ticket:
        """Run a workflow action against a ticket.

        Args:
            ticket_id: Target ticket.
            action: approve, reject, start or resolve.
            actor: The user performing the action.
            resolution_note: Required for resolve.

        Returns:
            The updated Ticket.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
            TransitionRejected: If the action is illegal for the ticket's
                status or the actor's role, or is a self-review. The ticket
                is left unchanged.
        """
        ticket = self.get_ticket(ticket_id)
        action = TicketAction(action)

        if (
            action in (TicketAction.APPROVE, TicketAction.REJECT)
            and ticket.user_id == actor.user_id
        ):
            raise TransitionRejected("You cannot review your own ticket")

        next_status = transition(ticket.status, action, actor.role, resolution_note)

        changes: Dict[str, Any] = {
            "status": next_status,
            "updated_at": next_timestamp(ticket.updated_at),
        }
        if action == TicketAction.RESOLVE:
            changes["resolution_note"] = resolution_note.strip()
        if action in (TicketAction.APPROVE, TicketAction.REJECT):
            changes["reviewed_by"] = actor.user_id

        updated = ticket.model_copy(update=changes)
        self.store.save_ticket(updated)
        logger.info(
            "Ticket %s: %s -> %s by %s (%s)",
            ticket_id,
            ticket.status.value,
            next_status.value,
            actor.user_id,
            action.value,
        )
        return updated
