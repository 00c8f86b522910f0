"""Ticket status state machine.

    pending --approve (class-rep)--> approved --start (admin)--> in-progress
    in-progress --resolve (admin, note required)--> resolved
    pending --reject (class-rep)--> rejected

resolved and rejected are terminal. Every status change goes through
``transition``; nothing else writes ``Ticket.status``.
"""

from typing import Dict, List, Optional, Tuple

from core.exceptions import ResolutionNoteRequired, TransitionRejected
from schemas.ticket import TicketAction, TicketStatus
from schemas.user import Role


# (current status, action) -> (next status, role allowed to perform it)
TICKET_TRANSITIONS: Dict[Tuple[TicketStatus, TicketAction], Tuple[TicketStatus, Role]] = {
    (TicketStatus.PENDING, TicketAction.APPROVE): (
        TicketStatus.APPROVED,
        Role.CLASS_REPRESENTATIVE,
    ),
    (TicketStatus.PENDING, TicketAction.REJECT): (
        TicketStatus.REJECTED,
        Role.CLASS_REPRESENTATIVE,
    ),
    (TicketStatus.APPROVED, TicketAction.START): (
        TicketStatus.IN_PROGRESS,
        Role.ADMIN,
    ),
    (TicketStatus.IN_PROGRESS, TicketAction.RESOLVE): (
        TicketStatus.RESOLVED,
        Role.ADMIN,
    ),
}

TERMINAL_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.REJECTED})


def transition(
    current: TicketStatus,
    action: TicketAction,
    actor_role: str,
    resolution_note: Optional[str] = None,
) -> TicketStatus:
    """Compute the status that follows ``action``.

    Args:
        current: The ticket's present status.
        action: The requested workflow action.
        actor_role: Role of the user performing the action.
        resolution_note: Required (non-blank) for ``resolve``.

    Returns:
        The next status.

    Raises:
        TransitionRejected: If the action is not legal from ``current`` or
            not permitted for ``actor_role``.
        ResolutionNoteRequired: If resolving without a note.
    """
    current = TicketStatus(current)
    action = TicketAction(action)

    if current in TERMINAL_STATUSES:
        raise TransitionRejected(f"Ticket is already {current.value}")

    entry = TICKET_TRANSITIONS.get((current, action))
    if entry is None:
        raise TransitionRejected(
            f"Cannot {action.value} a ticket that is {current.value}"
        )

    next_status, required_role = entry
    if actor_role != required_role.value:
        raise TransitionRejected(
            f"Only a {required_role.value} can {action.value} a "
            f"{current.value} ticket"
        )

    if action == TicketAction.RESOLVE and not (resolution_note or "").strip():
        raise ResolutionNoteRequired()

    return next_status


def allowed_actions(current: TicketStatus, actor_role: str) -> List[TicketAction]:
    """List the actions ``actor_role`` may take on a ticket in ``current``."""
    current = TicketStatus(current)
    return [
        action
        for (status, action), (_, role) in TICKET_TRANSITIONS.items()
        if status == current and role.value == actor_role
    ]
