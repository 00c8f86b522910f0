"""Ticket routes.

Reporting, viewing, editing and deleting tickets, and the workflow action
endpoint through which class representatives and admins move a ticket along.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import get_current_user
from core.dependencies import TicketManagerDep
from core.exceptions import (
    PermissionDeniedError,
    TicketNotFoundError,
    TransitionRejected,
    ValidationError,
)
from schemas.ticket import (
    Ticket,
    TicketActionRequest,
    TicketCreate,
    TicketStatus,
    TicketUpdate,
    TicketView,
)
from schemas.user import Role, User
from utils.ticket_manager import search_tickets
from utils.ticket_workflow import allowed_actions

router = APIRouter(prefix="/api/tickets", tags=["Ticket"])

STAFF_ROLES = (Role.CLASS_REPRESENTATIVE.value, Role.ADMIN.value)


def _load_visible(ticket_manager, ticket_id: str, user: User) -> Ticket:
    """Load a ticket the user may see; others' tickets look missing to students."""
    try:
        ticket = ticket_manager.get_ticket(ticket_id)
    except TicketNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found",
        )
    if ticket.user_id != user.user_id and user.role not in STAFF_ROLES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found",
        )
    return ticket


def _view(ticket: Ticket, user: User) -> TicketView:
    actions = [] if ticket.user_id == user.user_id else allowed_actions(ticket.status, user.role)
    return TicketView(ticket=ticket, allowed_actions=actions)


@router.post(
    "",
    response_model=Ticket,
    status_code=status.HTTP_201_CREATED,
    summary="Report an issue",
)
def create_ticket(
    req: TicketCreate,
    ticket_manager: TicketManagerDep,
    current_user: User = Depends(get_current_user),
) -> Ticket:
    """Submit a facility issue report. The ticket starts as pending."""
    try:
        return ticket_manager.create_ticket(current_user, req)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=List[Ticket], summary="List my tickets")
def list_my_tickets(
    ticket_manager: TicketManagerDep,
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    q: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> List[Ticket]:
    tickets = ticket_manager.list_user_tickets(current_user.user_id)
    if status_filter is not None:
        tickets = [t for t in tickets if t.status == status_filter]
    return search_tickets(tickets, q)


@router.get("/{ticket_id}", response_model=TicketView, summary="Get a ticket")
def get_ticket(
    ticket_id: str,
    ticket_manager: TicketManagerDep,
    current_user: User = Depends(get_current_user),
) -> TicketView:
    ticket = _load_visible(ticket_manager, ticket_id, current_user)
    return _view(ticket, current_user)


@router.patch("/{ticket_id}", response_model=Ticket, summary="Edit my pending ticket")
def update_ticket(
    ticket_id: str,
    req: TicketUpdate,
    ticket_manager: TicketManagerDep,
    current_user: User = Depends(get_current_user),
) -> Ticket:
    """Edit the details of one's own ticket before it has been reviewed."""
    ticket = _load_visible(ticket_manager, ticket_id, current_user)
    if ticket.user_id != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the reporter can edit a ticket.",
        )
    if ticket.status != TicketStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only pending tickets can be edited.",
        )
    try:
        updated = ticket_manager.update_ticket(ticket_id, req.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return updated


@router.delete("/{ticket_id}", summary="Delete a ticket")
def delete_ticket(
    ticket_id: str,
    ticket_manager: TicketManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Delete a ticket. Allowed for its reporter and for admins."""
    ticket = _load_visible(ticket_manager, ticket_id, current_user)
    if ticket.user_id != current_user.user_id and current_user.role != Role.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the reporter or an admin can delete a ticket.",
        )
    ticket_manager.delete_ticket(ticket_id)
    return {"success": True, "message": "Ticket deleted successfully"}


@router.post("/{ticket_id}/actions", response_model=Ticket, summary="Move a ticket along")
def apply_ticket_action(
    ticket_id: str,
    req: TicketActionRequest,
    ticket_manager: TicketManagerDep,
    current_user: User = Depends(get_current_user),
) -> Ticket:
    """Approve, reject, start or resolve a ticket.

    Raises:
        HTTPException: 404 if the ticket does not exist, 400 if the action
            is not allowed (wrong status, wrong role, self-review, or a
            missing resolution note).
    """
    try:
        return ticket_manager.apply_action(
            ticket_id, req.action, current_user, req.resolution_note
        )
    except TicketNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    except TransitionRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.reason)
