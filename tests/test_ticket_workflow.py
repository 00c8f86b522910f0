import pytest

from core.exceptions import ResolutionNoteRequired, TransitionRejected
from schemas.ticket import TicketAction, TicketStatus
from utils.ticket_workflow import TICKET_TRANSITIONS, allowed_actions, transition

REP = "class-representative"
ADMIN = "admin"
STUDENT = "student"


@pytest.mark.parametrize(
    "current, action, role, expected",
    [
        (TicketStatus.PENDING, TicketAction.APPROVE, REP, TicketStatus.APPROVED),
        (TicketStatus.PENDING, TicketAction.REJECT, REP, TicketStatus.REJECTED),
        (TicketStatus.APPROVED, TicketAction.START, ADMIN, TicketStatus.IN_PROGRESS),
    ],
)
def test_legal_transitions(current, action, role, expected):
    assert transition(current, action, role) == expected


def test_resolve_requires_a_note():
    with pytest.raises(ResolutionNoteRequired):
        transition(TicketStatus.IN_PROGRESS, TicketAction.RESOLVE, ADMIN)
    with pytest.raises(ResolutionNoteRequired):
        transition(TicketStatus.IN_PROGRESS, TicketAction.RESOLVE, ADMIN, "   ")
    assert (
        transition(TicketStatus.IN_PROGRESS, TicketAction.RESOLVE, ADMIN, "Replaced bulb")
        == TicketStatus.RESOLVED
    )


def test_resolution_note_required_is_a_rejection():
    assert issubclass(ResolutionNoteRequired, TransitionRejected)


@pytest.mark.parametrize("terminal", [TicketStatus.RESOLVED, TicketStatus.REJECTED])
@pytest.mark.parametrize("action", list(TicketAction))
def test_terminal_statuses_accept_nothing(terminal, action):
    for role in (STUDENT, REP, ADMIN):
        with pytest.raises(TransitionRejected):
            transition(terminal, action, role, "note")


def test_skipping_approval_is_rejected():
    with pytest.raises(TransitionRejected):
        transition(TicketStatus.PENDING, TicketAction.START, ADMIN)
    with pytest.raises(TransitionRejected):
        transition(TicketStatus.PENDING, TicketAction.RESOLVE, ADMIN, "done")


def test_wrong_role_is_rejected():
    with pytest.raises(TransitionRejected) as exc_info:
        transition(TicketStatus.PENDING, TicketAction.APPROVE, ADMIN)
    assert "class-representative" in exc_info.value.reason
    with pytest.raises(TransitionRejected):
        transition(TicketStatus.APPROVED, TicketAction.START, REP)
    with pytest.raises(TransitionRejected):
        transition(TicketStatus.PENDING, TicketAction.APPROVE, STUDENT)


def test_allowed_actions_follow_the_table():
    assert allowed_actions(TicketStatus.PENDING, REP) == [
        TicketAction.APPROVE,
        TicketAction.REJECT,
    ]
    assert allowed_actions(TicketStatus.PENDING, ADMIN) == []
    assert allowed_actions(TicketStatus.APPROVED, ADMIN) == [TicketAction.START]
    assert allowed_actions(TicketStatus.IN_PROGRESS, ADMIN) == [TicketAction.RESOLVE]
    assert allowed_actions(TicketStatus.RESOLVED, ADMIN) == []
    assert allowed_actions(TicketStatus.PENDING, STUDENT) == []


def test_no_transition_leaves_a_terminal_status():
    for status, _ in TICKET_TRANSITIONS:
        assert status not in (TicketStatus.RESOLVED, TicketStatus.REJECTED)
