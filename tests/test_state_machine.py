import pytest

from app.models.appointment import AppointmentStatus
from app.models.user import UserRole
from app.services.exceptions import InvalidTransition, PermissionDenied
from app.services.state_machine import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    AppointmentAction,
    is_editable,
    resolve_transition,
)


@pytest.mark.parametrize(
    "action,source,target,role",
    [
        (AppointmentAction.APPROVE, AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, UserRole.ADMIN),
        (AppointmentAction.REJECT, AppointmentStatus.PENDING, AppointmentStatus.CANCELLED, UserRole.ADMIN),
        (
            AppointmentAction.ASSIGN_EMPLOYEE,
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_SERVICE,
            UserRole.ADMIN,
        ),
        (AppointmentAction.MARK_READY, AppointmentStatus.IN_SERVICE, AppointmentStatus.READY, UserRole.EMPLOYEE),
        (AppointmentAction.MARK_COMPLETED, AppointmentStatus.READY, AppointmentStatus.COMPLETED, UserRole.ADMIN),
        (AppointmentAction.CANCEL, AppointmentStatus.PENDING, AppointmentStatus.CANCELLED, UserRole.CUSTOMER),
    ],
)
def test_allowed_edges(action, source, target, role):
    transition = resolve_transition(action, source, role)
    assert transition.source == source
    assert transition.target == target


def test_every_action_has_an_edge():
    assert set(TRANSITIONS) == set(AppointmentAction)


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
@pytest.mark.parametrize("action", [a for a in AppointmentAction if a != AppointmentAction.CANCEL])
def test_terminal_states_have_no_way_out(terminal, action):
    with pytest.raises(InvalidTransition):
        resolve_transition(action, terminal, UserRole.ADMIN)


def test_customer_cannot_cancel_once_confirmed():
    with pytest.raises(InvalidTransition) as exc_info:
        resolve_transition(AppointmentAction.CANCEL, AppointmentStatus.CONFIRMED, UserRole.CUSTOMER)
    assert exc_info.value.current == "CONFIRMED"
    assert exc_info.value.target == "CANCELLED"


def test_ready_cannot_be_skipped():
    with pytest.raises(InvalidTransition):
        resolve_transition(AppointmentAction.MARK_COMPLETED, AppointmentStatus.IN_SERVICE, UserRole.ADMIN)


def test_assignment_requires_confirmation_first():
    with pytest.raises(InvalidTransition):
        resolve_transition(AppointmentAction.ASSIGN_EMPLOYEE, AppointmentStatus.PENDING, UserRole.ADMIN)


@pytest.mark.parametrize(
    "action,role",
    [
        (AppointmentAction.APPROVE, UserRole.CUSTOMER),
        (AppointmentAction.APPROVE, UserRole.EMPLOYEE),
        (AppointmentAction.ASSIGN_EMPLOYEE, UserRole.EMPLOYEE),
        (AppointmentAction.MARK_READY, UserRole.CUSTOMER),
        (AppointmentAction.CANCEL, UserRole.ADMIN),
    ],
)
def test_role_checked_before_state(action, role):
    # Wrong role is reported even when the state would also be wrong
    with pytest.raises(PermissionDenied):
        resolve_transition(action, AppointmentStatus.COMPLETED, role)


def test_editable_only_before_work_starts():
    editable = {s for s in AppointmentStatus if is_editable(s)}
    assert editable == {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}


def test_cancelled_releases_capacity():
    assert AppointmentStatus.CANCELLED not in ACTIVE_STATUSES
    assert AppointmentStatus.COMPLETED in ACTIVE_STATUSES
