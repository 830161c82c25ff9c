"""Appointment lifecycle: the closed set of actions, their edges and who may drive them."""

from enum import Enum
from typing import NamedTuple

from app.models.appointment import AppointmentStatus
from app.models.user import UserRole
from app.services.exceptions import InvalidTransition, PermissionDenied


class AppointmentAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    ASSIGN_EMPLOYEE = "assign_employee"
    MARK_READY = "mark_ready"
    MARK_COMPLETED = "mark_completed"
    CANCEL = "cancel"


class Transition(NamedTuple):
    source: AppointmentStatus
    target: AppointmentStatus
    actors: frozenset[UserRole]


_ADMIN = frozenset({UserRole.ADMIN})
_STAFF = frozenset({UserRole.ADMIN, UserRole.EMPLOYEE})
_CUSTOMER = frozenset({UserRole.CUSTOMER})

TRANSITIONS: dict[AppointmentAction, Transition] = {
    AppointmentAction.APPROVE: Transition(AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, _ADMIN),
    AppointmentAction.REJECT: Transition(AppointmentStatus.PENDING, AppointmentStatus.CANCELLED, _ADMIN),
    AppointmentAction.ASSIGN_EMPLOYEE: Transition(
        AppointmentStatus.CONFIRMED, AppointmentStatus.IN_SERVICE, _ADMIN
    ),
    AppointmentAction.MARK_READY: Transition(AppointmentStatus.IN_SERVICE, AppointmentStatus.READY, _STAFF),
    AppointmentAction.MARK_COMPLETED: Transition(AppointmentStatus.READY, AppointmentStatus.COMPLETED, _STAFF),
    AppointmentAction.CANCEL: Transition(AppointmentStatus.PENDING, AppointmentStatus.CANCELLED, _CUSTOMER),
}

if set(TRANSITIONS) != set(AppointmentAction):
    raise RuntimeError("every AppointmentAction needs a transition")

TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})
EDITABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})

# Statuses that hold a time slot and count against daily capacity
ACTIVE_STATUSES = frozenset(s for s in AppointmentStatus if s != AppointmentStatus.CANCELLED)


def resolve_transition(
    action: AppointmentAction, current: AppointmentStatus, actor_role: UserRole
) -> Transition:
    """Validate ``action`` from ``current`` for ``actor_role`` and return the edge.

    Raises PermissionDenied if the role may never drive this action, and
    InvalidTransition if the appointment is not in the action's source state.
    """
    transition = TRANSITIONS[action]
    if actor_role not in transition.actors:
        raise PermissionDenied(f"{actor_role.value} may not {action.value.replace('_', ' ')} an appointment")
    if current != transition.source:
        raise InvalidTransition(AppointmentStatus(current).value, transition.target.value)
    return transition


def is_editable(current: AppointmentStatus) -> bool:
    return current in EDITABLE_STATUSES
