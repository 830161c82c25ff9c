"""Typed, caller-recoverable failures of the scheduling core.

Every class carries the HTTP status it maps to and a stable ``code`` so the API
layer can translate them without per-route handling.
"""

from fastapi import status


class SchedulingError(Exception):
    """Base exception for scheduling failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "scheduling_error"

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class SlotConflict(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "slot_conflict"


class CapacityExceeded(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "capacity_exceeded"


class ServiceInactive(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "service_inactive"


class InvalidTimeSlot(SchedulingError):
    status_code = 422
    code = "invalid_time_slot"


class PastDate(SchedulingError):
    status_code = 422
    code = "past_date"


class InvalidTransition(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move appointment from {current} to {target}")
        self.current = current
        self.target = target


class NotEditable(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "not_editable"


class RequestAlreadyPending(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "request_already_pending"


class AlreadyResolved(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_resolved"


class EmployeeInactive(SchedulingError):
    status_code = 422
    code = "employee_inactive"


class PermissionDenied(SchedulingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"


class NotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class AppointmentNotFound(NotFound):
    code = "appointment_not_found"

    def __init__(self, appointment_id: int):
        super().__init__(f"Appointment {appointment_id} not found")


class ServiceNotFound(NotFound):
    code = "service_not_found"

    def __init__(self, service_id: int):
        super().__init__(f"Service {service_id} not found")


class ChangeRequestNotFound(NotFound):
    code = "change_request_not_found"

    def __init__(self, request_id: int):
        super().__init__(f"Change request {request_id} not found")


class EmployeeNotFound(NotFound):
    code = "employee_not_found"

    def __init__(self, employee_id: int):
        super().__init__(f"Employee {employee_id} not found")


class InvalidRequest(SchedulingError):
    status_code = 422
    code = "invalid_request"
