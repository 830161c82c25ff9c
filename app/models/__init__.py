from app.models.user import User, UserCreate, UserPublic, UserRole
from app.models.refresh_token import RefreshToken
from app.models.service import Service
from app.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
    VehicleDetails,
)
from app.models.change_request import ChangeRequest, ChangeRequestPublic, ChangeRequestStatus

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "UserRole",
    "RefreshToken",
    "Service",
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "AppointmentStatus",
    "AppointmentUpdate",
    "VehicleDetails",
    "ChangeRequest",
    "ChangeRequestPublic",
    "ChangeRequestStatus",
]
