from datetime import UTC, date, datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_SERVICE = "IN_SERVICE"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class VehicleDetails(SQLModel):
    vehicle_type: str
    vehicle_brand: str
    vehicle_model: str
    year_of_manufacture: str
    registration_number: str
    fuel_type: str
    additional_requirements: str | None = None


class Appointment(VehicleDetails, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.Index("ix_appointments_service_date", "service_id", "appointment_date"),
        sa.Index("ix_appointments_date_slot", "appointment_date", "time_slot"),
        # One live booking per (date, time slot), shop-wide
        sa.Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "time_slot",
            unique=True,
            postgresql_where=sa.text("status <> 'CANCELLED'"),
            sqlite_where=sa.text("status <> 'CANCELLED'"),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="users.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    appointment_date: date
    time_slot: str = Field(max_length=16)
    status: AppointmentStatus = Field(
        default=AppointmentStatus.PENDING,
        sa_column=sa.Column(
            sa.Enum(AppointmentStatus, native_enum=False, length=16),
            nullable=False,
            index=True,
        ),
    )
    assigned_employee_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    created_at: datetime = Field(
        default_factory=_utc_naive_now, sa_column=sa.Column(sa.DateTime(), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=_utc_naive_now, sa_column=sa.Column(sa.DateTime(), nullable=False)
    )


class AppointmentCreate(VehicleDetails):
    service_id: int
    appointment_date: date
    time_slot: str


class AppointmentUpdate(VehicleDetails):
    """Full replacement payload for an edit-in-place."""

    service_id: int
    appointment_date: date
    time_slot: str


class AppointmentPublic(VehicleDetails):
    id: int
    customer_id: int
    service_id: int
    appointment_date: date
    time_slot: str
    status: AppointmentStatus
    assigned_employee_id: int | None = None
    created_at: datetime
    updated_at: datetime
