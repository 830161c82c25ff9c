from datetime import UTC, datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class ChangeRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ChangeRequest(SQLModel, table=True):
    __tablename__ = "change_requests"
    __table_args__ = (
        # At most one open request per appointment: awaiting review, or approved and unused
        sa.Index(
            "uq_change_requests_open",
            "appointment_id",
            unique=True,
            postgresql_where=sa.text("status = 'PENDING' OR (status = 'APPROVED' AND NOT consumed)"),
            sqlite_where=sa.text("status = 'PENDING' OR (status = 'APPROVED' AND NOT consumed)"),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", index=True)
    customer_id: int = Field(foreign_key="users.id", index=True)
    reason: str
    status: ChangeRequestStatus = Field(
        default=ChangeRequestStatus.PENDING,
        sa_column=sa.Column(
            sa.Enum(ChangeRequestStatus, native_enum=False, length=16),
            nullable=False,
            index=True,
        ),
    )
    admin_response: str | None = None
    consumed: bool = False
    requested_at: datetime = Field(
        default_factory=_utc_naive_now, sa_column=sa.Column(sa.DateTime(), nullable=False)
    )
    responded_at: datetime | None = Field(default=None, sa_column=sa.Column(sa.DateTime(), nullable=True))


class ChangeRequestPublic(SQLModel):
    id: int
    appointment_id: int
    customer_id: int
    reason: str
    status: ChangeRequestStatus
    admin_response: str | None = None
    consumed: bool
    requested_at: datetime
    responded_at: datetime | None = None
