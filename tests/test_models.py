import pytest
import sqlalchemy as sa

from app.models import Appointment, ChangeRequest, RefreshToken
from app.services.appointment_service import create_appointment, get_appointment
from app.services.change_request_service import Decision, create_change_request, resolve_change_request
from tests.factories import booking


@pytest.mark.parametrize(
    "column",
    [
        Appointment.__table__.c.created_at,
        Appointment.__table__.c.updated_at,
        ChangeRequest.__table__.c.requested_at,
        ChangeRequest.__table__.c.responded_at,
        RefreshToken.__table__.c.expires_at,
    ],
    ids=lambda c: f"{c.table.name}.{c.name}",
)
def test_timestamp_columns_are_naive(column):
    # Stored as TIMESTAMP WITHOUT TIME ZONE, like the initial migration
    assert type(column.type) is sa.DateTime
    assert column.type.timezone is False


async def test_naive_timestamps_round_trip(run, customer, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    request = await run(create_change_request, customer.id, appointment.id, "Different slot please")
    resolved = await run(resolve_change_request, request.id, Decision.APPROVE)

    stored = await run(get_appointment, appointment.id)
    assert stored.created_at.tzinfo is None
    assert stored.updated_at.tzinfo is None
    assert resolved.requested_at.tzinfo is None
    assert resolved.responded_at is not None
    assert resolved.responded_at >= resolved.requested_at
