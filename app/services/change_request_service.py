import logging
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.change_request import ChangeRequest, ChangeRequestStatus
from app.services.appointment_service import get_customer_appointment
from app.services.exceptions import (
    AlreadyResolved,
    ChangeRequestNotFound,
    InvalidRequest,
    NotEditable,
    RequestAlreadyPending,
)
from app.services.state_machine import is_editable

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


_DECISION_STATUS = {
    Decision.APPROVE: ChangeRequestStatus.APPROVED,
    Decision.REJECT: ChangeRequestStatus.REJECTED,
}

_DEFAULT_RESPONSE = {
    Decision.APPROVE: "Approved",
    Decision.REJECT: "Rejected",
}


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _open_request_filter(appointment_id: int):
    return (
        (ChangeRequest.appointment_id == appointment_id)
        & (
            (ChangeRequest.status == ChangeRequestStatus.PENDING)
            | ((ChangeRequest.status == ChangeRequestStatus.APPROVED) & (ChangeRequest.consumed == False))  # noqa: E712
        )
    )


async def get_change_request(session: AsyncSession, request_id: int) -> ChangeRequest:
    result = await session.execute(select(ChangeRequest).where(ChangeRequest.id == request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise ChangeRequestNotFound(request_id)
    return request


async def create_change_request(
    session: AsyncSession, customer_id: int, appointment_id: int, reason: str
) -> ChangeRequest:
    reason = reason.strip()
    if not reason:
        raise InvalidRequest("A reason is required for a change request")
    appointment = await get_customer_appointment(session, appointment_id, customer_id)
    if not is_editable(appointment.status):
        raise NotEditable(
            f"Appointment {appointment_id} is {appointment.status.value}; "
            "changes can only be requested while PENDING or CONFIRMED"
        )
    existing = await session.execute(select(ChangeRequest.id).where(_open_request_filter(appointment_id)))
    if existing.first() is not None:
        raise RequestAlreadyPending(f"Appointment {appointment_id} already has an open change request")
    request = ChangeRequest(appointment_id=appointment_id, customer_id=customer_id, reason=reason)
    session.add(request)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Concurrent change request for appointment %s: %s", appointment_id, exc)
        raise RequestAlreadyPending(
            f"Appointment {appointment_id} already has an open change request", cause=exc
        ) from exc
    await session.refresh(request)
    logger.info("Change request %s filed for appointment %s", request.id, appointment_id)
    return request


async def resolve_change_request(
    session: AsyncSession, request_id: int, decision: Decision, admin_response: str | None = None
) -> ChangeRequest:
    """Approve or reject exactly once; a second resolver gets AlreadyResolved."""
    request = await get_change_request(session, request_id)
    result = await session.execute(
        update(ChangeRequest)
        .where(ChangeRequest.id == request_id, ChangeRequest.status == ChangeRequestStatus.PENDING)
        .values(
            status=_DECISION_STATUS[decision],
            admin_response=admin_response or _DEFAULT_RESPONSE[decision],
            responded_at=_utc_naive_now(),
        )
        .execution_options(synchronize_session=False)
    )
    await session.refresh(request)
    if result.rowcount != 1:
        raise AlreadyResolved(f"Change request {request_id} is already {request.status.value}")
    logger.info("Change request %s %s", request_id, request.status.value)
    return request


async def find_consumable_approval(session: AsyncSession, appointment_id: int) -> ChangeRequest | None:
    result = await session.execute(
        select(ChangeRequest).where(
            ChangeRequest.appointment_id == appointment_id,
            ChangeRequest.status == ChangeRequestStatus.APPROVED,
            ChangeRequest.consumed == False,  # noqa: E712
        )
    )
    approvals = list(result.scalars().all())
    return approvals[0] if len(approvals) == 1 else None


async def can_edit(session: AsyncSession, appointment_id: int) -> bool:
    return await find_consumable_approval(session, appointment_id) is not None


async def consume_approval(session: AsyncSession, appointment_id: int) -> ChangeRequest:
    """Atomically mark the single approved request as used; NotEditable if there is none."""
    approval = await find_consumable_approval(session, appointment_id)
    if approval is None:
        raise NotEditable(f"Appointment {appointment_id} has no approved change request")
    result = await session.execute(
        update(ChangeRequest)
        .where(
            ChangeRequest.id == approval.id,
            ChangeRequest.status == ChangeRequestStatus.APPROVED,
            ChangeRequest.consumed == False,  # noqa: E712
        )
        .values(consumed=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotEditable(f"Change request {approval.id} was already used")
    await session.refresh(approval)
    return approval


async def list_change_requests_for_customer(session: AsyncSession, customer_id: int) -> list[ChangeRequest]:
    result = await session.execute(
        select(ChangeRequest)
        .where(ChangeRequest.customer_id == customer_id)
        .order_by(ChangeRequest.requested_at.desc(), ChangeRequest.id.desc())
    )
    return list(result.scalars().all())


async def list_change_requests(
    session: AsyncSession, status: ChangeRequestStatus | None = None
) -> list[ChangeRequest]:
    q = select(ChangeRequest).order_by(ChangeRequest.requested_at.desc(), ChangeRequest.id.desc())
    if status is not None:
        q = q.where(ChangeRequest.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())
