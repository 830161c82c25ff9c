from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.service import Service
from app.services.exceptions import ServiceNotFound


async def get_service(session: AsyncSession, service_id: int, *, for_update: bool = False) -> Service:
    q = select(Service).where(Service.id == service_id)
    if for_update:
        # Serialises bookings per service line on PostgreSQL; ignored by SQLite
        q = q.with_for_update()
    result = await session.execute(q)
    service = result.scalar_one_or_none()
    if not service:
        raise ServiceNotFound(service_id)
    return service


async def list_services(session: AsyncSession, include_inactive: bool = False) -> list[Service]:
    q = select(Service).order_by(Service.category, Service.name)
    if not include_inactive:
        q = q.where(Service.is_active == True)  # noqa: E712
    result = await session.execute(q)
    return list(result.scalars().all())
