import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.models.refresh_token import RefreshToken
from app.models.user import User, UserCreate, UserPublic, UserRole

logger = logging.getLogger(__name__)

TokenBundle = tuple[User, str, str, int]


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        email=data.email.lower(),
        full_name=data.full_name,
        phone=data.phone,
        hashed_password=hash_password(data.password),
        role=data.role,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        role=user.role,
        is_active=user.is_active,
    )


def make_token_pair(user: User) -> tuple[str, str, int]:
    access = create_access_token(user.id, user.role.value)
    refresh = create_refresh_token(user.id)
    expires_in = settings.access_token_expire_minutes * 60
    return access, refresh, expires_in


def _utc_naive() -> datetime:
    """Naive UTC datetime for DB columns that are TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


async def store_refresh_token(session: AsyncSession, user_id: int, refresh_token: str) -> None:
    user_id_str, jti = decode_refresh_token(refresh_token)
    if not user_id_str or not jti:
        return
    expires_at = _utc_naive() + timedelta(days=settings.refresh_token_expire_days)
    session.add(RefreshToken(user_id=user_id, jti=jti, expires_at=expires_at))
    await session.flush()


async def _issue(session: AsyncSession, user: User) -> TokenBundle:
    access, refresh, expires_in = make_token_pair(user)
    await store_refresh_token(session, user_id=user.id, refresh_token=refresh)
    return user, access, refresh, expires_in


async def login_user(session: AsyncSession, email: str, password: str) -> TokenBundle | None:
    user = await get_user_by_email(session, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return await _issue(session, user)


async def signup_user(
    session: AsyncSession,
    email: str,
    password: str,
    full_name: str | None = None,
    phone: str | None = None,
) -> TokenBundle | None:
    """Self-service signup creates customers; the configured admin email bootstraps an admin."""
    existing = await get_user_by_email(session, email)
    if existing:
        return None
    role = UserRole.CUSTOMER
    if settings.admin_email and email.lower() == settings.admin_email.lower():
        role = UserRole.ADMIN
        logger.info("Bootstrapping admin account %s", email)
    user = await create_user(
        session, UserCreate(email=email, password=password, full_name=full_name, phone=phone, role=role)
    )
    return await _issue(session, user)


async def revoke_refresh_token(session: AsyncSession, jti: str) -> None:
    result = await session.execute(select(RefreshToken).where(RefreshToken.jti == jti))
    row = result.scalar_one_or_none()
    if row:
        row.revoked = True
        session.add(row)


async def refresh_tokens(session: AsyncSession, refresh_token: str) -> TokenBundle | None:
    user_id_str, jti = decode_refresh_token(refresh_token)
    if not user_id_str or not jti:
        return None
    result = await session.execute(
        select(RefreshToken).where(
            RefreshToken.jti == jti,
            RefreshToken.revoked == False,  # noqa: E712
            RefreshToken.expires_at > _utc_naive(),
        )
    )
    token_row = result.scalar_one_or_none()
    if not token_row:
        return None
    user = await get_user_by_id(session, int(user_id_str))
    if not user or not user.is_active:
        return None
    token_row.revoked = True
    session.add(token_row)
    return await _issue(session, user)


async def create_employee(session: AsyncSession, data: UserCreate) -> User | None:
    if await get_user_by_email(session, data.email):
        return None
    user = await create_user(session, data.model_copy(update={"role": UserRole.EMPLOYEE}))
    logger.info("Employee account %s created", user.id)
    return user


async def list_users(session: AsyncSession, role: UserRole) -> list[User]:
    result = await session.execute(select(User).where(User.role == role).order_by(User.id))
    return list(result.scalars().all())


async def set_user_active(session: AsyncSession, user_id: int, active: bool) -> User | None:
    user = await get_user_by_id(session, user_id)
    if not user:
        return None
    user.is_active = active
    session.add(user)
    await session.flush()
    await session.refresh(user)
    logger.info("User %s %s", user_id, "activated" if active else "deactivated")
    return user
