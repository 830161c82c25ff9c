from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: str | None = None
    phone: str | None = None


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str
    role: UserRole = Field(
        default=UserRole.CUSTOMER,
        sa_column=sa.Column(
            sa.Enum(UserRole, native_enum=False, length=16),
            nullable=False,
            server_default=UserRole.CUSTOMER.value,
        ),
    )
    is_active: bool = True


class UserCreate(SQLModel):
    email: str
    password: str
    full_name: str | None = None
    phone: str | None = None
    role: UserRole = UserRole.CUSTOMER


class UserPublic(SQLModel):
    id: int
    email: str
    full_name: str | None = None
    phone: str | None = None
    role: UserRole
    is_active: bool
