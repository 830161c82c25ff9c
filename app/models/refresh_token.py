from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class RefreshToken(SQLModel, table=True):
    """Issued refresh-token ids; rotation revokes the old row (expires_at is naive UTC)."""

    __tablename__ = "refresh_tokens"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    jti: str = Field(unique=True, index=True)
    expires_at: datetime = Field(sa_column=sa.Column(sa.DateTime(), nullable=False, index=True))
    revoked: bool = False
