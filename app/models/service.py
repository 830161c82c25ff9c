import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class Service(SQLModel, table=True):
    """A bookable service line. Managed by the catalog admin; read-only to scheduling."""

    __tablename__ = "services"
    __table_args__ = (
        sa.CheckConstraint("max_daily_slots > 0", name="ck_services_max_daily_slots_positive"),
    )
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    category: str = Field(index=True)
    description: str | None = None
    max_daily_slots: int
    is_active: bool = True

