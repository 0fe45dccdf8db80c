"""Identity model and its department/region assignments."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Table, func, true
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tally_api.core.roles import Role
from tally_api.models.base import Base, UUIDMixin
from tally_api.models.geography import Department, Region

identity_departments = Table(
    "identity_departments",
    Base.metadata,
    Column("identity_id", UUID(as_uuid=True), ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True),
    Column("department_code", Integer, ForeignKey("departments.code", ondelete="CASCADE"), primary_key=True),
)

identity_regions = Table(
    "identity_regions",
    Base.metadata,
    Column("identity_id", UUID(as_uuid=True), ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True),
    Column("region_code", Integer, ForeignKey("regions.code", ondelete="CASCADE"), primary_key=True),
)

_ROLE_VALUES = ", ".join(f"'{r.value}'" for r in Role)


class Identity(Base, UUIDMixin):
    """An operator account known to the service.

    Credentials are issued elsewhere; the token subject is matched against
    ``username`` and the role and assignments are always read from here.
    """

    __tablename__ = "identities"

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    departments: Mapped[list[Department]] = relationship(secondary=identity_departments, order_by=Department.code)
    regions: Mapped[list[Region]] = relationship(secondary=identity_regions, order_by=Region.code)

    __table_args__ = (CheckConstraint(f"role IN ({_ROLE_VALUES})", name="ck_identity_role"),)
