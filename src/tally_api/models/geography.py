"""Administrative unit reference models: Region → Department → Commune.

Reference data is loaded once (see ``reference_service.load_reference_data``)
and is read-only for the rest of the service.
"""

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tally_api.models.base import Base


class Region(Base):
    """Top-level administrative unit."""

    __tablename__ = "regions"

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    abbreviation: Mapped[str | None] = mapped_column(String(20), nullable=True)
    chief_town: Mapped[str | None] = mapped_column(String(200), nullable=True)

    departments: Mapped[list["Department"]] = relationship(
        back_populates="region",
        order_by="Department.label",
    )


class Department(Base):
    """Mid-level administrative unit; the unit results are submitted for."""

    __tablename__ = "departments"

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    abbreviation: Mapped[str | None] = mapped_column(String(20), nullable=True)
    chief_town: Mapped[str | None] = mapped_column(String(200), nullable=True)
    region_code: Mapped[int] = mapped_column(Integer, ForeignKey("regions.code"), nullable=False)

    region: Mapped["Region"] = relationship(back_populates="departments")
    communes: Mapped[list["Commune"]] = relationship(
        back_populates="department",
        order_by="Commune.code",
    )

    __table_args__ = (Index("idx_departments_region_code", "region_code"),)


class Commune(Base):
    """Leaf administrative unit; submits participation only."""

    __tablename__ = "communes"

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    department_code: Mapped[int] = mapped_column(Integer, ForeignKey("departments.code"), nullable=False)

    department: Mapped["Department"] = relationship(back_populates="communes")

    __table_args__ = (Index("idx_communes_department_code", "department_code"),)
