"""Write-once locking of administrative units.

A unit is locked exactly when a participation record exists for it; no
separate flag is stored. These checks are the early, descriptive rejection.
The uniqueness constraints on the participation tables are what guarantees
a single record per unit under concurrency.
"""

import enum

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.errors import AlreadyLockedError
from tally_api.models.participation import CommuneParticipation, DepartmentParticipation


class UnitType(enum.StrEnum):
    """Unit levels that accept submissions."""

    DEPARTMENT = "department"
    COMMUNE = "commune"


def _unit_column(unit_type: UnitType):  # type: ignore[no-untyped-def]
    if unit_type is UnitType.DEPARTMENT:
        return DepartmentParticipation.department_code
    return CommuneParticipation.commune_code


async def is_locked(session: AsyncSession, unit_type: UnitType, unit_code: int) -> bool:
    """Return whether a participation record already exists for the unit."""
    column = _unit_column(unit_type)
    result = await session.execute(select(exists().where(column == unit_code)))
    return bool(result.scalar())


async def assert_unlocked(session: AsyncSession, unit_type: UnitType, unit_code: int) -> None:
    """Fail if the unit already holds a participation record.

    Raises:
        AlreadyLockedError: If the unit is locked.
    """
    if await is_locked(session, unit_type, unit_code):
        raise AlreadyLockedError(unit_type.value, unit_code)


async def locked_codes(session: AsyncSession, unit_type: UnitType, unit_codes: list[int]) -> set[int]:
    """Return the subset of ``unit_codes`` that are locked."""
    if not unit_codes:
        return set()
    column = _unit_column(unit_type)
    result = await session.execute(select(column).where(column.in_(unit_codes)))
    return set(result.scalars().all())
