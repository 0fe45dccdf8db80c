"""Recap service: read-only composition of department data.

Assembles department metadata, its participation and ranked results, and
the participation of each child commune that has submitted, with
completeness statistics. Nothing here writes.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tally_api.core.errors import NotFoundError
from tally_api.models.geography import Commune, Department
from tally_api.models.participation import CommuneParticipation, DepartmentParticipation, DepartmentResult
from tally_api.schemas.participation import (
    CommuneParticipationResponse,
    CommuneStatusResponse,
    DepartmentParticipationResponse,
    DepartmentStatusResponse,
    ResultResponse,
)
from tally_api.schemas.recap import CommuneRecapEntry, RecapDepartment, RecapResponse, RecapStats
from tally_api.schemas.reference import CommuneSummary, RegionSummary


def completion_percentage(with_data: int, total: int) -> float:
    """Share of communes with data, rounded to 1 decimal; 0 when there are none."""
    if total <= 0:
        return 0.0
    return round(with_data / total * 100, 1)


async def get_department_participation(session: AsyncSession, department_code: int) -> DepartmentParticipation | None:
    result = await session.execute(
        select(DepartmentParticipation).where(DepartmentParticipation.department_code == department_code)
    )
    return result.scalar_one_or_none()


async def list_department_results(session: AsyncSession, department_code: int) -> list[DepartmentResult]:
    """Results of a department, most votes first, ties by candidate code."""
    result = await session.execute(
        select(DepartmentResult)
        .options(selectinload(DepartmentResult.party))
        .where(DepartmentResult.department_code == department_code)
        .order_by(DepartmentResult.vote_count.desc(), DepartmentResult.candidate_code.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_department_status(session: AsyncSession, department_code: int) -> DepartmentStatusResponse:
    """Lock status of a department with its participation and results."""
    if await session.get(Department, department_code) is None:
        msg = f"Department {department_code} not found"
        raise NotFoundError(msg)
    participation = await get_department_participation(session, department_code)
    results = await list_department_results(session, department_code) if participation is not None else []
    return DepartmentStatusResponse(
        department_code=department_code,
        is_locked=participation is not None,
        participation=(
            DepartmentParticipationResponse.model_validate(participation) if participation is not None else None
        ),
        results=[ResultResponse.model_validate(r) for r in results],
    )


async def get_commune_status(session: AsyncSession, commune_code: int) -> CommuneStatusResponse:
    """Lock status of a commune with its participation record, if any."""
    if await session.get(Commune, commune_code) is None:
        msg = f"Commune {commune_code} not found"
        raise NotFoundError(msg)
    result = await session.execute(
        select(CommuneParticipation).where(CommuneParticipation.commune_code == commune_code)
    )
    participation = result.scalar_one_or_none()
    return CommuneStatusResponse(
        commune_code=commune_code,
        is_locked=participation is not None,
        participation=(
            CommuneParticipationResponse.model_validate(participation) if participation is not None else None
        ),
    )


async def list_department_participations(
    session: AsyncSession,
    *,
    department_code: int | None = None,
    region_code: int | None = None,
) -> list[DepartmentParticipation]:
    """Department participation records, ordered by region then department label.

    Args:
        session: Async database session.
        department_code: Only this department.
        region_code: Only departments of this region.
    """
    query = select(DepartmentParticipation).join(
        Department, Department.code == DepartmentParticipation.department_code
    )
    if department_code is not None:
        query = query.where(DepartmentParticipation.department_code == department_code)
    if region_code is not None:
        query = query.where(Department.region_code == region_code)
    query = query.order_by(Department.region_code, Department.label)
    result = await session.execute(query)
    return list(result.scalars().all())


async def build_recap(session: AsyncSession, department_code: int) -> RecapResponse:
    """Compose the recap view of a department.

    Args:
        session: Async database session.
        department_code: The department to summarize.

    Returns:
        Department metadata and communes, its participation and ranked
        results, a map of commune code to participation for communes that
        have submitted, completeness statistics, and the lock flag.

    Raises:
        NotFoundError: If the department does not exist.
    """
    dept_result = await session.execute(
        select(Department)
        .options(selectinload(Department.region), selectinload(Department.communes))
        .where(Department.code == department_code)
    )
    department = dept_result.scalar_one_or_none()
    if department is None:
        msg = f"Department {department_code} not found"
        raise NotFoundError(msg)

    participation = await get_department_participation(session, department_code)
    results = await list_department_results(session, department_code)

    commune_rows = await session.execute(
        select(CommuneParticipation, Commune)
        .join(Commune, Commune.code == CommuneParticipation.commune_code)
        .where(Commune.department_code == department_code)
        .order_by(Commune.code)
    )
    communes_data = {
        commune.code: CommuneRecapEntry(
            code=commune.code,
            label=commune.label,
            participation=CommuneParticipationResponse.model_validate(commune_participation),
        )
        for commune_participation, commune in commune_rows.all()
    }

    total = len(department.communes)
    with_data = len(communes_data)
    return RecapResponse(
        department=RecapDepartment(
            code=department.code,
            label=department.label,
            region=RegionSummary.model_validate(department.region),
            communes=[CommuneSummary.model_validate(c) for c in department.communes],
        ),
        participation=(
            DepartmentParticipationResponse.model_validate(participation) if participation is not None else None
        ),
        results=[ResultResponse.model_validate(r) for r in results],
        communes_data=communes_data,
        stats=RecapStats(
            total_communes=total,
            communes_with_data=with_data,
            completion_percentage=completion_percentage(with_data, total),
        ),
        is_locked=participation is not None,
    )
