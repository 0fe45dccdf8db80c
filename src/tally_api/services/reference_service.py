"""Reference data service.

Loads and lists the immutable reference data: regions, departments,
communes, parties and candidates. Department listings are filtered by the
caller's access scope.
"""

from loguru import logger
from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tally_api.models.candidate import Candidate, Party, candidate_parties
from tally_api.models.geography import Commune, Department, Region
from tally_api.schemas.reference import (
    CommuneSummary,
    DepartmentListItem,
    DepartmentListResponse,
    ReferenceDataFile,
    RegionSummary,
)
from tally_api.services.lock_service import UnitType, locked_codes
from tally_api.services.scope_service import AccessScope

NO_ASSIGNMENT_MESSAGE = "No department is assigned to this identity"


async def list_regions(session: AsyncSession) -> list[Region]:
    """All regions with their departments, ordered by label."""
    result = await session.execute(select(Region).options(selectinload(Region.departments)).order_by(Region.label))
    return list(result.scalars().all())


async def list_parties(session: AsyncSession) -> list[Party]:
    """All parties ordered by code."""
    result = await session.execute(select(Party).order_by(Party.code))
    return list(result.scalars().all())


async def list_candidates(session: AsyncSession) -> list[Candidate]:
    """All candidates with their parties, ordered by code."""
    result = await session.execute(
        select(Candidate).options(selectinload(Candidate.parties)).order_by(Candidate.code)
    )
    return list(result.scalars().all())


async def list_departments(
    session: AsyncSession,
    scope: AccessScope,
    *,
    region_code: int | None = None,
) -> DepartmentListResponse:
    """Departments visible within a scope, with lock status.

    Args:
        session: Async database session.
        scope: The caller's access scope (unrestricted for anonymous reads).
        region_code: Optional region filter.

    Returns:
        Matching departments ordered by region code then label. An empty
        restricted scope yields an empty listing with an explanatory message.
    """
    if scope.is_empty:
        return DepartmentListResponse(count=0, items=[], message=NO_ASSIGNMENT_MESSAGE)

    query = select(Department).options(selectinload(Department.region), selectinload(Department.communes))
    if not scope.unrestricted:
        query = query.where(Department.code.in_(sorted(scope.department_codes)))
    if region_code is not None:
        query = query.where(Department.region_code == region_code)
    query = query.order_by(Department.region_code, Department.label)

    departments = list((await session.execute(query)).scalars().all())
    locked = await locked_codes(session, UnitType.DEPARTMENT, [d.code for d in departments])

    items = [
        DepartmentListItem(
            code=d.code,
            label=d.label,
            abbreviation=d.abbreviation,
            chief_town=d.chief_town,
            region_code=d.region_code,
            region=RegionSummary.model_validate(d.region),
            communes=[CommuneSummary.model_validate(c) for c in d.communes],
            is_locked=d.code in locked,
            has_results=d.code in locked,
        )
        for d in departments
    ]
    return DepartmentListResponse(count=len(items), items=items)


async def load_reference_data(session: AsyncSession, data: ReferenceDataFile) -> dict[str, int]:
    """Insert or update reference data from a bundle.

    Rows are merged by code, so loading the same bundle twice is harmless.
    Candidate party links in the bundle replace the stored links of the
    candidates it lists.

    Args:
        session: Async database session.
        data: The parsed reference bundle.

    Returns:
        Number of rows processed per entity.
    """
    for region in data.regions:
        await session.merge(Region(**region.model_dump()))
    for department in data.departments:
        await session.merge(Department(**department.model_dump()))
    for commune in data.communes:
        await session.merge(Commune(**commune.model_dump()))
    for party in data.parties:
        await session.merge(Party(**party.model_dump()))
    for candidate in data.candidates:
        await session.merge(Candidate(**candidate.model_dump(exclude={"party_codes"})))
    await session.flush()

    links = [
        {"candidate_code": candidate.code, "party_code": party_code}
        for candidate in data.candidates
        for party_code in dict.fromkeys(candidate.party_codes)
    ]
    if data.candidates:
        await session.execute(
            delete(candidate_parties).where(candidate_parties.c.candidate_code.in_([c.code for c in data.candidates]))
        )
    if links:
        await session.execute(insert(candidate_parties), links)
    await session.commit()

    counts = {
        "regions": len(data.regions),
        "departments": len(data.departments),
        "communes": len(data.communes),
        "parties": len(data.parties),
        "candidates": len(data.candidates),
        "candidate_parties": len(links),
    }
    logger.info(f"Reference data loaded: {counts}")
    return counts
