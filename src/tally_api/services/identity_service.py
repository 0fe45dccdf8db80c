"""Identity management service.

Registers operator identities and their department/region assignments.
Identities are always looked up here by token subject; nothing about an
identity is taken from the credential itself.
"""

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.errors import NotFoundError
from tally_api.models.geography import Department, Region
from tally_api.models.identity import Identity, identity_departments, identity_regions
from tally_api.schemas.identity import IdentityCreateRequest


async def get_identity_by_username(session: AsyncSession, username: str) -> Identity | None:
    """Return the active identity with this username, if any."""
    result = await session.execute(select(Identity).where(Identity.username == username))
    identity = result.scalar_one_or_none()
    if identity is None or not identity.is_active:
        return None
    return identity


async def create_identity(session: AsyncSession, request: IdentityCreateRequest) -> Identity:
    """Create a new identity.

    Raises:
        ValueError: If the username already exists.
    """
    existing = await session.execute(select(Identity).where(Identity.username == request.username))
    if existing.scalar_one_or_none() is not None:
        msg = f"Identity '{request.username}' already exists"
        raise ValueError(msg)

    identity = Identity(username=request.username, email=request.email, role=request.role)
    session.add(identity)
    await session.commit()
    await session.refresh(identity)
    return identity


async def list_identities(session: AsyncSession, page: int = 1, page_size: int = 50) -> tuple[list[Identity], int]:
    """List identities ordered by username.

    Returns:
        Tuple of (identities, total count).
    """
    total = (await session.execute(select(func.count(Identity.id)))).scalar_one()
    result = await session.execute(
        select(Identity).order_by(Identity.username).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all()), total


async def _require_identity(session: AsyncSession, username: str) -> Identity:
    result = await session.execute(select(Identity).where(Identity.username == username))
    identity = result.scalar_one_or_none()
    if identity is None:
        msg = f"Identity '{username}' not found"
        raise NotFoundError(msg)
    return identity


async def assign_department(session: AsyncSession, username: str, department_code: int) -> bool:
    """Directly assign a department to an identity.

    Returns:
        True if the assignment was added, False if it already existed.

    Raises:
        NotFoundError: If the identity or department does not exist.
    """
    identity = await _require_identity(session, username)
    if await session.get(Department, department_code) is None:
        msg = f"Department {department_code} not found"
        raise NotFoundError(msg)
    existing = await session.execute(
        select(identity_departments.c.department_code).where(
            identity_departments.c.identity_id == identity.id,
            identity_departments.c.department_code == department_code,
        )
    )
    if existing.first() is not None:
        return False
    await session.execute(insert(identity_departments).values(identity_id=identity.id, department_code=department_code))
    await session.commit()
    return True


async def assign_region(session: AsyncSession, username: str, region_code: int) -> bool:
    """Assign a region (and so all its departments) to an identity.

    Returns:
        True if the assignment was added, False if it already existed.

    Raises:
        NotFoundError: If the identity or region does not exist.
    """
    identity = await _require_identity(session, username)
    if await session.get(Region, region_code) is None:
        msg = f"Region {region_code} not found"
        raise NotFoundError(msg)
    existing = await session.execute(
        select(identity_regions.c.region_code).where(
            identity_regions.c.identity_id == identity.id,
            identity_regions.c.region_code == region_code,
        )
    )
    if existing.first() is not None:
        return False
    await session.execute(insert(identity_regions).values(identity_id=identity.id, region_code=region_code))
    await session.commit()
    return True
