"""Access scope resolution.

Single entry point for deciding which departments an identity may act on.
The scope is derived on demand from the identity's role and its direct
department and region assignments; it is never stored.
"""

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.errors import ForbiddenError
from tally_api.core.roles import Role
from tally_api.models.geography import Department
from tally_api.models.identity import Identity, identity_departments, identity_regions


@dataclass(frozen=True)
class AccessScope:
    """Resolved set of department codes, or unrestricted access."""

    unrestricted: bool = False
    department_codes: frozenset[int] = field(default_factory=frozenset)

    def allows(self, department_code: int) -> bool:
        return self.unrestricted or department_code in self.department_codes

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.department_codes


UNRESTRICTED = AccessScope(unrestricted=True)


async def _direct_department_codes(session: AsyncSession, identity: Identity) -> set[int]:
    result = await session.execute(
        select(identity_departments.c.department_code).where(identity_departments.c.identity_id == identity.id)
    )
    return set(result.scalars().all())


async def _region_department_codes(session: AsyncSession, identity: Identity) -> set[int]:
    region_codes = (
        select(identity_regions.c.region_code).where(identity_regions.c.identity_id == identity.id).scalar_subquery()
    )
    result = await session.execute(select(Department.code).where(Department.region_code.in_(region_codes)))
    return set(result.scalars().all())


async def resolve_scope(session: AsyncSession, identity: Identity) -> AccessScope:
    """Resolve the departments an identity may submit for and view.

    Args:
        session: The database session.
        identity: The identity, as loaded from the store.

    Returns:
        ``UNRESTRICTED`` for administrators; for scrutineers, the union of
        directly assigned departments and every department of an assigned
        region.

    Raises:
        ForbiddenError: If the identity's role grants no department access.
    """
    role = Role.parse(identity.role)
    if role is Role.ADMINISTRATOR:
        return UNRESTRICTED
    if role is Role.SCRUTINEER:
        codes = await _direct_department_codes(session, identity)
        codes |= await _region_department_codes(session, identity)
        logger.debug(f"Resolved scope for {identity.username}: {len(codes)} department(s)")
        return AccessScope(department_codes=frozenset(codes))

    logger.info(f"Role '{identity.role}' of {identity.username} has no department access")
    msg = f"Role '{identity.role}' is not allowed to access departments"
    raise ForbiddenError(msg)


async def resolve_read_scope(session: AsyncSession, identity: Identity | None) -> AccessScope:
    """Resolve the scope for a read path.

    Anonymous callers see the public transparency data without restriction.
    """
    if identity is None:
        return UNRESTRICTED
    return await resolve_scope(session, identity)


def authorize_department(scope: AccessScope, department_code: int) -> None:
    """Ensure a department lies within the scope.

    Raises:
        ForbiddenError: If the department is outside the scope.
    """
    if not scope.allows(department_code):
        msg = f"Department {department_code} is outside your assigned scope"
        raise ForbiddenError(msg)
