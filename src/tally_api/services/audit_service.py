"""Audit logging service.

Records an immutable trail of accepted submissions, including every use of
the forced-validation override and the rule violations it bypassed.
"""

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.models.audit_log import AuditLog
from tally_api.models.identity import Identity


def record_submission(
    session: AsyncSession,
    *,
    identity: Identity,
    action: str,
    unit_type: str,
    unit_code: int,
    validation_overridden: bool = False,
    request_metadata: dict | None = None,
) -> AuditLog:
    """Stage an audit record in the caller's transaction.

    Nothing is flushed or committed here, so the record is persisted if and
    only if the submission it describes is.

    Args:
        session: The database session carrying the submission transaction.
        identity: The submitting identity.
        action: The action performed (e.g. ``submit_department_results``).
        unit_type: ``department`` or ``commune``.
        unit_code: The unit submitted for.
        validation_overridden: Whether coherence rules were bypassed.
        request_metadata: Additional context (result counts, bypassed errors).

    Returns:
        The pending AuditLog record.
    """
    audit_log = AuditLog(
        identity_id=identity.id,
        username=identity.username,
        action=action,
        unit_type=unit_type,
        unit_code=unit_code,
        validation_overridden=validation_overridden,
        request_metadata=request_metadata,
    )
    session.add(audit_log)
    return audit_log


async def query_audit_logs(
    session: AsyncSession,
    *,
    identity_id: uuid.UUID | None = None,
    unit_type: str | None = None,
    unit_code: int | None = None,
    overridden_only: bool = False,
    start_time: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[AuditLog], int]:
    """Query audit logs with optional filters.

    Args:
        session: The database session.
        identity_id: Filter by submitting identity.
        unit_type: Filter by unit level (``department`` or ``commune``).
        unit_code: Filter by unit code. Department and commune codes share one
            integer space, so combine with ``unit_type`` to target a single unit.
        overridden_only: Only records where validation was bypassed.
        start_time: Filter records after this timestamp.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (audit log records, total count).
    """
    query = select(AuditLog)
    count_query = select(func.count(AuditLog.id))

    if identity_id is not None:
        query = query.where(AuditLog.identity_id == identity_id)
        count_query = count_query.where(AuditLog.identity_id == identity_id)
    if unit_type is not None:
        query = query.where(AuditLog.unit_type == unit_type)
        count_query = count_query.where(AuditLog.unit_type == unit_type)
    if unit_code is not None:
        query = query.where(AuditLog.unit_code == unit_code)
        count_query = count_query.where(AuditLog.unit_code == unit_code)
    if overridden_only:
        query = query.where(AuditLog.validation_overridden.is_(True))
        count_query = count_query.where(AuditLog.validation_overridden.is_(True))
    if start_time is not None:
        query = query.where(AuditLog.timestamp >= start_time)
        count_query = count_query.where(AuditLog.timestamp >= start_time)

    total = (await session.execute(count_query)).scalar_one()

    offset = (page - 1) * page_size
    query = query.order_by(AuditLog.timestamp.desc()).offset(offset).limit(page_size)
    result = await session.execute(query)
    logs = list(result.scalars().all())

    return logs, total
