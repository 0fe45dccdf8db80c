"""Participation API endpoints.

POST /participation/validate: dry-run of the coherence rules
GET /participations/departments: department participation records
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.dependencies import get_async_session
from tally_api.schemas.participation import (
    DepartmentParticipationResponse,
    ParticipationCheckRequest,
    ParticipationCheckResponse,
)
from tally_api.services import recap_service, submission_service

participation_router = APIRouter(tags=["participation"])


@participation_router.post("/participation/validate", response_model=ParticipationCheckResponse)
async def validate_participation(request: ParticipationCheckRequest) -> ParticipationCheckResponse:
    """Check a tally against the coherence rules without saving it. Public endpoint."""
    errors = submission_service.check_request(request)
    return ParticipationCheckResponse(valid=not errors, forced=request.force_validation, errors=errors)


@participation_router.get("/participations/departments", response_model=list[DepartmentParticipationResponse])
async def list_department_participations(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    department: int | None = Query(default=None, gt=0, description="Filter by department code"),
    region: int | None = Query(default=None, gt=0, description="Filter by region code"),
) -> list[DepartmentParticipationResponse]:
    """List submitted department participation records. Public endpoint."""
    records = await recap_service.list_department_participations(
        session, department_code=department, region_code=region
    )
    return [DepartmentParticipationResponse.model_validate(r) for r in records]
