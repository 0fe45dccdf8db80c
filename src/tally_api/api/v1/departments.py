"""Department API endpoints.

GET /departments: departments visible to the caller
GET /departments/{code}/status: lock status with participation and results
GET /departments/{code}/recap: composed recap view
POST /departments/{code}/results: submit participation and results (locks the department)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.config import Settings, get_settings
from tally_api.core.dependencies import get_async_session, get_current_identity, get_read_scope, get_write_scope
from tally_api.models.identity import Identity
from tally_api.schemas.common import ErrorResponse
from tally_api.schemas.participation import (
    DepartmentParticipationResponse,
    DepartmentStatusResponse,
    DepartmentSubmissionRequest,
    DepartmentSubmissionResponse,
    ResultResponse,
)
from tally_api.schemas.recap import RecapResponse
from tally_api.schemas.reference import DepartmentListResponse
from tally_api.services import recap_service, reference_service, submission_service
from tally_api.services.scope_service import AccessScope

departments_router = APIRouter(prefix="/departments", tags=["departments"])


@departments_router.get("", response_model=DepartmentListResponse)
async def list_departments(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    scope: Annotated[AccessScope, Depends(get_read_scope)],
    region: int | None = Query(default=None, gt=0, description="Filter by region code"),
) -> DepartmentListResponse:
    """List departments within the caller's scope. Anonymous callers see all."""
    return await reference_service.list_departments(session, scope, region_code=region)


@departments_router.get(
    "/{department_code}/status",
    response_model=DepartmentStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_department_status(
    department_code: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DepartmentStatusResponse:
    """Lock status of a department. Public endpoint."""
    return await recap_service.get_department_status(session, department_code)


@departments_router.get(
    "/{department_code}/recap",
    response_model=RecapResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_department_recap(
    department_code: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> RecapResponse:
    """Recap of a department and its communes. Public endpoint."""
    return await recap_service.build_recap(session, department_code)


@departments_router.post(
    "/{department_code}/results",
    response_model=DepartmentSubmissionResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def submit_department_results(
    department_code: int,
    request: DepartmentSubmissionRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_current_identity)],
    scope: Annotated[AccessScope, Depends(get_write_scope)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DepartmentSubmissionResponse:
    """Submit a department's participation and results. Requires a scrutineer or administrator."""
    submission = await submission_service.submit_department_results(
        session,
        department_code,
        request,
        identity=identity,
        scope=scope,
        default_party_code=settings.default_party_code,
    )
    return DepartmentSubmissionResponse(
        participation=DepartmentParticipationResponse.model_validate(submission.participation),
        results=[ResultResponse.model_validate(r) for r in submission.results],
    )
