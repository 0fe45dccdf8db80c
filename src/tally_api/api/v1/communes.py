"""Commune participation API endpoints.

GET /communes/{code}/participation: participation record and lock status
POST /communes/{code}/participation: submit participation (locks the commune)
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.dependencies import get_async_session, get_current_identity, get_write_scope
from tally_api.models.identity import Identity
from tally_api.schemas.common import ErrorResponse
from tally_api.schemas.participation import (
    CommuneParticipationRequest,
    CommuneParticipationResponse,
    CommuneStatusResponse,
    CommuneSubmissionResponse,
)
from tally_api.services import recap_service, submission_service
from tally_api.services.scope_service import AccessScope

communes_router = APIRouter(prefix="/communes", tags=["communes"])


@communes_router.get(
    "/{commune_code}/participation",
    response_model=CommuneStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_commune_participation(
    commune_code: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> CommuneStatusResponse:
    """Participation of a commune, if submitted. Public endpoint."""
    return await recap_service.get_commune_status(session, commune_code)


@communes_router.post(
    "/{commune_code}/participation",
    response_model=CommuneSubmissionResponse,
    status_code=201,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def submit_commune_participation(
    commune_code: int,
    request: CommuneParticipationRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_current_identity)],
    scope: Annotated[AccessScope, Depends(get_write_scope)],
) -> CommuneSubmissionResponse:
    """Submit a commune's participation. Requires a scrutineer or administrator."""
    participation = await submission_service.submit_commune_participation(
        session,
        commune_code,
        request,
        identity=identity,
        scope=scope,
    )
    return CommuneSubmissionResponse(participation=CommuneParticipationResponse.model_validate(participation))
