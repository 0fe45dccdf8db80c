"""Reference data API endpoints.

GET /regions: regions with their departments
GET /parties: parties ordered by code
GET /candidates: candidates with their parties, ordered by code
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.dependencies import get_async_session
from tally_api.schemas.reference import CandidateResponse, PartyResponse, RegionResponse
from tally_api.services import reference_service

reference_router = APIRouter(tags=["reference"])


@reference_router.get("/regions", response_model=list[RegionResponse])
async def list_regions(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[RegionResponse]:
    """List regions with their departments. Public endpoint."""
    regions = await reference_service.list_regions(session)
    return [RegionResponse.model_validate(r) for r in regions]


@reference_router.get("/parties", response_model=list[PartyResponse])
async def list_parties(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[PartyResponse]:
    """List parties. Public endpoint."""
    parties = await reference_service.list_parties(session)
    return [PartyResponse.model_validate(p) for p in parties]


@reference_router.get("/candidates", response_model=list[CandidateResponse])
async def list_candidates(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[CandidateResponse]:
    """List candidates with their parties. Public endpoint."""
    candidates = await reference_service.list_candidates(session)
    return [CandidateResponse.model_validate(c) for c in candidates]
