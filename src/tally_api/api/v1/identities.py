"""Identity API endpoints.

GET /identities/me/scope: the caller's resolved access scope
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from tally_api.core.dependencies import get_current_identity, get_write_scope
from tally_api.models.identity import Identity
from tally_api.schemas.common import ErrorResponse
from tally_api.schemas.scope import ScopeResponse
from tally_api.services.scope_service import AccessScope

identities_router = APIRouter(prefix="/identities", tags=["identities"])


@identities_router.get(
    "/me/scope",
    response_model=ScopeResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def get_my_scope(
    identity: Annotated[Identity, Depends(get_current_identity)],
    scope: Annotated[AccessScope, Depends(get_write_scope)],
) -> ScopeResponse:
    """Departments the caller may submit for."""
    return ScopeResponse(
        username=identity.username,
        role=identity.role,
        unrestricted=scope.unrestricted,
        department_codes=sorted(scope.department_codes),
    )
