"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from tally_api.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    setup_cors,
)
from tally_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from tally_api.api.v1.communes import communes_router
    from tally_api.api.v1.departments import departments_router
    from tally_api.api.v1.identities import identities_router
    from tally_api.api.v1.participation import participation_router
    from tally_api.api.v1.reference import reference_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(reference_router)
    root_router.include_router(departments_router)
    root_router.include_router(communes_router)
    root_router.include_router(participation_router)
    root_router.include_router(identities_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
    app.add_middleware(RequestLoggingMiddleware, trusted_proxy_headers=settings.trusted_proxy_header_list)
