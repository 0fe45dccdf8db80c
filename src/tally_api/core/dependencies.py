"""FastAPI dependency injection for database sessions, identity, and scope.

Provides get_async_session, the optional and required identity resolvers,
and the scope resolvers used by read and write paths. The identity behind
a bearer credential is always re-loaded from the store by token subject;
role claims carried in the token are ignored.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from tally_api.core.config import Settings, get_settings
from tally_api.core.database import get_session_factory
from tally_api.core.errors import UnauthorizedError
from tally_api.core.security import subject_from_token
from tally_api.models.identity import Identity
from tally_api.services import identity_service, scope_service
from tally_api.services.scope_service import AccessScope

bearer_scheme = HTTPBearer(auto_error=False)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def _identity_from_credentials(
    credentials: HTTPAuthorizationCredentials | None,
    session: AsyncSession,
    settings: Settings,
) -> Identity | None:
    if credentials is None or not credentials.credentials:
        return None
    username = subject_from_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if username is None:
        return None
    return await identity_service.get_identity_by_username(session, username)


async def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Identity | None:
    """Resolve the caller's identity for read paths.

    A missing, malformed, or unknown credential degrades to an anonymous
    caller instead of failing the request.
    """
    return await _identity_from_credentials(credentials, session, settings)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Identity:
    """Resolve the caller's identity for write paths.

    Args:
        credentials: The bearer credential, if any.
        session: The database session.
        settings: Application settings.

    Returns:
        The active identity named by the token subject.

    Raises:
        UnauthorizedError: If the credential is missing, invalid, or names no
            active identity.
    """
    identity = await _identity_from_credentials(credentials, session, settings)
    if identity is None:
        logger.warning("Rejected write request without a valid credential")
        msg = "Could not validate credentials"
        raise UnauthorizedError(msg)
    return identity


async def get_read_scope(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> AccessScope:
    """Scope for read paths; anonymous callers are unrestricted."""
    return await scope_service.resolve_read_scope(session, identity)


async def get_write_scope(
    identity: Annotated[Identity, Depends(get_current_identity)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> AccessScope:
    """Scope of the authenticated identity for write paths."""
    return await scope_service.resolve_scope(session, identity)
