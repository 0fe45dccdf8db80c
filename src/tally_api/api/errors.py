"""Exception handlers rendering domain errors as JSON responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tally_api.core.errors import TallyError, UnauthorizedError


async def tally_error_handler(request: Request, exc: TallyError) -> JSONResponse:
    """Render a domain error as ``{"detail", "code", ...extra}``."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the domain error handlers on the FastAPI app.

    Args:
        app: The FastAPI application.
    """
    app.add_exception_handler(TallyError, tally_error_handler)  # type: ignore[arg-type]
