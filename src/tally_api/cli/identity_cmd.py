"""Identity management CLI commands."""

import asyncio

import typer

from tally_api.core.roles import Role

identity_app = typer.Typer()


@identity_app.command("create")
def create_identity(
    username: str = typer.Option(..., prompt=True, help="Username (the token subject)"),
    role: str = typer.Option(Role.SCRUTINEER.value, prompt=True, help="Role (administrator/scrutineer/observer)"),
    email: str | None = typer.Option(None, help="Email address"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if the identity already exists (idempotent mode)",
    ),
) -> None:
    """Register a new identity."""
    asyncio.run(_create_identity(username, role, email, if_not_exists=if_not_exists))


async def _create_identity(username: str, role: str, email: str | None, *, if_not_exists: bool = False) -> None:
    """Async implementation of identity creation."""
    from pydantic import ValidationError

    from tally_api.core.config import get_settings
    from tally_api.core.database import dispose_engine, get_session_factory, init_engine
    from tally_api.schemas.identity import IdentityCreateRequest
    from tally_api.services.identity_service import create_identity

    try:
        request = IdentityCreateRequest(username=username, email=email, role=role)
    except ValidationError as e:
        typer.echo(f"Error: invalid identity: {e.errors()[0]['msg']}", err=True)
        raise typer.Exit(code=1) from e

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            identity = await create_identity(session, request)
            typer.echo(f"Identity '{identity.username}' created with role '{identity.role}'")
    except ValueError as e:
        if if_not_exists and "already exists" in str(e):
            typer.echo(f"Identity '{username}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


@identity_app.command("list")
def list_identities() -> None:
    """List all identities."""
    asyncio.run(_list_identities())


async def _list_identities() -> None:
    """Async implementation of identity listing."""
    from tally_api.core.config import get_settings
    from tally_api.core.database import dispose_engine, get_session_factory, init_engine
    from tally_api.services.identity_service import list_identities

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            identities, total = await list_identities(session)
            typer.echo(f"{'Username':<20} {'Role':<14} {'Active':<8}")
            typer.echo("-" * 44)
            for identity in identities:
                typer.echo(f"{identity.username:<20} {identity.role:<14} {identity.is_active!s:<8}")
            typer.echo(f"\nTotal: {total}")
    finally:
        await dispose_engine()


@identity_app.command("assign-department")
def assign_department(
    username: str = typer.Argument(..., help="Identity username"),
    department_code: int = typer.Argument(..., help="Department code"),
) -> None:
    """Directly assign a department to an identity."""
    asyncio.run(_assign("department", username, department_code))


@identity_app.command("assign-region")
def assign_region(
    username: str = typer.Argument(..., help="Identity username"),
    region_code: int = typer.Argument(..., help="Region code"),
) -> None:
    """Assign a region, and so all of its departments, to an identity."""
    asyncio.run(_assign("region", username, region_code))


async def _assign(kind: str, username: str, code: int) -> None:
    """Async implementation of department/region assignment."""
    from tally_api.core.config import get_settings
    from tally_api.core.database import dispose_engine, get_session_factory, init_engine
    from tally_api.core.errors import NotFoundError
    from tally_api.services import identity_service

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    assign = identity_service.assign_department if kind == "department" else identity_service.assign_region
    try:
        factory = get_session_factory()
        async with factory() as session:
            added = await assign(session, username, code)
    except NotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()

    if added:
        typer.echo(f"Assigned {kind} {code} to '{username}'")
    else:
        typer.echo(f"'{username}' already has {kind} {code}")


@identity_app.command("token")
def issue_token(
    username: str = typer.Argument(..., help="Identity username (token subject)"),
    expires_minutes: int = typer.Option(30, "--expires-minutes", min=1, help="Token lifetime"),
) -> None:
    """Mint a bearer token for local testing of the write endpoints."""
    from tally_api.core.config import get_settings
    from tally_api.core.security import create_access_token

    settings = get_settings()
    token = create_access_token(
        username,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=expires_minutes,
    )
    typer.echo(token)
