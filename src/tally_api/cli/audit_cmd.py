"""Submission audit trail CLI commands."""

import asyncio

import typer

from tally_api.services.lock_service import UnitType

audit_app = typer.Typer()


@audit_app.command("list")
def list_audit(
    unit_type: UnitType | None = typer.Option(None, "--unit-type", help="Only records for this unit level"),
    unit_code: int | None = typer.Option(None, "--unit", help="Only records for this unit code"),
    overridden_only: bool = typer.Option(False, "--overridden", help="Only forced-validation submissions"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(20, "--page-size", min=1, max=200),
) -> None:
    """List accepted submissions, most recent first."""
    asyncio.run(_list_audit(unit_type, unit_code, overridden_only, page, page_size))


async def _list_audit(
    unit_type: UnitType | None,
    unit_code: int | None,
    overridden_only: bool,
    page: int,
    page_size: int,
) -> None:
    """Async implementation of audit listing."""
    from tally_api.core.config import get_settings
    from tally_api.core.database import dispose_engine, get_session_factory, init_engine
    from tally_api.services.audit_service import query_audit_logs

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            logs, total = await query_audit_logs(
                session,
                unit_type=unit_type.value if unit_type is not None else None,
                unit_code=unit_code,
                overridden_only=overridden_only,
                page=page,
                page_size=page_size,
            )
            for log in logs:
                forced = " FORCED" if log.validation_overridden else ""
                typer.echo(
                    f"{log.timestamp:%Y-%m-%d %H:%M:%S} {log.username:<16} {log.action} "
                    f"{log.unit_type} {log.unit_code}{forced}"
                )
            typer.echo(f"\nTotal: {total}")
    finally:
        await dispose_engine()
