"""Department recap CLI command."""

import asyncio

import typer


def recap(
    department_code: int = typer.Argument(..., help="Department code"),
) -> None:
    """Print a department's submission status and commune completion."""
    asyncio.run(_recap(department_code))


async def _recap(department_code: int) -> None:
    """Async implementation of the recap command."""
    from tally_api.core.config import get_settings
    from tally_api.core.database import dispose_engine, get_session_factory, init_engine
    from tally_api.core.errors import NotFoundError
    from tally_api.services.recap_service import build_recap

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            view = await build_recap(session, department_code)
    except NotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()

    typer.echo(f"Department {view.department.code} - {view.department.label}")
    typer.echo(f"Locked: {'yes' if view.is_locked else 'no'}")
    if view.participation is not None:
        p = view.participation
        typer.echo(
            f"Registered: {p.registered_count}  Voters: {p.voter_count}  "
            f"Participation: {p.participation_rate if p.participation_rate is not None else '-'}%"
        )
    for result in view.results:
        party = (result.party.abbreviation or result.party.label) if result.party else str(result.party_code)
        typer.echo(f"  {result.candidate_code:>4}  {party:<12} {result.vote_count:>10}  {result.percentage:.2f}%")
    stats = view.stats
    typer.echo(
        f"Communes: {stats.communes_with_data}/{stats.total_communes} submitted ({stats.completion_percentage:.1f}%)"
    )
