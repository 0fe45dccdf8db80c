"""Reference data CLI commands."""

import asyncio
import json
from pathlib import Path

import typer
from loguru import logger

reference_app = typer.Typer()


@reference_app.command("load")
def load(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Reference data JSON bundle"),
) -> None:
    """Load regions, departments, communes, parties, and candidates.

    Loading is idempotent: rows are matched by code and updated in place.
    """
    from pydantic import ValidationError

    from tally_api.schemas.reference import ReferenceDataFile

    try:
        data = ReferenceDataFile.model_validate(json.loads(file_path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        typer.echo(f"Error: invalid reference file {file_path}: {e}", err=True)
        raise typer.Exit(code=1) from e

    counts = asyncio.run(_load(data))
    for entity, count in counts.items():
        typer.echo(f"{entity}: {count}")


async def _load(data):  # type: ignore[no-untyped-def]
    """Async implementation of the reference data load."""
    from tally_api.core.config import get_settings
    from tally_api.core.database import dispose_engine, get_session_factory, init_engine
    from tally_api.services.reference_service import load_reference_data

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            logger.info("Loading reference data")
            return await load_reference_data(session, data)
    finally:
        await dispose_engine()
