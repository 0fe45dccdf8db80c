"""Typer CLI root application with serve command."""

import typer

from tally_api.core.config import get_settings
from tally_api.core.logging import setup_logging

app = typer.Typer(name="tally-api", help="Election result collection CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "tally_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from tally_api.cli.audit_cmd import audit_app
    from tally_api.cli.db_cmd import db_app
    from tally_api.cli.identity_cmd import identity_app
    from tally_api.cli.recap_cmd import recap
    from tally_api.cli.reference_cmd import reference_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(identity_app, name="identity", help="Identity and assignment management commands")
    app.add_typer(reference_app, name="reference", help="Reference data commands")
    app.add_typer(audit_app, name="audit", help="Submission audit trail commands")
    app.command("recap")(recap)


_register_subcommands()
