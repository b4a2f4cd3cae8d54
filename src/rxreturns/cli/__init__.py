"""CLI commands: one module per concern (serve, database, estimate, tokens)."""

from typer import Typer

from rxreturns.cli import db_commands, estimate_mode, serve_mode, token_commands
from rxreturns.utils.tracing import init_tracing

init_tracing()

app = Typer(help="Pharmacy returns optimization service")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(serve_mode.serve)
    app.command(name="init-db")(db_commands.init_db_command)
    app.command()(estimate_mode.estimate)
    app.command(name="issue-token")(token_commands.issue_token_command)


register_commands()
