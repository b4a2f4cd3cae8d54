"""Token command: mint a bearer token for local testing."""

from typing import Optional

import typer

from rxreturns.auth.tokens import issue_token
from rxreturns.errors import ConfigError

from .shared import console, logger


def issue_token_command(
    subject: str = typer.Argument(..., help="Pharmacy id (or admin user id with --admin)"),
    admin: bool = typer.Option(False, "--admin", help="Sign with ADMIN_JWT_SECRET and add role=admin"),
    ttl_minutes: Optional[int] = typer.Option(None, "--ttl", help="Lifetime in minutes (default TOKEN_TTL_MINUTES)"),
) -> None:
    """Print a signed bearer token."""
    try:
        token = issue_token(subject, admin=admin, ttl_minutes=ttl_minutes)
    except ConfigError as e:
        console.print(f"[red]{e.message}: set {'ADMIN_JWT_SECRET' if admin else 'JWT_SECRET'} in .env[/red]")
        raise typer.Exit(1)
    logger.info("tokens.issued", subject=subject, admin=admin)
    console.print(token, soft_wrap=True)
