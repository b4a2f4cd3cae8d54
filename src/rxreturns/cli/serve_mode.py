"""Serve mode: run the HTTP API with uvicorn."""

import sys

import typer
import uvicorn

from rxreturns.config import API_HOST, API_PORT
from rxreturns.db import init_db

from .shared import console, logger


def serve(
    port: int = typer.Option(API_PORT, "--port", "-p", help="Port for the API server"),
    host: str = typer.Option(API_HOST, "--host", "-h", help="Bind host"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes (development only)"),
) -> None:
    """Initialise the database and start the API server."""
    init_db()
    log = logger.bind(command="serve", host=host, port=port)
    log.info("serve.start")

    console.print(f"[green]Starting API server on http://{host}:{port}[/green]")
    console.print("[dim]Endpoints: /api/optimization, /api/credits, /api/inventory, /api/returns, /api/products, /api/admin, GET /health[/dim]")
    try:
        uvicorn.run(
            "rxreturns.api.app:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level="info",
            timeout_graceful_shutdown=15,
        )
    except KeyboardInterrupt:
        console.print("\n[dim]Shutting down...[/dim]")
        sys.exit(0)
