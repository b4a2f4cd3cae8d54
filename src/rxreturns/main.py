"""Entry point: delegates to the CLI app (serve, init-db, estimate, issue-token)."""

from rich.traceback import install

from rxreturns.cli import app
from rxreturns.utils.tracing import shutdown_tracing


def run() -> None:
    try:
        install(show_locals=False, max_frames=5, word_wrap=True)
        app()
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    run()
