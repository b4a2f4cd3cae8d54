"""Shared CLI helpers: console, logger, money formatting."""

from rich.console import Console

from rxreturns.utils.logger import get_logger

console = Console()
logger = get_logger("rxreturns.cli")


def money(value: float) -> str:
    return f"${value:,.2f}"
