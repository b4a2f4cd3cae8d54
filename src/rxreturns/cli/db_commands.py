"""Database command: create tables, seed a fresh database from data/*.csv, print row counts."""

from rich.table import Table
from sqlalchemy import func, select

from rxreturns.config import DATABASE_URL
from rxreturns.db import get_session, init_db
from rxreturns.db.models import InventoryItem, Pharmacy, Product, ReturnReportRecord, ReverseDistributor

from .shared import console, logger

_COUNTED = (
    ("Pharmacies", Pharmacy),
    ("Products", Product),
    ("Reverse distributors", ReverseDistributor),
    ("Report records", ReturnReportRecord),
    ("Inventory items", InventoryItem),
)


def init_db_command() -> None:
    """Create tables (seeding a fresh database) and print row counts."""
    log = logger.bind(command="init-db")
    log.info("init_db.start", database_url=DATABASE_URL)
    init_db()

    table = Table(title="Database")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right", style="green")
    with get_session() as session:
        for label, model in _COUNTED:
            table.add_row(label, str(session.scalar(select(func.count()).select_from(model)) or 0))
    console.print(table)
    log.info("init_db.complete")
