"""Estimate mode: run the credit estimator over a CSV of return lines."""

from datetime import date
from pathlib import Path

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.table import Table

from rxreturns.config import default_fee_schedule
from rxreturns.db import init_db
from rxreturns.errors import AppError
from rxreturns.models.inputs import CreditEstimateItem
from rxreturns.services.credits import estimate_credits
from rxreturns.utils.csv_loader import load_estimate_items

from .shared import console, logger, money


def _to_item(row: dict) -> CreditEstimateItem:
    return CreditEstimateItem(
        ndc=row.get("ndc") or "",
        quantity=int(row.get("quantity") or 0),
        expiration_date=date.fromisoformat(row.get("expiration_date") or ""),
        lot_number=row.get("lot_number") or None,
        condition=(row.get("condition") or "").upper() or None,
    )


def estimate(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV with ndc, quantity, expiration_date"),
) -> None:
    """Estimate return credit for every line in a CSV and print the batch summary."""
    log = logger.bind(command="estimate", path=str(csv_path))
    log.info("estimate.start")
    init_db()

    try:
        items = [_to_item(row) for row in load_estimate_items(csv_path)]
        result = estimate_credits(items, schedule=default_fee_schedule())
    except (ValueError, PydanticValidationError) as e:
        console.print(f"[red]Invalid CSV row: {e}[/red]")
        log.warning("estimate.invalid_row", error=str(e))
        raise typer.Exit(1)
    except AppError as e:
        console.print(f"[red]{e.message}[/red]")
        log.warning("estimate.rejected", error=e.message)
        raise typer.Exit(1)

    table = Table(title="Credit estimate")
    table.add_column("NDC", style="cyan")
    table.add_column("Product")
    table.add_column("Qty", justify="right")
    table.add_column("Days left", justify="right")
    table.add_column("Credit %", justify="right")
    table.add_column("Credit", justify="right", style="green")
    table.add_column("Warning", style="yellow")
    for line in result["items"]:
        table.add_row(
            line["ndc"],
            line.get("product_name") or "-",
            str(line["quantity"]),
            str(line["days_to_expiration"]) if line.get("days_to_expiration") is not None else "-",
            f"{line['credit_percentage']:.0f}",
            money(line["estimated_credit"]),
            line.get("expiration_warning") or "",
        )
    console.print(table)

    summary = result["summary"]
    console.print(
        f"[bold]{summary['eligibleItems']}/{summary['totalItems']} eligible[/bold]  "
        f"credit {money(summary['totalEstimatedCredit'])}  "
        f"service {money(summary['serviceFees'])}  "
        f"transport {money(summary['transportationFees'])}  "
        f"[bold green]net {money(summary['netCredit'])}[/bold green]"
    )
    log.info("estimate.complete", items=summary["totalItems"], net_credit=summary["netCredit"])
