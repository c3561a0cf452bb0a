"""Command-line interface for the interest calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute interest on a claim with additional credits and
partial payments, and inspect or maintain the rate history kept in the rate
store. Results can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import logging
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Tuple

import click

from .calculator import calculate as run_calculation
from .config import configure_logging, load_settings
from .data_models import CATEGORIES, FISSO, TIMELINE_CATEGORIES, CalculationRequest, LedgerEvent, MoratoryAdjustment, RateRecord
from .errors import InterestCalculationError
from .formatter import export_to_csv, export_to_json, print_rates, print_segments, print_summary
from .rate_store import create_store
from .utils import parse_amount, parse_date, parse_event_string, parse_kind, parse_optional_date

logger = logging.getLogger(__name__)


def parse_event_strings(values: Tuple[str, ...]) -> List[LedgerEvent]:
    events: List[LedgerEvent] = []
    for item in values:
        try:
            events.append(parse_event_string(item))
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--event")
    return events


def read_events_file(path: Path) -> List[LedgerEvent]:
    """Read movements from a CSV file with columns date,kind,amount,description.

    Rows with an empty date or amount are kept as empty events; the ledger
    discards them.
    """
    events: List[LedgerEvent] = []
    with path.open(newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            try:
                amount_raw = (row.get("amount") or "").strip()
                events.append(
                    LedgerEvent(
                        kind=parse_kind(row.get("kind") or ""),
                        date=parse_optional_date(row.get("date")),
                        amount=parse_amount(amount_raw) if amount_raw else Decimal("0"),
                        description=row.get("description") or "",
                    )
                )
            except ValueError as exc:
                raise click.BadParameter(f"line {line_no}: {exc}", param_hint="--events-file")
    return events


def build_request_from_options(
    principal: str,
    start: str,
    end: str,
    category: str,
    rate: Optional[str],
    pre_2013: bool,
    agricultural_surcharge: bool,
    surcharge_percent: str,
    event: Tuple[str, ...],
    events_file: Optional[str],
    no_art1194: bool,
) -> CalculationRequest:
    try:
        principal_value = parse_amount(principal)
        start_dt = parse_date(start)
        end_dt = parse_date(end)
        fixed_rate = parse_amount(rate) if rate else None
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    events = parse_event_strings(event) if event else []
    if events_file:
        events.extend(read_events_file(Path(events_file)))
    return CalculationRequest(
        principal=principal_value,
        start_date=start_dt,
        end_date=end_dt,
        category=category,
        fixed_rate=fixed_rate,
        adjustment=MoratoryAdjustment(
            pre_transaction_discount=pre_2013,
            agricultural_surcharge=agricultural_surcharge,
            surcharge_percent=Decimal(surcharge_percent),
        ),
        events=events,
        apply_allocation_rule=not no_art1194,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Interest on debt-recovery claims with credits and partial payments."""
    settings = load_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Initial claim (1234.56 or 1.234,56)")
@click.option("--start", "-s", "start", required=True, help="Start of accrual (YYYY-MM-DD)")
@click.option("--end", "-e", "end", required=True, help="End of accrual (YYYY-MM-DD)")
@click.option("--category", "-c", "category", type=click.Choice(CATEGORIES), default="legale", help="Interest category")
@click.option("--rate", "-r", "rate", help="Fixed annual rate in percent (category 'fisso')")
@click.option("--pre-2013", "pre_2013", is_flag=True, help="Late-payment rate for transactions concluded by 2012-12-31 (-1 point)")
@click.option("--agricultural-surcharge", "agricultural_surcharge", is_flag=True, help="Late-payment surcharge for agricultural products")
@click.option("--surcharge-percent", "surcharge_percent", type=click.Choice(["2", "4"]), default="4", help="Agricultural surcharge points")
@click.option("--event", "event", multiple=True, help="Movement in YYYY-MM-DD:KIND:AMOUNT[:DESCRIPTION] format")
@click.option("--events-file", "events_file", type=click.Path(exists=True, dir_okay=False), help="CSV file with date,kind,amount,description columns")
@click.option("--no-art1194", "no_art1194", is_flag=True, help="Apply payments to principal only")
@click.option("--database-url", "database_url", help="Rate store URL")
@click.option("--show-segments", "show_segments", is_flag=True, help="Print the accrual segments")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def calculate(
    principal: str,
    start: str,
    end: str,
    category: str,
    rate: Optional[str],
    pre_2013: bool,
    agricultural_surcharge: bool,
    surcharge_percent: str,
    event: Tuple[str, ...],
    events_file: Optional[str],
    no_art1194: bool,
    database_url: Optional[str],
    show_segments: bool,
    output: Optional[str],
) -> None:
    """Compute accrued interest and residual amounts at the end date."""
    settings = load_settings()
    request = build_request_from_options(
        principal,
        start,
        end,
        category,
        rate,
        pre_2013,
        agricultural_surcharge,
        surcharge_percent,
        event,
        events_file,
        no_art1194,
    )
    timeline = None
    if category != FISSO:
        url = database_url or settings.database_url
        logger.debug("Loading %s rates from %s", category, url)
        store = create_store(url)
        if not store.rates_for(category):
            raise click.ClickException(
                f"The rate store has no {category} rates; run 'interessi rates seed' first"
            )
        timeline = store.timeline()
    try:
        result = run_calculation(request, timeline, max_events=settings.max_events)
    except InterestCalculationError as exc:
        raise click.ClickException(str(exc))

    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Result exported to {path}")
        return
    print_summary(result)
    if show_segments:
        print_segments(result.segments)


@cli.group()
def rates() -> None:
    """Inspect and maintain the rate history."""


@rates.command("list")
@click.option("--category", "-c", "category", type=click.Choice(TIMELINE_CATEGORIES), help="Only this category")
@click.option("--database-url", "database_url", help="Rate store URL")
def list_rates(category: Optional[str], database_url: Optional[str]) -> None:
    """List stored rates, most recent first."""
    store = create_store(database_url or load_settings().database_url)
    print_rates(store.list_rates(category))


@rates.command("seed")
@click.option("--database-url", "database_url", help="Rate store URL")
def seed_rates(database_url: Optional[str]) -> None:
    """Load the bundled rate history into an empty store."""
    store = create_store(database_url or load_settings().database_url)
    count = store.seed_defaults()
    if count:
        click.echo(f"Inserted {count} rates")
    else:
        click.echo("Rate store already populated; nothing inserted")


@rates.command("add")
@click.option("--category", "-c", "category", type=click.Choice(TIMELINE_CATEGORIES), required=True)
@click.option("--percentage", "percentage", required=True, help="Annual rate in percent")
@click.option("--valid-from", "valid_from", required=True, help="First day of validity (YYYY-MM-DD)")
@click.option("--valid-to", "valid_to", help="Last day of validity (YYYY-MM-DD); open if omitted")
@click.option("--decree", "decree", help="Decree or publication reference")
@click.option("--note", "note", help="Free text note")
@click.option("--database-url", "database_url", help="Rate store URL")
def add_rate(
    category: str,
    percentage: str,
    valid_from: str,
    valid_to: Optional[str],
    decree: Optional[str],
    note: Optional[str],
    database_url: Optional[str],
) -> None:
    """Add a rate interval."""
    try:
        record = RateRecord(
            category=category,
            percentage=parse_amount(percentage),
            valid_from=parse_date(valid_from),
            valid_to=parse_optional_date(valid_to),
            decree_reference=decree,
            note=note,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    store = create_store(database_url or load_settings().database_url)
    try:
        rate_id = store.add_rate(record)
    except InterestCalculationError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Added rate {rate_id}")


@rates.command("remove")
@click.argument("rate_id")
@click.option("--database-url", "database_url", help="Rate store URL")
def remove_rate(rate_id: str, database_url: Optional[str]) -> None:
    """Remove a rate interval by id."""
    store = create_store(database_url or load_settings().database_url)
    try:
        store.remove_rate(rate_id)
    except KeyError:
        raise click.ClickException(f"Rate {rate_id} not found")
    click.echo(f"Removed rate {rate_id}")


if __name__ == "__main__":
    cli()
