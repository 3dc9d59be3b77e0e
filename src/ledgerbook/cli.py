"""Command line front end for the ledger."""

from __future__ import annotations

from datetime import date, datetime

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .errors import LedgerError
from .logging_config import setup_logging
from .services import admin_tasks
from .services.queries import SORT_OPTIONS, filter_and_sort

DIRECTIONS = click.Choice(["collect", "pay"], case_sensitive=False)
UI_STATUSES = click.Choice(["all", "unpaid", "partial", "paid", "overdue"])


def _ctx(obj: dict) -> AppContext:
    if "app" not in obj:
        config = BaseConfig()
        setup_logging(config)
        obj["app"] = create_app_context(config)
    return obj["app"]


def _parse_day(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


@click.group()
@click.pass_context
def cli(click_ctx: click.Context) -> None:
    """Track money to collect and money to pay."""
    click_ctx.ensure_object(dict)


@cli.command("add")
@click.argument("direction", type=DIRECTIONS)
@click.argument("counterparty")
@click.argument("amount", type=float)
@click.option("--currency", default=None, help="ISO code; defaults to your preference")
@click.option("--interest", type=float, default=0.0, show_default=True)
@click.option("--description", default=None)
@click.option("--mobile", default=None, help="Counterparty phone number")
@click.option("--due", default=None, help="Due date as YYYY-MM-DD")
@click.option("--reminder", default=None, help="Reminder interval, e.g. 1_day_before")
@click.pass_obj
def add_entry(obj, direction, counterparty, amount, currency, interest, description, mobile, due, reminder):
    """Record a new obligation."""
    app = _ctx(obj)
    try:
        entry = app.book.create_entry(
            user_id=app.require_user_id(),
            entry_type=direction,
            counterparty=counterparty,
            principal_amount=amount,
            currency=currency or app.currency_preferences().currency,
            interest_amount=interest,
            description=description,
            mobile_number=mobile,
            due_date=_parse_day(due),
            reminder_interval=reminder,
        )
    except (LedgerError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created entry {entry.id} ({entry.entry_type}) for {entry.counterparty}")


@cli.command("settle")
@click.argument("entry_id", type=int)
@click.argument("amount", type=float)
@click.option("--note", default=None, help="Settlement description")
@click.pass_obj
def settle_entry(obj, entry_id, amount, note):
    """Apply a repayment to an entry."""
    app = _ctx(obj)
    try:
        entry = app.engine.apply_settlement(
            entry_id, amount, user_id=app.require_user_id(), description=note
        )
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    prefs = app.currency_preferences()
    remaining = prefs.format(entry.remaining_amount, fraction_digits=2, currency=entry.currency)
    click.echo(f"Entry {entry.id}: {entry.status}, remaining {remaining}")


@cli.command("list")
@click.argument("direction", type=DIRECTIONS)
@click.option("--search", default="", help="Match counterparty or currency")
@click.option("--status", type=UI_STATUSES, default="all", show_default=True)
@click.option("--sort", type=click.Choice(SORT_OPTIONS), default=None)
@click.pass_obj
def list_entries(obj, direction, search, status, sort):
    """List entries of one direction."""
    app = _ctx(obj)
    records = app.book.list_records(direction, user_id=app.require_user_id(), today=date.today())
    shown = filter_and_sort(records, search_query=search, status=status, sort=sort)
    prefs = app.currency_preferences()
    for record in shown:
        amount = prefs.format(record.amount, currency=record.category)
        remaining = prefs.format(record.remaining, currency=record.category)
        click.echo(
            f"{record.id:>4}  {record.date[:10]}  {record.name:<24} {amount:>14} "
            f"{remaining:>14}  {record.status}"
        )
    click.echo(f"{len(shown)} of {len(records)} records")


@cli.command("totals")
@click.pass_obj
def totals(obj):
    """Show outstanding totals per direction."""
    app = _ctx(obj)
    uid = app.require_user_id()
    prefs = app.currency_preferences()
    for direction in ("collect", "pay"):
        total = app.book.outstanding_total(direction, user_id=uid)
        click.echo(f"{direction:<8} {prefs.format(total, abbreviate=True)}")


@cli.command("delete")
@click.argument("entry_id", type=int)
@click.pass_obj
def delete_entry(obj, entry_id):
    """Soft-delete an entry."""
    app = _ctx(obj)
    try:
        app.book.delete_entry(entry_id, user_id=app.require_user_id())
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted entry {entry_id}")


@cli.command("prefs")
@click.option("--currency", default=None)
@click.option("--locale", default=None, help="Locale override such as en-IN; '' clears it")
@click.pass_obj
def preferences(obj, currency, locale):
    """Show or change currency and locale preferences."""
    app = _ctx(obj)
    uid = app.require_user_id()
    if locale == "":
        app.preference_repo.clear_locale(user_id=uid)
        locale = None
    if currency or locale:
        app.preference_repo.upsert(user_id=uid, currency=currency, locale=locale)
    prefs = app.currency_preferences()
    click.echo(f"currency={prefs.currency} locale={prefs.locale}")


@cli.command("verify")
@click.pass_obj
def verify(obj):
    """Check cached balances against the settlement log."""
    app = _ctx(obj)
    drifts = app.book.verify_balances(user_id=app.require_user_id())
    for drift in drifts:
        click.echo(
            f"entry {drift.entry_id}: remaining {drift.cached_remaining} != {drift.expected_remaining}"
        )
    if drifts:
        raise click.ClickException(f"{len(drifts)} entries drifted")
    click.echo("All balances match the settlement log")


@cli.command("reset")
@click.confirmation_option(prompt="Delete ALL ledger data?")
@click.pass_obj
def reset(obj):
    """Permanently delete every entry, settlement, preference and user."""
    app = _ctx(obj)
    removed = admin_tasks.reset_all_data(app.session_factory)
    click.echo(", ".join(f"{table}={count}" for table, count in removed.items()))


def main() -> None:  # pragma: no cover - console entry point
    cli(obj={})


if __name__ == "__main__":  # pragma: no cover
    main()
