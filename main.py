#!/usr/bin/env python3
"""
Purchase-Order Receiving Console — CLI entry point.

Usage examples:
  python main.py check                                  # Verify API reachability and session
  python main.py show 42                                # Order status, progress, delivery log
  python main.py receive 42 -q 20 --next-date 2025-07-01
  python main.py receive 42 --fully-delivered           # Quantity defaults to what remains
  python main.py receive 42 -q 5 --fully-delivered --confirm-extra
  python main.py update 42 --unit-cost 12.50 --status "Partially Received"
  python main.py expected --day tomorrow                # Orders due tomorrow
  python main.py export 42 -o po-42.json
  python main.py serve --port 8080                      # Run the dashboard
"""
import json
import logging
import sys
from pathlib import Path

import click

from config import Config
from models.purchase_order import ALL_STATUSES
from models.result import ExtraQuantityPrompt
from receiving.api_client import OrderApiClient
from receiving.errors import ApiError, OrderFetchError, ReceiveError, UpdateError
from receiving.view import OrderView, build_order_view
from receiving.workflow import ReceivingWorkflow


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quieten noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _build_client(ctx: click.Context) -> OrderApiClient:
    config: Config = ctx.obj["config"]
    try:
        return OrderApiClient.from_config(config)
    except ApiError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


def _load_workflow(ctx: click.Context, order_id: int) -> ReceivingWorkflow:
    wf = ReceivingWorkflow(_build_client(ctx), order_id, config=ctx.obj["config"])
    try:
        wf.load()
    except OrderFetchError as e:
        if e.not_found:
            click.echo(f"No order found with ID #{order_id}.", err=True)
        else:
            click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    return wf


def _print_order(view: OrderView) -> None:
    o = view.order
    p = view.progress
    click.echo()
    click.echo(f"  Purchase Order #{o.order_id}")
    click.echo(f"  Status:            {o.status}")
    click.echo(f"  Delivery:          {view.delivery_status_label}")
    click.echo(f"  Item:              {o.item_name or 'N/A'}")
    click.echo(f"  Vendor:            {o.vendor_name or 'N/A'}")
    click.echo(f"  Expected:          {o.expected_delivery_date or 'N/A'}")
    click.echo(f"  Ordered:           {o.quantity_ordered} @ {o.unit_cost:.2f} = {o.total_cost:.2f}")
    click.echo(f"  Progress:          {p.percent_label}")
    click.echo(f"  Received:          {p.received_qty}   {p.remaining_label}")
    if view.show_next_delivery:
        click.echo(f"  Next delivery:     {o.next_delivery_date}  ({p.remaining_qty} units)")
    click.echo()

    if view.history:
        click.echo(f"  Delivery history ({len(view.history)}):")
        for record in view.history:
            when = (record.date or "")[:10] or "unknown date"
            note = f"  — {record.notes}" if record.notes else ""
            click.echo(f"    {when}  {record.quantity} units{note}")
        click.echo()

    if not view.can_receive:
        click.echo(f"  Receiving closed: order is {o.status}.")
        click.echo()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--api-url", default=None, help="Order API base URL (overrides GARAGE_API_URL)")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, api_url: str | None) -> None:
    """Purchase-Order Receiving Console — record deliveries against the order API."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose)
    config = Config()
    if api_url:
        config.api_base_url = api_url.rstrip("/")
    ctx.obj["config"] = config


# --------------------------------------------------------------------
# check command
# --------------------------------------------------------------------

@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify that the order API is reachable with the current session."""
    config: Config = ctx.obj["config"]
    click.echo("\n=== Receiving Console Check ===\n")
    click.echo(f"  API endpoint:  {config.api_base_url}")

    client = _build_client(ctx)
    if client.session is None:
        click.echo("  Session:       ✗ no token (set GARAGE_API_TOKEN or GARAGE_TOKEN_FILE)")
    elif client.session.is_expired():
        click.echo("  Session:       ✗ token expired — log in again")
    else:
        claims = client.session.claims
        who = claims.username or claims.subject or "unknown user"
        click.echo(f"  Session:       ✓ {who} (role: {claims.role or 'n/a'})")

    status = client.check_connection()
    if status["ok"]:
        click.echo(
            f"  API:           ✓ reachable "
            f"({status['expected_today']} due today, {status['expected_tomorrow']} tomorrow)"
        )
    else:
        click.echo(f"  API:           ✗ NOT reachable ({status.get('error')})")
    click.echo()
    if not status["ok"]:
        sys.exit(1)


# --------------------------------------------------------------------
# show command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print the order view as JSON")
@click.pass_context
def show(ctx: click.Context, order_id: int, as_json: bool) -> None:
    """Show an order's status, delivery progress and history."""
    wf = _load_workflow(ctx, order_id)
    view = build_order_view(wf)
    if as_json:
        click.echo(json.dumps(view.model_dump(mode="json"), indent=2))
        return
    _print_order(view)


# --------------------------------------------------------------------
# receive command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id", type=int)
@click.option("--quantity", "-q", default=None, help="Quantity received in this delivery")
@click.option("--fully-delivered", is_flag=True, help="This delivery completes the order")
@click.option("--notes", "-n", default="", help="Notes about this delivery")
@click.option("--next-date", default=None, help="Next expected delivery date (YYYY-MM-DD), required for partial deliveries")
@click.option("--confirm-extra", is_flag=True, help="Accept an over-delivery without prompting")
@click.pass_context
def receive(
    ctx: click.Context,
    order_id: int,
    quantity: str | None,
    fully_delivered: bool,
    notes: str,
    next_date: str | None,
    confirm_extra: bool,
) -> None:
    """Record a delivery against a purchase order."""
    wf = _load_workflow(ctx, order_id)
    if not wf.can_receive:
        click.echo(f"Error: order #{order_id} is {wf.order.status}; deliveries can no longer be recorded.", err=True)
        sys.exit(1)

    if fully_delivered and quantity is None:
        suggested = wf.prefill_full_delivery()
        if suggested is None:
            click.echo("Error: nothing remains on this order; pass --quantity explicitly.", err=True)
            sys.exit(1)
        quantity = str(suggested)
        click.echo(f"  Fully delivered: recording the remaining {quantity} units.")

    try:
        outcome = wf.submit_receipt(quantity, fully_delivered, notes, next_date)
        if isinstance(outcome, ExtraQuantityPrompt):
            click.echo()
            click.echo("  ⚠  Confirm Extra Quantity")
            click.echo(f"     {outcome.message}")
            click.echo(f"     Ordered:           {outcome.ordered} units")
            click.echo(f"     Would Be Received: {outcome.would_be_received} units")
            click.echo()
            if not (confirm_extra or click.confirm("  Record the extra quantity?", default=False)):
                wf.decline_extra_quantity()
                click.echo("  Delivery not recorded.")
                sys.exit(1)
            outcome = wf.confirm_extra_quantity()
    except ReceiveError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\n  ✓ {outcome.message}")
    if wf.fetch_error:
        click.echo(f"  ⚠  Could not refresh the order: {wf.fetch_error}", err=True)
        return
    _print_order(build_order_view(wf))


# --------------------------------------------------------------------
# update command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id", type=int)
@click.option("--expected-date", default=None, help="Expected delivery date (YYYY-MM-DD, '' to clear)")
@click.option("--unit-cost", default=None, help="Unit cost")
@click.option("--quantity-ordered", default=None, help="Quantity ordered")
@click.option("--status", type=click.Choice(ALL_STATUSES), default=None, help="Order status")
@click.pass_context
def update(
    ctx: click.Context,
    order_id: int,
    expected_date: str | None,
    unit_cost: str | None,
    quantity_ordered: str | None,
    status: str | None,
) -> None:
    """Update an order's expected date, unit cost, quantity or status."""
    wf = _load_workflow(ctx, order_id)
    o = wf.order
    # Unspecified options keep the order's current values, as the edit form does
    try:
        wf.update_order(
            o.expected_delivery_date if expected_date is None else expected_date,
            o.unit_cost if unit_cost is None else unit_cost,
            o.quantity_ordered if quantity_ordered is None else quantity_ordered,
            o.status if status is None else status,
        )
    except UpdateError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\n  ✓ {wf.message}")
    _print_order(build_order_view(wf))


# --------------------------------------------------------------------
# expected command
# --------------------------------------------------------------------

@cli.command()
@click.option("--day", type=click.Choice(["today", "tomorrow"]), default="today", help="Which day's deliveries to list")
@click.option("--page", default=1, type=int, help="Result page")
@click.pass_context
def expected(ctx: click.Context, day: str, page: int) -> None:
    """List open orders expected today or tomorrow."""
    from datetime import date, timedelta

    client = _build_client(ctx)
    on = date.today() + timedelta(days=1 if day == "tomorrow" else 0)
    try:
        counts = client.expected_counts()
        orders = client.list_expected_orders(on, page=page)
    except ApiError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"\n  Expected today: {counts.today}    tomorrow: {counts.tomorrow}\n")
    if not orders:
        click.echo(f"  No open orders expected on {on.isoformat()}.")
    for o in orders:
        click.echo(
            f"  #{o.order_id:<6} {(o.item_name or '')[:30]:<30} "
            f"{o.received_qty:>5}/{o.quantity_ordered:<5} {o.status}"
        )
    click.echo()


# --------------------------------------------------------------------
# export command
# --------------------------------------------------------------------

@cli.command()
@click.argument("order_id", type=int)
@click.option("--output", "-o", default=None, type=click.Path(), help="Write to this file instead of stdout")
@click.pass_context
def export(ctx: click.Context, order_id: int, output: str | None) -> None:
    """Export an order summary as JSON (purchase-order-<id>.json)."""
    from dashboard.services.export import export_filename, render_order_export

    wf = _load_workflow(ctx, order_id)
    text = render_order_export(wf.order)
    if output is None:
        click.echo(text)
        return
    out_path = Path(output)
    if out_path.is_dir():
        out_path = out_path / export_filename(wf.order)
    out_path.write_text(text + "\n", encoding="utf-8")
    click.echo(f"  Exported to: {out_path}")


# --------------------------------------------------------------------
# serve command
# --------------------------------------------------------------------

@cli.command()
@click.option("--host", default=None, help="Bind address (default: DASHBOARD_HOST or 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port (default: DASHBOARD_PORT or 8080)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the receiving dashboard."""
    import uvicorn

    from dashboard import app as dashboard_app

    config: Config = ctx.obj["config"]
    dashboard_app._config = config
    host = host or config.dashboard_host
    port = port or config.dashboard_port
    click.echo(f"\n  Dashboard:  http://{host}:{port}/orders/<id>\n  Order API:  {config.api_base_url}\n")
    uvicorn.run(dashboard_app.app, host=host, port=port)


if __name__ == "__main__":
    cli()
