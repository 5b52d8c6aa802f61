"""Rent ledger commands."""

import click
from propfin.domain.accrual import RentAccrualService
from propfin.domain.account import AccountService
from propfin.domain.errors import DomainError
from propfin.domain.property import PropertyService
from propfin.domain.rent import RentPaymentService
from propfin.domain.scheduler import AccrualScheduler, interval_from_env
from propfin.cli.account_resolution import resolve_account_or_exit
from propfin.cli.error_handling import handle_domain_error
from propfin.utils.amount_parser import parse_amount
from propfin.utils.date_parser import parse_date


@click.group()
def rent_group():
    """Accrue, collect and reconcile shop rent."""
    pass


def _period_options(f):
    f = click.option("--year", type=int, required=True, help="Period year")(f)
    f = click.option("--month", type=click.IntRange(1, 12), required=True, help="Period month (1-12)")(f)
    f = click.option("--shop", "shop_id", type=int, required=True, help="Shop ID")(f)
    f = click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")(f)
    return f


def _amount_or_exit(ctx, value: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


@rent_group.command("pay")
@_period_options
@click.option("--amount", required=True, help="Amount paid")
@click.option("--account", help="Deposit into this account (name or ID) as property income")
@click.option("--date", help="Payment date (YYYY-MM-DD or relative like 'today')")
@click.option("--notes", help="Notes for the period")
@click.pass_context
def pay_rent(
    ctx,
    tenant_id: int,
    shop_id: int,
    month: int,
    year: int,
    amount: str,
    account: str | None,
    date: str | None,
    notes: str | None,
):
    """Record a rent payment for one period.

    Partial payments add up; paying more than the period's rent is rejected.

    Examples:
        propfin rent pay --tenant 1 --shop 2 --month 1 --year 2024 --amount 6000
        propfin rent pay --tenant 1 --shop 2 --month 1 --year 2024 --amount 4000 --account 1
    """
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    service = RentPaymentService(db)
    paid = _amount_or_exit(ctx, amount)

    payment_date = None
    if date is not None:
        try:
            payment_date = parse_date(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        if account is not None:
            account_id = resolve_account_or_exit(ctx, AccountService(db), account)
            rent, transaction_id = service.collect_rent(
                user_id, account_id, tenant_id, shop_id, month, year, paid,
                payment_date=payment_date, notes=notes,
            )
            click.echo(f"Deposited as transaction {transaction_id}")
        else:
            rent = service.apply_payment(
                user_id, tenant_id, shop_id, month, year, paid,
                payment_date=payment_date, notes=notes,
            )
        click.echo(
            f"Rent {month:02d}/{year}: paid {rent.paid_amount} of {rent.amount}, "
            f"pending {rent.pending_amount} ({rent.status})"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@rent_group.command("advance")
@click.option("--shop", "shop_id", type=int, required=True, help="Shop ID")
@click.option("--account", required=True, help="Deposit into this account (name or ID)")
@click.pass_context
def collect_advance(ctx, shop_id: int, account: str):
    """Collect a shop's advance deposit."""
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    try:
        transaction_id = RentPaymentService(db).collect_advance(ctx.obj["user_id"], account_id, shop_id)
        click.echo(f"Advance for shop {shop_id} deposited as transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@rent_group.command("reverse")
@_period_options
@click.option("--amount", required=True, help="Amount to take back")
@click.pass_context
def reverse_rent(ctx, tenant_id: int, shop_id: int, month: int, year: int, amount: str):
    """Take a payment back off a period (never below zero paid)."""
    service = RentPaymentService(ctx.obj["db"])
    try:
        rent = service.reverse_payment(
            ctx.obj["user_id"], tenant_id, shop_id, month, year, _amount_or_exit(ctx, amount)
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    if rent is None:
        click.echo(f"No rent period {month:02d}/{year} for shop {shop_id}; nothing to reverse.")
        return
    click.echo(
        f"Rent {month:02d}/{year}: paid {rent.paid_amount} of {rent.amount}, "
        f"pending {rent.pending_amount} ({rent.status})"
    )


@rent_group.command("delete")
@click.argument("rent_payment_id", type=int)
@click.pass_context
def delete_rent(ctx, rent_payment_id: int):
    """Delete a rent period settled outside the ledger."""
    try:
        RentPaymentService(ctx.obj["db"]).delete_rent_payment(rent_payment_id, ctx.obj["user_id"])
        click.echo(f"Deleted rent period {rent_payment_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@rent_group.command("list")
@click.option("--tenant", "tenant_id", type=int, help="Only this tenant")
@click.option("--shop", "shop_id", type=int, help="Only this shop")
@click.option("--year", type=int, help="Only this year")
@click.pass_context
def list_rent(ctx, tenant_id: int | None, shop_id: int | None, year: int | None):
    """List rent periods."""
    service = RentPaymentService(ctx.obj["db"])
    user_id = ctx.obj["user_id"]
    rents = service.list_rent_payments(user_id, tenant_id=tenant_id, shop_id=shop_id, year=year)
    if not rents:
        click.echo("No rent periods found.")
        return

    for r in rents:
        click.echo(
            f"{r.id:4d} | {r.year}-{r.month:02d} | shop {r.shop_id:3d} | tenant {r.tenant_id:3d} | "
            f"due {r.amount:>10} | paid {r.paid_amount:>10} | pending {r.pending_amount:>10} | {r.status}"
        )
    click.echo(f"\nPending before this month: {service.pending_rent(user_id)}")


@rent_group.command("accrue")
@click.option("--shop", "shop_id", type=int, help="Only this shop (default: every allocated shop)")
@click.pass_context
def accrue_rent(ctx, shop_id: int | None):
    """Create missing rent periods up to last month."""
    db = ctx.obj["db"]
    accrual = RentAccrualService(db)
    try:
        if shop_id is not None:
            shop = PropertyService(db).get_shop(shop_id, ctx.obj["user_id"])
            created = len(accrual.accrue_shop(shop))
        else:
            created = accrual.sweep()
        click.echo(f"Created {created} rent period{'s' if created != 1 else ''}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@rent_group.command("recalculate")
@click.pass_context
def recalculate_rent(ctx):
    """Recompute pending amounts and status for every rent period."""
    count = RentPaymentService(ctx.obj["db"]).recalculate_all(ctx.obj["user_id"])
    click.echo(f"Recalculated {count} rent period{'s' if count != 1 else ''}")


@rent_group.command("watch")
@click.option("--interval", type=float, help="Seconds between sweeps (default: PROPFIN_SWEEP_INTERVAL or one day)")
@click.option("--once", is_flag=True, help="Run a single sweep and exit")
@click.pass_context
def watch_rent(ctx, interval: float | None, once: bool):
    """Keep accruing rent in the background until interrupted."""
    accrual = RentAccrualService(ctx.obj["db"])
    if interval is None:
        try:
            interval = interval_from_env()
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    scheduler = AccrualScheduler(accrual.sweep, interval=interval)
    if once:
        created = scheduler.run_once()
        if created is None:
            click.echo("Error: accrual sweep failed, see log", err=True)
            ctx.exit(1)
        click.echo(f"Created {created} rent period{'s' if created != 1 else ''}")
        return

    click.echo(f"Accruing rent every {interval:g}s; press Ctrl+C to stop.")
    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()


def register_commands(cli):
    """Register rent commands with main CLI."""
    cli.add_command(rent_group, name="rent")
