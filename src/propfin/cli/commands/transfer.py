"""Transfer commands."""

import click
from propfin.domain.account import AccountService
from propfin.domain.errors import DomainError
from propfin.domain.transfer import TransferService
from propfin.cli.account_resolution import resolve_account_or_exit
from propfin.cli.error_handling import handle_domain_error
from propfin.utils.amount_parser import parse_amount
from propfin.utils.date_parser import parse_date


@click.group()
def transfer_group():
    """Move money between your own accounts."""
    pass


@transfer_group.command("create")
@click.argument("from_account", metavar="FROM")
@click.argument("to_account", metavar="TO")
@click.argument("amount")
@click.option("--description", help="Description")
@click.option("--date", help="Transfer date (YYYY-MM-DD or relative like 'today')")
@click.pass_context
def create_transfer(
    ctx, from_account: str, to_account: str, amount: str, description: str | None, date: str | None
):
    """Transfer AMOUNT from one account to another.

    Examples:
        propfin transfer create "HDFC Savings" "Wallet" 1000
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    from_id = resolve_account_or_exit(ctx, account_service, from_account)
    to_id = resolve_account_or_exit(ctx, account_service, to_account)

    try:
        transfer_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    transfer_date = None
    if date is not None:
        try:
            transfer_date = parse_date(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        transfer_id = TransferService(db).create_transfer(
            user_id=ctx.obj["user_id"],
            from_account_id=from_id,
            to_account_id=to_id,
            amount=transfer_amount,
            description=description,
            transfer_date=transfer_date,
        )
        click.echo(f"Created transfer {transfer_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transfer_group.command("delete")
@click.argument("transfer_id", type=int)
@click.pass_context
def delete_transfer(ctx, transfer_id: int):
    """Delete a transfer and restore both balances."""
    try:
        TransferService(ctx.obj["db"]).delete_transfer(transfer_id, ctx.obj["user_id"])
        click.echo(f"Deleted transfer {transfer_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transfer_group.command("list")
@click.pass_context
def list_transfers(ctx):
    """List transfers, newest first."""
    transfers = TransferService(ctx.obj["db"]).list_transfers(ctx.obj["user_id"])
    if not transfers:
        click.echo("No transfers found.")
        return

    for t in transfers:
        click.echo(
            f"{t.id:4d} | {t.transfer_date:%Y-%m-%d} | {t.from_account_id} -> {t.to_account_id} | "
            f"{t.amount:>11} | {t.description or ''}"
        )


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
