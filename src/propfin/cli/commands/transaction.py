"""Transaction management commands."""

import click
from propfin.domain.account import AccountService
from propfin.domain.entities import CONTEXTS, PERSONAL, TRANSACTION_TYPES
from propfin.domain.errors import DomainError
from propfin.domain.transaction import TransactionService
from propfin.cli.account_resolution import resolve_account_or_exit
from propfin.cli.error_handling import handle_domain_error
from propfin.utils.amount_parser import parse_amount
from propfin.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage income and expense transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--type", "txn_type", type=click.Choice(TRANSACTION_TYPES), required=True)
@click.option("--amount", required=True, help="Positive amount (e.g., 1500 or 1,500.00)")
@click.option("--description", default="", help="Transaction description")
@click.option("--context", type=click.Choice(CONTEXTS), default=PERSONAL, show_default=True)
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--category", "category_id", type=int, help="Category ID")
@click.option("--tenant", "tenant_id", type=int, help="Tenant ID")
@click.option("--shop", "shop_id", type=int, help="Shop ID")
@click.option("--building", "building_id", type=int, help="Building ID")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    txn_type: str,
    amount: str,
    description: str,
    context: str,
    date: str | None,
    category_id: int | None,
    tenant_id: int | None,
    shop_id: int | None,
    building_id: int | None,
    notes: str | None,
):
    """Add a transaction and update the account balance.

    Examples:
        propfin txn add --account 1 --type income --amount 2000 --description "Salary"
        propfin txn add --account "Wallet" --type expense --amount 150 --date yesterday
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    txn_date = None
    if date is not None:
        try:
            txn_date = parse_date(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        transaction_id = TransactionService(db).create_transaction(
            user_id=ctx.obj["user_id"],
            account_id=account_id,
            type=txn_type,
            amount=txn_amount,
            description=description,
            context=context,
            transaction_date=txn_date,
            category_id=category_id,
            tenant_id=tenant_id,
            shop_id=shop_id,
            building_id=building_id,
            notes=notes,
        )
        click.echo(f"Created transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int) -> None:
    """Delete a transaction and reverse its balance effect.

    Deleting a rent collection also takes it back off the rent period.
    """
    try:
        TransactionService(ctx.obj["db"]).delete_transaction(transaction_id, ctx.obj["user_id"])
        click.echo(f"Deleted transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--context", type=click.Choice(CONTEXTS), help="Only this context")
@click.option("--account", help="Account name or ID")
@click.option("--limit", type=int, help="Maximum number of transactions")
@click.pass_context
def list_transactions(ctx, context: str | None, account: str | None, limit: int | None) -> None:
    """List transactions, newest first."""
    db = ctx.obj["db"]
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    transactions = TransactionService(db).list_transactions(
        ctx.obj["user_id"], context=context, account_id=account_id, limit=limit
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        sign = "+" if txn.type == "income" else "-"
        click.echo(
            f"{txn.id:4d} | {txn.transaction_date:%Y-%m-%d} | {sign}{txn.amount:>11} | "
            f"{txn.context:8s} | {txn.description}"
        )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
