"""Account management commands."""

import click
from propfin.domain.account import AccountService
from propfin.domain.entities import ACCOUNT_TYPES
from propfin.domain.errors import DomainError
from propfin.cli.account_resolution import resolve_account_or_exit
from propfin.cli.error_handling import handle_domain_error
from propfin.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES),
    default="savings",
    show_default=True,
    help="Account type",
)
@click.option("--initial-balance", default="0", help="Opening balance (e.g., 5000 or 5,000.00)")
@click.option("--number", "account_number", default="", help="Bank account number")
@click.pass_context
def create_account(ctx, name: str, account_type: str, initial_balance: str, account_number: str):
    """Create a new account.

    Examples:
        propfin account create "HDFC Savings" --initial-balance 5000
        propfin account create "Wallet" --type cash
    """
    service = AccountService(ctx.obj["db"])

    try:
        balance = parse_amount(initial_balance)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        account_id = service.create_account(
            user_id=ctx.obj["user_id"],
            name=name,
            account_type=account_type,
            initial_balance=balance,
            account_number=account_number,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts with their balances."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(ctx.obj["user_id"])
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type:13s} | Balance: {acc.current_balance:>12}"
        )


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account with its transactions and transfers.

    ACCOUNT can be an account name or ID.

    Examples:
        propfin account delete "Wallet"
        propfin account delete 1 --yes
    """
    service = AccountService(ctx.obj["db"])
    user_id = ctx.obj["user_id"]
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id, user_id)

    if not yes and not click.confirm(
        f"Delete account '{account_obj.name}' (ID: {account_id}) with all its transactions and transfers?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id, user_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
