"""CLI helpers for account resolution."""

from __future__ import annotations

import click
from propfin.domain.account import AccountService


def resolve_account(account_service: AccountService, user_id: int, account: str | int) -> int:
    """Resolve account name or ID to one of the user's account IDs.

    Raises:
        ValueError: If the account is not found
    """
    accounts = account_service.list_accounts(user_id)
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        for acc in accounts:
            if acc.id == account_id:
                return acc.id
    for acc in accounts:
        if acc.name == account:
            return acc.id
    raise ValueError(f"Account '{account}' not found")


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, ctx.obj["user_id"], account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
