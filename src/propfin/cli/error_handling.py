"""CLI error handling helpers."""

import click

from propfin.domain.errors import BusinessRuleError, DomainError, RestoreError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    Business-rule rejections exit with 2 so scripts can tell them apart from
    bad input (1). A restore that could not put the old data back exits with 3.
    """
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, RestoreError) and not error.rolled_back:
        ctx.exit(3)
    if isinstance(error, BusinessRuleError):
        ctx.exit(2)
    ctx.exit(1)
