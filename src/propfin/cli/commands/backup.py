"""Backup and restore commands."""

from pathlib import Path

import click
from propfin.domain.backup import BackupService
from propfin.domain.errors import DomainError
from propfin.cli.error_handling import handle_domain_error


@click.group()
def backup_group():
    """Export or restore all of your data."""
    pass


@backup_group.command("export")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_backup(ctx, file: Path):
    """Write a JSON backup to FILE."""
    text = BackupService(ctx.obj["db"]).export_text(ctx.obj["user_id"])
    file.write_text(text, encoding="utf-8")
    click.echo(f"Exported backup to {file}")


@backup_group.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def import_backup(ctx, file: Path, yes: bool):
    """Replace all of your data with the backup in FILE.

    The import is all or nothing: if it fails, your previous data is put back.
    """
    if not yes and not click.confirm("This replaces all of your current data. Continue?"):
        click.echo("Import cancelled.")
        return

    try:
        counts = BackupService(ctx.obj["db"]).restore_text(
            ctx.obj["user_id"], file.read_text(encoding="utf-8")
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("Data imported successfully")
    for key, count in counts.items():
        click.echo(f"  {key}: {count}")


def register_commands(cli):
    """Register backup commands with main CLI."""
    cli.add_command(backup_group, name="backup")
