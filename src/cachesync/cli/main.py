"""Main CLI entry point for cachesync.

Provides command-line access to copying, validating, and hashing cached files.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from cachesync.sync import (
    DefaultHashProvider,
    HashRecord,
    HashType,
    SyncConfig,
    SyncOrchestrator,
    ValidationOptions,
    Validator,
    update_last_used,
)
from cachesync.sync.config import get_global_config
from cachesync.sync.notify import Notifier

# Global console for Rich output
console = Console()

HASH_TYPE_CHOICES = [t.value for t in HashType if t is not HashType.UNDEFINED]


class RichNotifier(Notifier):
    """Notifier that prints to the Rich console."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def warning(self, message: str) -> None:
        if not self.quiet:
            console.print(f"[yellow]![/yellow] {message}", style="yellow")

    def error(self, message: str) -> None:
        console.print(f"[red]✗[/red] {message}", style="red")


def load_config(config_path: Optional[str]) -> SyncConfig:
    """Load config from an explicit file, or fall back to the global config."""
    if config_path:
        return SyncConfig.load(Path(config_path))
    return get_global_config()


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a JSON config file (default: ~/.cachesync/config.json)",
)
@click.option("--quiet", "-q", is_flag=True, help="Hide warnings")
@click.pass_context
def cli(ctx, config_path, quiet):
    """cachesync - Keep local copies of shared data files valid."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["quiet"] = quiet


@cli.command("copy")
@click.argument("source", type=click.Path())
@click.argument("target_dir", type=click.Path(file_okay=False))
@click.option(
    "--recheck-days",
    type=int,
    default=None,
    help="Recompute the local hash once its .hashcheck file is this many days old (0 = always)",
)
@click.option(
    "--hash-type",
    type=click.Choice(HASH_TYPE_CHOICES, case_sensitive=False),
    default=None,
    help="Hash type for new .hashcheck files",
)
@click.pass_context
def copy_command(ctx, source, target_dir, recheck_days, hash_type):
    """Copy SOURCE into TARGET_DIR unless a valid local copy already exists.

    Example:
        cachesync copy /mnt/share/A.bin ~/cache --recheck-days 7
    """
    try:
        config = load_config(ctx.obj.get("config_path"))
        orchestrator = SyncOrchestrator(
            config=config, notifier=RichNotifier(ctx.obj.get("quiet", False))
        )
        result = orchestrator.copy_file_to_local(
            source, target_dir, recheck_interval_days=recheck_days, hash_type=hash_type
        )
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)

    if not result:
        console.print(f"[red]✗[/red] {result.error_message}", style="red")
        sys.exit(1)

    console.print(f"[green]✓[/green] Up to date: {Path(target_dir) / Path(source).name}")


@cli.command("validate")
@click.argument("file", type=click.Path())
@click.option("--expected-hash", default="", help="Expected hash value")
@click.option(
    "--hash-type",
    type=click.Choice(HASH_TYPE_CHOICES, case_sensitive=False),
    default=None,
    help="Hash type of --expected-hash, and of a newly created .hashcheck file",
)
@click.option("--recheck-days", type=int, default=0, help="Recheck interval in days")
@click.option("--no-hash", is_flag=True, help="Do not recompute the hash")
@click.option("--no-size", is_flag=True, help="Do not compare the file size")
@click.option("--no-date", is_flag=True, help="Do not compare the modification date")
@click.pass_context
def validate_command(ctx, file, expected_hash, hash_type, recheck_days, no_hash, no_size, no_date):
    """Validate FILE against its .hashcheck file (created if missing).

    Example:
        cachesync validate ~/cache/A.bin --expected-hash 2fd4e1c6... --hash-type sha1
    """
    if expected_hash and not hash_type:
        raise click.UsageError("--expected-hash requires --hash-type")

    if expected_hash:
        expected = HashRecord(hash_value=expected_hash, hash_type=HashType.parse(hash_type))
    else:
        expected = HashRecord.empty()
    options = ValidationOptions(
        check_date=not no_date,
        compute_hash=not no_hash,
        check_size=not no_size,
        recheck_interval_days=recheck_days,
    )

    validator = Validator(notifier=RichNotifier(quiet=True))
    result = validator.validate(file, expected, options, new_hash_type=hash_type)

    if not result:
        console.print(f"[red]✗[/red] {result.error_message}", style="red")
        sys.exit(1)

    console.print(f"[green]✓[/green] Valid: {file}")


@cli.command("hashcheck")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--hash-type",
    type=click.Choice(HASH_TYPE_CHOICES, case_sensitive=False),
    default="sha1",
    show_default=True,
    help="Hash algorithm",
)
def hashcheck_command(file, hash_type):
    """Compute the hash of FILE and (re)write its .hashcheck file."""
    hash_value, warning = DefaultHashProvider().create_hash_record(file, HashType.parse(hash_type))

    if not hash_value:
        console.print(f"[red]✗[/red] {warning}", style="red")
        sys.exit(1)

    if warning:
        console.print(f"[yellow]![/yellow] {warning}", style="yellow")

    console.print(f"{hash_type}  {hash_value}  {file}")


@cli.command("touch")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def touch_command(ctx, file):
    """Record FILE as used now by rewriting its .LastUsed file."""
    update_last_used(file, RichNotifier(ctx.obj.get("quiet", False)))


if __name__ == "__main__":
    cli()
