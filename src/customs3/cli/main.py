"""Main CLI entry point."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from customs3.config.parser import Config, ConfigValidationError
from customs3.reconciler import FailurePolicy, Lister, PassResult, Reconciler
from customs3.reconciler.diagnostics import DiagnosticKind, Diagnostics
from customs3.state.manager import StateManager
from customs3.state.models import ManagedItemList
from customs3.store.s3 import S3BucketStore
from customs3.utils.aws_client import AWSClientManager, CredentialContext
from customs3.utils.errors import BucketError, CredentialError, ValidationError
from customs3.utils.logging import setup_logging, get_logger

console = Console()
logger = get_logger(__name__)


@click.group()
@click.option('--config', 'config_path', default='customs3.yaml', help='Path to configuration file')
@click.option('--state', 'state_path', default='.customs3/state/buckets.json', help='Path to state file')
@click.option('--log-level', default='info', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-dir', default='.customs3/logs', help='Directory for JSON log files (empty to disable)')
@click.pass_context
def cli(ctx, config_path, state_path, log_level, log_dir):
    """Reconcile declared S3 buckets against an AWS account."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['state_path'] = state_path

    setup_logging(log_level, log_dir or None)


def load_config(config_path: str) -> Config:
    """Load and validate configuration file."""
    try:
        return Config(config_path).load()
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Configuration file not found: {config_path}")
        sys.exit(1)
    except ConfigValidationError as e:
        console.print("[red]Configuration validation failed:[/red]\n")
        console.print(str(e), markup=False)
        sys.exit(1)


def build_store(credentials: CredentialContext, endpoint_url: Optional[str] = None):
    """Resolve credentials and build the bucket store shared by a pass.

    Credential problems stop the command before any remote call.
    """
    try:
        resolved = credentials.resolve()
    except CredentialError as e:
        diagnostics = Diagnostics()
        diagnostics.add_error(DiagnosticKind.MISSING_CREDENTIAL, e)
        _print_diagnostics(diagnostics)
        sys.exit(1)

    client_manager = AWSClientManager(resolved, endpoint_url=endpoint_url)
    return S3BucketStore.from_client_manager(client_manager)


def _store_for(config: Config):
    return build_store(config.credential_context(), config.project.provider.endpoint_url)


def _policy(continue_on_error: bool) -> FailurePolicy:
    return FailurePolicy.CONTINUE if continue_on_error else FailurePolicy.ABORT


def _print_diagnostics(diagnostics: Diagnostics):
    """Print every diagnostic of a pass."""
    for diagnostic in diagnostics:
        style = "red" if diagnostic.is_error else "yellow"
        console.print(Panel(Text(diagnostic.to_user_message()), style=style))


def _print_managed(managed: ManagedItemList, title: str):
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Bucket", style="cyan")
    table.add_column("Tags")
    table.add_column("Observed at", style="dim")

    for item in managed.items:
        tags = ", ".join(f"{k}={v}" for k, v in item.tags.items()) or "-"
        table.add_row(item.name, tags, item.observed_at)

    console.print(table)


def _finish(result: PassResult):
    """Print the outcome of a pass and exit non-zero on error diagnostics."""
    _print_diagnostics(result.diagnostics)

    if result.skipped:
        console.print(
            f"[yellow]Not attempted after abort:[/yellow] {', '.join(result.skipped)}"
        )

    if not result.is_success():
        console.print(
            f"[red]{result.operation} finished with "
            f"{len(result.diagnostics.errors())} error(s)[/red]"
        )
        sys.exit(1)

    console.print(f"[green]{result.operation} complete[/green]")


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate the configuration file."""
    config = load_config(ctx.obj['config_path'])
    console.print(
        f"[green]Configuration is valid:[/green] {len(config.project.buckets)} bucket(s) declared"
    )


@cli.command()
@click.option('--continue-on-error', is_flag=True, help='Attempt every bucket even after a failure')
@click.pass_context
def apply(ctx, continue_on_error):
    """Create declared buckets that are not managed yet and re-tag the rest."""
    config = load_config(ctx.obj['config_path'])
    state_manager = StateManager(ctx.obj['state_path'])
    store = _store_for(config)
    reconciler = Reconciler(store, policy=_policy(continue_on_error))

    try:
        previous = state_manager.load() if state_manager.exists() else None
        result = reconciler.apply(config.desired_items(), previous=previous)
    except ValidationError as e:
        console.print(e.to_user_message(), markup=False)
        sys.exit(1)
    except BucketError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    if not result.managed.is_empty() or state_manager.exists():
        state_manager.save(result.managed)
    _print_managed(result.managed, "Managed buckets")
    _finish(result)


@cli.command()
@click.option('--continue-on-error', is_flag=True, help='Check every bucket even after a failure')
@click.pass_context
def refresh(ctx, continue_on_error):
    """Verify that every managed bucket still exists."""
    config = load_config(ctx.obj['config_path'])
    state_manager = StateManager(ctx.obj['state_path'])

    if not state_manager.exists():
        console.print("[dim]No managed buckets[/dim]")
        return

    try:
        managed = state_manager.load()
    except BucketError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    result = Reconciler(_store_for(config), policy=_policy(continue_on_error)).read(managed)
    state_manager.save(result.managed)
    _print_managed(result.managed, "Managed buckets")
    _finish(result)


@cli.command()
@click.option('--continue-on-error', is_flag=True, help='Attempt every bucket even after a failure')
@click.pass_context
def destroy(ctx, continue_on_error):
    """Delete every managed bucket."""
    config = load_config(ctx.obj['config_path'])
    state_manager = StateManager(ctx.obj['state_path'])

    if not state_manager.exists():
        console.print("[dim]No managed buckets[/dim]")
        return

    try:
        managed = state_manager.load()
    except BucketError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    result = Reconciler(_store_for(config), policy=_policy(continue_on_error)).delete(managed)

    if result.managed.is_empty():
        state_manager.remove()
    else:
        state_manager.save(result.managed)
        _print_managed(result.managed, "Buckets still managed")
    _finish(result)


@cli.command(name='list')
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
def list_buckets(ctx, output_format):
    """List every bucket in the account."""
    config_path = ctx.obj['config_path']
    if Path(config_path).exists():
        config = load_config(config_path)
        store = _store_for(config)
    else:
        store = build_store(CredentialContext())

    result = Lister(store).list()

    if output_format == 'json':
        console.print_json(data=[bucket.model_dump() for bucket in result.buckets])
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Bucket", style="cyan")
        table.add_column("Created")
        for bucket in result.buckets:
            table.add_row(bucket.name, bucket.creation_date)
        console.print(table)

    _print_diagnostics(result.diagnostics)
    if not result.is_success():
        sys.exit(1)


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()
