"""CLI for syncing Vault KVv2 secrets with local YAML files."""

import logging
from pathlib import Path

import click

from vault import VaultError
from vault.client import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

from .config import (
    DEFAULT_KV_ENGINE,
    DEFAULT_SECRETS_DIR,
    Settings,
    load_settings,
    metadata_base_path,
)
from .diff import DIFF_ALGORITHMS, DiffEngine, DiffRenderer, resolve_diff_tool
from .errors import SyncError
from .sync import SyncEngine

logger = logging.getLogger(__name__)


def setup_logging(verbose: int) -> None:
    """Setup logging."""
    level = logging.DEBUG if verbose >= 2 else logging.INFO if verbose == 1 else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def fail(error: Exception) -> None:
    """Print an error and exit non-zero."""
    logger.debug("Command failed", exc_info=error)
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


def resolve_settings(ctx: click.Context, namespace: str) -> Settings:
    """Resolve settings from CLI options and environment; no request is made here."""
    opts = ctx.obj
    return load_settings(
        address=opts["address"],
        token=opts["token"],
        namespace=namespace,
        kv_engine=opts["kv_engine"],
        timeout=opts["timeout"],
        max_retries=opts["retries"],
    )


def create_engine(ctx: click.Context, namespace: str, diff_algorithm: str = "positional") -> SyncEngine:
    """Build a sync engine for one namespace."""
    return SyncEngine(
        resolve_settings(ctx, namespace).create_client(),
        diff_engine=DiffEngine(algorithm=diff_algorithm),
        renderer=ctx.obj["renderer"],
    )


def describe_path(kv_engine: str, sub_path: str | None) -> str:
    return f"{kv_engine}/{sub_path.strip('/')}" if sub_path else kv_engine


# ============ CLI Group ============

@click.group()
@click.option("--address", envvar="VAULT_ADDR", help="Vault address")
@click.option("--token", envvar="VAULT_TOKEN", help="Vault token")
@click.option("--kv-engine", default=DEFAULT_KV_ENGINE, show_default=True, help="Name of the KVv2 secret engine")
@click.option("--timeout", type=float, default=DEFAULT_TIMEOUT, show_default=True, help="Request timeout in seconds")
@click.option("--retries", "-r", type=int, default=DEFAULT_MAX_RETRIES, show_default=True, help="Attempts per request")
@click.option("-v", "--verbose", count=True, help="Verbosity (-v, -vv)")
@click.pass_context
def cli(
    ctx: click.Context,
    address: str | None,
    token: str | None,
    kv_engine: str,
    timeout: float,
    retries: int,
    verbose: int,
) -> None:
    """Sync secrets between Vault KVv2 and local YAML files."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.update(
        address=address,
        token=token,
        kv_engine=kv_engine,
        timeout=timeout,
        retries=retries,
        renderer=DiffRenderer(resolve_diff_tool()),
    )


# ============ Commands ============

@cli.command("list")
@click.argument("namespace")
@click.argument("path", required=False)
@click.pass_context
def list_cmd(ctx, namespace, path):
    """List secret names at PATH."""
    kv_engine = ctx.obj["kv_engine"]
    try:
        client = resolve_settings(ctx, namespace).create_client()
        keys = client.list_secrets(metadata_base_path(kv_engine, path))
    except VaultError as e:
        fail(e)

    if not keys:
        click.echo("No secrets found at the specified path")
        return

    click.echo(f"Secrets at {describe_path(kv_engine, path)} in namespace {namespace}:")
    for key in keys:
        click.echo(f"  - {key}")


@cli.command()
@click.argument("namespace")
@click.argument("path", required=False)
@click.option("-o", "--output-dir", default=DEFAULT_SECRETS_DIR, show_default=True, type=click.Path(path_type=Path))
@click.pass_context
def pull(ctx, namespace, path, output_dir):
    """Pull all secrets below PATH recursively into YAML files."""
    kv_engine = ctx.obj["kv_engine"]
    try:
        engine = create_engine(ctx, namespace)
        click.echo(
            f"Pulling all secrets recursively from {describe_path(kv_engine, path)} "
            f"in namespace {namespace} to {output_dir}..."
        )
        result = engine.pull(metadata_base_path(kv_engine, path), output_dir)
    except (VaultError, SyncError) as e:
        fail(e)

    if result.skipped:
        click.echo(f"\nSkipped {len(result.skipped)} secret(s), see warnings above")
    click.echo(f"\nCompleted! Secrets have been saved to {output_dir} as YAML files")


@cli.command()
@click.argument("namespace")
@click.argument("path", required=False)
@click.option("-i", "--input-dir", default=DEFAULT_SECRETS_DIR, show_default=True, type=click.Path(path_type=Path))
@click.option("--dry-run", is_flag=True, help="Show what would be changed without actually pushing")
@click.option("--continue-on-error", is_flag=True, help="Attempt every secret even after a failed write")
@click.option("--diff-algorithm", type=click.Choice(DIFF_ALGORITHMS), default="positional", show_default=True)
@click.pass_context
def push(ctx, namespace, path, input_dir, dry_run, continue_on_error, diff_algorithm):
    """Push secrets from YAML files to PATH."""
    kv_engine = ctx.obj["kv_engine"]
    target = describe_path(kv_engine, path)
    try:
        engine = create_engine(ctx, namespace, diff_algorithm)
        if dry_run:
            click.echo(
                f"DRY RUN: Showing what would be changed when pushing from {input_dir} "
                f"to {target} in namespace {namespace}..."
            )
        else:
            click.echo(f"Pushing secrets from {input_dir} to {target} in namespace {namespace}...")
        engine.push(
            input_dir,
            metadata_base_path(kv_engine, path),
            dry_run=dry_run,
            fail_fast=not continue_on_error,
        )
    except (VaultError, SyncError) as e:
        fail(e)

    if dry_run:
        click.echo("\nDry run completed! Use without --dry-run to actually push changes.")
    else:
        click.echo("\nCompleted! Secrets have been pushed to Vault.")


if __name__ == "__main__":
    cli()
