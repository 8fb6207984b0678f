"""Pull secrets into local files and push local files back."""

import logging
from pathlib import Path
from typing import Any

import click

from vault import SecretNotFoundError, VaultClient, VaultError, to_data_path

from .codec import write_secret_file
from .diff import DiffEngine, DiffRenderer
from .errors import MissingDirectoryError, PushError, SyncError
from .models import PullResult, PushResult
from .paths import local_file_to_remote_path, remote_to_local_file, split_metadata_path
from .walker import LocalWalker, RemoteWalker

logger = logging.getLogger(__name__)


class SyncEngine:
    """Synchronize one namespace of a KVv2 store with a local directory."""

    def __init__(
        self,
        client: VaultClient,
        diff_engine: DiffEngine | None = None,
        renderer: DiffRenderer | None = None,
    ):
        """
        Initialize sync engine.

        Args:
            client: Store client
            diff_engine: Differ for dry runs (default: positional)
            renderer: Sink for dry-run diffs (default: raw output)
        """
        self.client = client
        self.walker = RemoteWalker(client)
        self.diff_engine = diff_engine or DiffEngine()
        self.renderer = renderer or DiffRenderer()

    def pull(self, metadata_base_path: str, output_dir: str | Path) -> PullResult:
        """
        Write every secret below a metadata path to YAML files.

        Secrets that cannot be fetched or written are logged and skipped.

        Args:
            metadata_base_path: e.g. ``kv/metadata`` or ``kv/metadata/app``
            output_dir: Local root directory

        Returns:
            PullResult with written files and skipped secret paths

        Raises:
            TraversalError: if listing any subtree fails
        """
        base = metadata_base_path.rstrip("/")
        snapshot = self.walker.collect(base)
        result = PullResult(skipped=list(snapshot.skipped))

        for secret_path in sorted(snapshot.secrets):
            try:
                file_path = remote_to_local_file(secret_path, base, output_dir)
                write_secret_file(file_path, snapshot.secrets[secret_path])
            except (OSError, SyncError) as e:
                logger.warning("Failed to write secret %s: %s", secret_path, e)
                result.skipped.append(secret_path)
                continue
            click.echo(f"Written: {file_path}")
            result.written.append(file_path)

        logger.info("Pulled %d secrets into %s", len(result.written), output_dir)
        return result

    def push(
        self,
        input_dir: str | Path,
        metadata_base_path: str,
        dry_run: bool = False,
        fail_fast: bool = True,
    ) -> PushResult:
        """
        Write every local secret file below the base path's directory to the store.

        Every file is decoded before the first remote request, so a malformed
        file aborts the push without changing anything.

        Args:
            input_dir: Local root directory
            metadata_base_path: e.g. ``kv/metadata`` or ``kv/metadata/app``
            dry_run: Print diffs against the store instead of writing
            fail_fast: Abort on the first failed write; otherwise attempt
                every file and raise PushError at the end

        Returns:
            PushResult

        Raises:
            InvalidPathError: if the base path is not ``<engine>/metadata[/subpath]``
            MissingDirectoryError: if the derived local directory is missing
            DecodeError: if a local file cannot be read or parsed
            VaultError: on the first failed write when ``fail_fast`` is set
            PushError: on failed writes when ``fail_fast`` is not set
        """
        kv_engine, sub_path = split_metadata_path(metadata_base_path)
        base_dir = Path(input_dir)
        if sub_path:
            base_dir = base_dir.joinpath(*sub_path.split("/"))
        if not base_dir.is_dir():
            raise MissingDirectoryError(base_dir, metadata_base_path)

        entries = list(LocalWalker(base_dir).walk())
        logger.info("Found %d secret files in %s", len(entries), base_dir)

        result = PushResult(dry_run=dry_run)
        for entry in entries:
            remote_path = local_file_to_remote_path(entry.relative_path, kv_engine, sub_path)

            if dry_run:
                self._preview(remote_path, entry.payload, result)
                continue

            click.echo(f"Pushing: {remote_path}")
            try:
                self.client.write_secret(to_data_path(remote_path), entry.payload)
            except VaultError as e:
                if fail_fast:
                    raise
                logger.error("Failed to push %s: %s", remote_path, e)
                result.failed[remote_path] = str(e)
                continue
            result.pushed.append(remote_path)

        if result.failed:
            raise PushError(result.failed)
        return result

    def _preview(self, remote_path: str, payload: dict[str, Any], result: PushResult) -> None:
        existing: dict[str, Any] | None
        try:
            existing = self.client.read_secret(to_data_path(remote_path))
        except SecretNotFoundError:
            existing = None
        except VaultError as e:
            logger.warning("Could not read %s, showing it as new: %s", remote_path, e)
            existing = None

        diff = self.diff_engine.diff(existing, payload, remote_path)
        if not diff.changed:
            result.unchanged.append(remote_path)
            return
        result.changed.append(remote_path)
        self.renderer.render(diff.text)
