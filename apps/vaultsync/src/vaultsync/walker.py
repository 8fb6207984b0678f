"""Recursive enumeration of the store and of local secret directories."""

import logging
from pathlib import Path
from typing import Iterator

from vault import VaultClient, VaultError, to_data_path

from .codec import read_secret_file
from .errors import TraversalError
from .models import LocalFileEntry, RemoteSnapshot, TreeEntry
from .paths import SECRET_FILE_SUFFIX, subtree_path

logger = logging.getLogger(__name__)


class RemoteWalker:
    """Depth-first walk over a KVv2 metadata tree."""

    def __init__(self, client: VaultClient):
        self.client = client

    def walk(self, metadata_path: str) -> Iterator[TreeEntry]:
        """
        Walk the tree below a metadata path.

        Subtrees are yielded as non-leaf entries before their children.
        Leaves whose payload cannot be fetched are yielded with ``error`` set
        and the walk continues.

        Args:
            metadata_path: Metadata path to start from, e.g. ``kv/metadata/app``

        Yields:
            TreeEntry objects

        Raises:
            TraversalError: if listing any subtree fails
        """
        current = metadata_path.rstrip("/")
        try:
            keys = self.client.list_secrets(current)
        except VaultError as e:
            raise TraversalError(current, e) from e

        for key in keys:
            if key.endswith("/"):
                folder = subtree_path(current, key)
                logger.debug("Recursing into subtree: %s", folder)
                yield TreeEntry(path=folder, is_leaf=False)
                yield from self.walk(folder)
                continue

            full_path = f"{current}/{key}"
            try:
                payload = self.client.read_secret(to_data_path(full_path))
            except VaultError as e:
                logger.warning("Failed to get secret %s: %s", full_path, e)
                yield TreeEntry(path=full_path, error=str(e))
                continue
            yield TreeEntry(path=full_path, payload=payload)

    def collect(self, metadata_path: str) -> RemoteSnapshot:
        """Drain a walk into a path -> payload mapping."""
        snapshot = RemoteSnapshot()
        for entry in self.walk(metadata_path):
            if not entry.is_leaf:
                continue
            if entry.error is not None:
                snapshot.skipped.append(entry.path)
            else:
                snapshot.secrets[entry.path] = entry.payload or {}
        logger.info(
            "Collected %d secrets from %s (%d skipped)",
            len(snapshot.secrets), metadata_path, len(snapshot.skipped),
        )
        return snapshot


class LocalWalker:
    """Walk a directory and decode every secret file below it."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def walk(self) -> Iterator[LocalFileEntry]:
        """
        Yield every ``.yaml`` file below the root, in sorted order.

        Raises:
            DecodeError: if a file cannot be read or parsed
        """
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.suffix != SECRET_FILE_SUFFIX:
                continue

            rel_path = path.relative_to(self.root)
            logger.debug("Reading secret file: %s", rel_path)
            yield LocalFileEntry(
                file_path=path.resolve(),
                relative_path=rel_path.as_posix(),
                payload=read_secret_file(path),
            )
