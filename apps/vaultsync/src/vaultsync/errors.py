"""Sync engine errors."""

from pathlib import Path


class SyncError(Exception):
    """Base class for sync engine errors."""


class AmbiguousPathError(SyncError):
    """A secret path does not map to a file name."""


class InvalidPathError(SyncError):
    """A base path is not of the form ``<engine>/metadata[/subpath]``."""


class MissingDirectoryError(SyncError):
    """The local directory to push from does not exist."""

    def __init__(self, directory: Path, metadata_path: str):
        self.directory = directory
        super().__init__(
            f"directory {directory} does not exist (derived from vault path {metadata_path})"
        )


class TraversalError(SyncError):
    """Listing a subtree failed while walking the store."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        super().__init__(f"failed to list secrets at {path}: {cause}")


class PushError(SyncError):
    """One or more secrets could not be written."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        details = "; ".join(f"{path}: {reason}" for path, reason in failures.items())
        super().__init__(f"failed to push {len(failures)} secret(s): {details}")
