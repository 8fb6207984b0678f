"""Mapping between store paths and local secret files."""

from pathlib import Path, PurePath

from vault.paths import METADATA_SEGMENT, to_data_path

from .errors import AmbiguousPathError, InvalidPathError

SECRET_FILE_SUFFIX = ".yaml"

__all__ = [
    "SECRET_FILE_SUFFIX",
    "local_file_to_remote_path",
    "remote_to_local_file",
    "split_metadata_path",
    "subtree_path",
    "to_data_path",
]


def split_metadata_path(metadata_path: str) -> tuple[str, str]:
    """
    Split ``<engine>/metadata[/subpath]`` into engine name and subpath.

    Raises:
        InvalidPathError: if the path does not have that shape
    """
    parts = metadata_path.strip("/").split("/")
    if len(parts) < 2 or not parts[0] or parts[1] != METADATA_SEGMENT:
        raise InvalidPathError(f"invalid metadata path: {metadata_path}")
    return parts[0], "/".join(parts[2:])


def subtree_path(current_path: str, key: str) -> str:
    """Path to list when descending into a subtree key (``name/``)."""
    return f"{current_path}/{key.rstrip('/')}/{METADATA_SEGMENT}"


def remote_to_local_file(secret_path: str, metadata_base_path: str, output_dir: str | Path) -> Path:
    """
    Compute the file a secret is pulled into.

    The base path's subpath is kept under ``output_dir``, so pulling
    ``kv/metadata/app`` writes ``kv/metadata/app/db`` to ``<output_dir>/app/db.yaml``.

    Args:
        secret_path: Full metadata path of the secret
        metadata_base_path: Metadata path the pull started from
        output_dir: Local root directory

    Raises:
        AmbiguousPathError: if no file name can be derived
    """
    base = metadata_base_path.rstrip("/")
    if secret_path != base and not secret_path.startswith(base + "/"):
        raise AmbiguousPathError(f"secret {secret_path} is not under {metadata_base_path}")

    suffix = secret_path[len(base):].lstrip("/")
    if not suffix:
        raise AmbiguousPathError(f"cannot determine file name for secret {secret_path}")

    parts = base.split("/")
    target_dir = Path(output_dir)
    if len(parts) > 2:
        target_dir = target_dir.joinpath(*parts[2:])

    return target_dir.joinpath(*(suffix + SECRET_FILE_SUFFIX).split("/"))


def local_file_to_remote_path(relative_path: str | PurePath, kv_engine: str, metadata_sub_path: str = "") -> str:
    """
    Compute the metadata path a local secret file is pushed to.

    Args:
        relative_path: File path relative to the push base directory
        kv_engine: KV engine name, e.g. ``kv``
        metadata_sub_path: Subpath under ``<engine>/metadata``

    Returns:
        Metadata path, e.g. ``kv/metadata/app/db``
    """
    name = PurePath(relative_path).as_posix().replace("\\", "/")
    if name.endswith(SECRET_FILE_SUFFIX):
        name = name[: -len(SECRET_FILE_SUFFIX)]

    prefix = f"{kv_engine}/{METADATA_SEGMENT}"
    sub_path = metadata_sub_path.strip("/")
    if sub_path:
        prefix = f"{prefix}/{sub_path}"
    return f"{prefix}/{name}"
