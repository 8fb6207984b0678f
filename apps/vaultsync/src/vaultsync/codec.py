"""YAML encoding of secret payloads."""

import json
from pathlib import Path
from typing import Any

import yaml

from vault.errors import DecodeError

TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class SecretLoader(yaml.SafeLoader):
    """SafeLoader that reads unquoted dates and times as plain strings."""


SecretLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def encode(payload: dict[str, Any]) -> str:
    """Encode a payload as YAML with sorted keys."""
    return yaml.safe_dump(payload, sort_keys=True, default_flow_style=False, allow_unicode=True)


def decode(text: str, source: str | Path = "<string>") -> dict[str, Any]:
    """
    Decode a YAML document into a payload.

    An empty document decodes to ``{}``. Timestamps stay strings; any other
    value the store cannot carry as JSON (binary, sets, NaN) is rejected here
    rather than at write time.

    Raises:
        DecodeError: if the text is not YAML, not a mapping, or not JSON-safe
    """
    try:
        data = yaml.load(text, Loader=SecretLoader)
    except yaml.YAMLError as e:
        raise DecodeError(f"failed to parse YAML in {source}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(
            f"failed to parse YAML in {source}: expected a mapping, got {type(data).__name__}"
        )
    try:
        json.dumps(data, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"unsupported value in {source}: {e}") from e
    return data


def read_secret_file(path: Path) -> dict[str, Any]:
    """Read and decode one secret file."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DecodeError(f"failed to read file {path}: {e}") from e
    return decode(text, path)


def write_secret_file(path: Path, payload: dict[str, Any]) -> None:
    """Encode and write one secret file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode(payload), encoding="utf-8")
