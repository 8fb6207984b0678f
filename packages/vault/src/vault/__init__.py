"""Vault KVv2 API client utilities."""

from .client import VaultClient
from .errors import (
    ConfigurationError,
    DecodeError,
    RemoteStatusError,
    SecretNotFoundError,
    TransportError,
    VaultError,
)
from .models import ListResponse, SecretResponse
from .paths import to_data_path

__all__ = [
    "VaultClient",
    "VaultError",
    "ConfigurationError",
    "TransportError",
    "RemoteStatusError",
    "SecretNotFoundError",
    "DecodeError",
    "ListResponse",
    "SecretResponse",
    "to_data_path",
]
