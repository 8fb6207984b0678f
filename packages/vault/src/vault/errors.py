"""Vault client errors."""


class VaultError(Exception):
    """Base class for all secret store errors."""


class ConfigurationError(VaultError):
    """Required connection settings are missing."""


class TransportError(VaultError):
    """Request could not be sent or no response was received."""


class RemoteStatusError(VaultError):
    """Store answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str, path: str):
        self.status_code = status_code
        self.body = body
        self.path = path
        super().__init__(f"HTTP {status_code} for {path}: {body.strip()}")


class SecretNotFoundError(RemoteStatusError):
    """Store answered 404."""


class DecodeError(VaultError):
    """Response body or secret file could not be decoded."""
