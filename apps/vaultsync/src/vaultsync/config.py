"""Connection settings for vault-sync."""

import logging
import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

from vault import VaultClient
from vault.client import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from vault.errors import ConfigurationError
from vault.paths import METADATA_SEGMENT

logger = logging.getLogger(__name__)

ENV_ADDRESS = "VAULT_ADDR"
ENV_TOKEN = "VAULT_TOKEN"
ENV_NAMESPACE = "VAULT_NAMESPACE"

DEFAULT_KV_ENGINE = "kv"
DEFAULT_SECRETS_DIR = "./vault-secrets"


class Settings(BaseModel):
    """Resolved connection settings."""

    address: str
    token: str
    namespace: str
    kv_engine: str = DEFAULT_KV_ENGINE
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES

    def create_client(self) -> VaultClient:
        """Build a client for these settings."""
        return VaultClient(
            address=self.address,
            token=self.token,
            namespace=self.namespace,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )


def _resolve(value: str | None, env_var: str) -> str | None:
    if value:
        return value
    env_value = os.environ.get(env_var)
    if env_value:
        logger.debug("Using %s from environment", env_var)
    return env_value


def load_settings(
    address: str | None = None,
    token: str | None = None,
    namespace: str | None = None,
    kv_engine: str = DEFAULT_KV_ENGINE,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: int = DEFAULT_MAX_RETRIES,
    use_dotenv: bool = True,
) -> Settings:
    """
    Resolve settings before any request is made.

    Priority:
    1. Explicitly provided values
    2. Environment variables VAULT_ADDR / VAULT_TOKEN / VAULT_NAMESPACE
    3. A ``.env`` file in the working directory (only fills unset variables)

    Raises:
        ConfigurationError: if address, token or namespace cannot be resolved
    """
    if use_dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    resolved = {
        ENV_ADDRESS: _resolve(address, ENV_ADDRESS),
        ENV_TOKEN: _resolve(token, ENV_TOKEN),
        ENV_NAMESPACE: _resolve(namespace, ENV_NAMESPACE),
    }
    missing = [name for name, value in resolved.items() if not value]
    if missing:
        raise ConfigurationError(
            f"{', '.join(missing)} environment variable is required"
            if len(missing) == 1
            else f"{', '.join(missing)} environment variables are required"
        )

    if not kv_engine:
        raise ConfigurationError("KV engine name must not be empty")

    return Settings(
        address=resolved[ENV_ADDRESS],
        token=resolved[ENV_TOKEN],
        namespace=resolved[ENV_NAMESPACE],
        kv_engine=kv_engine,
        timeout=timeout,
        max_retries=max_retries,
    )


def metadata_base_path(kv_engine: str, sub_path: str | None = None) -> str:
    """Build ``<engine>/metadata[/<sub_path>]``."""
    base = f"{kv_engine}/{METADATA_SEGMENT}"
    sub_path = (sub_path or "").strip("/")
    return f"{base}/{sub_path}" if sub_path else base
