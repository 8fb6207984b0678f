"""Vault KVv2 API client."""

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from .errors import (
    ConfigurationError,
    DecodeError,
    RemoteStatusError,
    SecretNotFoundError,
    TransportError,
)
from .models import ListResponse, SecretResponse
from .paths import to_data_path

logger = logging.getLogger(__name__)

# Retry configuration. One attempt means failures surface immediately.
DEFAULT_MAX_RETRIES = 1
DEFAULT_MIN_WAIT = 1  # seconds
DEFAULT_MAX_WAIT = 10  # seconds
DEFAULT_TIMEOUT = 30.0  # seconds

# Retryable exceptions
RETRYABLE_EXCEPTIONS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.PoolTimeout,
    httpx.NetworkError,
)


def create_retry_decorator(max_retries: int = DEFAULT_MAX_RETRIES):
    """Create a retry decorator with specified max attempts."""
    return retry(
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        stop=stop_after_attempt(max(1, max_retries)),
        wait=wait_exponential(multiplier=1, min=DEFAULT_MIN_WAIT, max=DEFAULT_MAX_WAIT),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


class VaultClient:
    """Vault KVv2 REST client scoped to one namespace."""

    API_PREFIX = "/v1"

    def __init__(
        self,
        address: str,
        token: str,
        namespace: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize Vault client.

        Args:
            address: Vault server address, e.g. ``https://vault.example.com``
            token: Vault token sent as ``X-Vault-Token``
            namespace: Vault namespace sent as ``X-Vault-Namespace``
            timeout: Request timeout in seconds
            max_retries: Total attempts for transport failures (default: 1)
            transport: Custom httpx transport

        Raises:
            ConfigurationError: if address, token or namespace is empty
        """
        if not address:
            raise ConfigurationError("Vault address is required (VAULT_ADDR)")
        if not token:
            raise ConfigurationError("Vault token is required (VAULT_TOKEN)")
        if not namespace:
            raise ConfigurationError("Vault namespace is required")

        self.address = address.rstrip("/")
        self.namespace = namespace
        self.timeout = timeout
        self.max_retries = max_retries
        self.transport = transport
        self.headers = {
            "X-Vault-Token": token,
            "X-Vault-Namespace": namespace,
        }
        logger.info(
            "Vault client ready, address=%s, namespace=%s, max_retries=%d",
            self.address, namespace, max_retries,
        )

    def _url(self, path: str) -> str:
        return f"{self.address}{self.API_PREFIX}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make HTTP request to Vault with retry on transport errors."""
        url = self._url(path)

        @create_retry_decorator(self.max_retries)
        def do_request() -> httpx.Response:
            logger.debug("Request: %s %s", method, url)
            with httpx.Client(
                timeout=self.timeout, headers=self.headers, transport=self.transport
            ) as client:
                response = client.request(method, url, **kwargs)
                # Read the body before the client closes
                response.read()
                logger.debug(
                    "Response: %s %s (status=%d)", method, path, response.status_code
                )
                return response

        try:
            response = do_request()
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            error_cls = SecretNotFoundError if response.status_code == 404 else RemoteStatusError
            raise error_cls(response.status_code, response.text, path)
        return response

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise DecodeError(f"Invalid JSON from {path}: {e}") from e

    def list_secrets(self, path: str) -> list[str]:
        """
        List keys under a metadata path.

        Args:
            path: Metadata path, e.g. ``kv/metadata/app``

        Returns:
            Keys in server order. Subtrees end with ``/``.
        """
        logger.info("Listing secrets: %s", path)
        response = self._request("GET", path, params={"list": "true"})
        try:
            listing = ListResponse.model_validate(self._json(response, path))
        except ValidationError as e:
            raise DecodeError(f"Unexpected list response from {path}: {e}") from e
        logger.debug("Listed %d keys at %s", len(listing.data.keys), path)
        return listing.data.keys

    def read_secret(self, path: str) -> dict[str, Any]:
        """
        Read the latest version of a secret.

        Args:
            path: Data or metadata path; metadata paths are translated

        Returns:
            Secret payload
        """
        data_path = to_data_path(path)
        logger.debug("Reading secret: %s (data path %s)", path, data_path)
        response = self._request("GET", data_path)
        try:
            secret = SecretResponse.model_validate(self._json(response, data_path))
        except ValidationError as e:
            raise DecodeError(f"Unexpected secret response from {data_path}: {e}") from e
        if secret.data.data is None:
            # Latest version deleted or destroyed
            raise SecretNotFoundError(
                response.status_code, "secret has no data (deleted or destroyed)", data_path
            )
        return secret.data.data

    def write_secret(self, path: str, payload: dict[str, Any]) -> None:
        """
        Write a new version of a secret.

        The payload is wrapped as ``{"data": payload}`` as KVv2 requires.

        Args:
            path: Data or metadata path; metadata paths are translated
            payload: Secret payload
        """
        data_path = to_data_path(path)
        try:
            body = json.dumps({"data": payload}, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Payload for {data_path} is not JSON serializable: {e}") from e
        logger.info("Writing secret: %s", data_path)
        self._request(
            "POST",
            data_path,
            content=body,
            headers={"Content-Type": "application/json"},
        )
