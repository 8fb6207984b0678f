"""Tests for the Vault KVv2 client."""

from __future__ import annotations

import json

import httpx
import pytest

import vault.client
from vault import (
    ConfigurationError,
    DecodeError,
    RemoteStatusError,
    SecretNotFoundError,
    TransportError,
    VaultClient,
)

from .conftest import NAMESPACE, VAULT_ADDR, VAULT_TOKEN


class TestConfiguration:
    """Missing connection settings fail before any request."""

    @pytest.mark.parametrize(
        "address,token,namespace",
        [("", VAULT_TOKEN, NAMESPACE), (VAULT_ADDR, "", NAMESPACE), (VAULT_ADDR, VAULT_TOKEN, "")],
    )
    def test_missing_setting_raises(self, address, token, namespace):
        with pytest.raises(ConfigurationError):
            VaultClient(address, token, namespace)


class TestListSecrets:
    def test_returns_keys_in_server_order(self, client, fake_vault):
        fake_vault.listings["kv/metadata/app"] = ["db", "nested/", "config"]

        assert client.list_secrets("kv/metadata/app") == ["db", "nested/", "config"]

    def test_sends_list_flag_and_auth_headers(self, client, fake_vault):
        fake_vault.listings["kv/metadata"] = []

        client.list_secrets("kv/metadata")

        request = fake_vault.requests[0]
        assert str(request.url) == f"{VAULT_ADDR}/v1/kv/metadata?list=true"
        assert request.headers["X-Vault-Token"] == VAULT_TOKEN
        assert request.headers["X-Vault-Namespace"] == NAMESPACE

    def test_missing_path_is_not_found(self, client):
        with pytest.raises(SecretNotFoundError) as exc_info:
            client.list_secrets("kv/metadata/nope")

        assert exc_info.value.status_code == 404
        assert "kv/metadata/nope" in str(exc_info.value)

    def test_malformed_body_is_decode_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="not json"))
        client = VaultClient(VAULT_ADDR, VAULT_TOKEN, NAMESPACE, transport=transport)

        with pytest.raises(DecodeError):
            client.list_secrets("kv/metadata")

    def test_unexpected_shape_is_decode_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"keys": []}))
        client = VaultClient(VAULT_ADDR, VAULT_TOKEN, NAMESPACE, transport=transport)

        with pytest.raises(DecodeError):
            client.list_secrets("kv/metadata")


class TestReadSecret:
    def test_reads_payload_from_data_path(self, client, app_vault):
        assert client.read_secret("kv/data/app/db") == {
            "host": "db.internal",
            "port": 5432,
            "ssl": True,
        }

    def test_translates_metadata_path(self, client, app_vault):
        client.read_secret("kv/metadata/app/db")

        assert app_vault.requests[-1].url.path == "/v1/kv/data/app/db"

    def test_server_error_carries_status_and_body(self, client, app_vault):
        app_vault.fail_reads.add("kv/data/app/db")

        with pytest.raises(RemoteStatusError) as exc_info:
            client.read_secret("kv/data/app/db")

        assert exc_info.value.status_code == 500
        assert "internal error" in exc_info.value.body

    def test_deleted_secret_is_not_found(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"data": {"data": None, "metadata": {"version": 3}}})
        )
        client = VaultClient(VAULT_ADDR, VAULT_TOKEN, NAMESPACE, transport=transport)

        with pytest.raises(SecretNotFoundError) as exc_info:
            client.read_secret("kv/metadata/gone")

        assert exc_info.value.path == "kv/data/gone"


class TestWriteSecret:
    def test_wraps_payload_in_data_field(self, client, fake_vault):
        client.write_secret("kv/metadata/app/db", {"user": "admin"})

        request = fake_vault.requests[-1]
        assert request.method == "POST"
        assert request.url.path == "/v1/kv/data/app/db"
        assert json.loads(request.content) == {"data": {"user": "admin"}}
        assert request.headers["Content-Type"] == "application/json"

    def test_rejected_write_raises(self, client, fake_vault):
        fake_vault.fail_writes.add("kv/data/app/db")

        with pytest.raises(RemoteStatusError):
            client.write_secret("kv/data/app/db", {"user": "admin"})

    def test_unserializable_payload_is_rejected_before_sending(self, client, fake_vault):
        with pytest.raises(DecodeError) as exc_info:
            client.write_secret("kv/metadata/app/cert", {"serials": {1, 2}})

        assert "kv/data/app/cert" in str(exc_info.value)
        assert fake_vault.requests == []


class TestTransport:
    def test_connection_failure_is_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = VaultClient(VAULT_ADDR, VAULT_TOKEN, NAMESPACE, transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError) as exc_info:
            client.list_secrets("kv/metadata")

        assert "kv/metadata" in str(exc_info.value)

    def test_single_attempt_by_default(self):
        calls = []

        def refuse(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = VaultClient(VAULT_ADDR, VAULT_TOKEN, NAMESPACE, transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError):
            client.list_secrets("kv/metadata")

        assert len(calls) == 1

    def test_retries_when_configured(self, monkeypatch):
        monkeypatch.setattr(vault.client, "DEFAULT_MIN_WAIT", 0)
        monkeypatch.setattr(vault.client, "DEFAULT_MAX_WAIT", 0)
        calls = []

        def flaky(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"data": {"keys": ["db"]}})

        client = VaultClient(
            VAULT_ADDR, VAULT_TOKEN, NAMESPACE, max_retries=3, transport=httpx.MockTransport(flaky)
        )

        assert client.list_secrets("kv/metadata") == ["db"]
        assert len(calls) == 3

    def test_status_errors_are_not_retried(self, monkeypatch, fake_vault):
        monkeypatch.setattr(vault.client, "DEFAULT_MIN_WAIT", 0)
        monkeypatch.setattr(vault.client, "DEFAULT_MAX_WAIT", 0)
        fake_vault.fail_reads.add("kv/data/app/db")
        client = VaultClient(
            VAULT_ADDR, VAULT_TOKEN, NAMESPACE, max_retries=3, transport=fake_vault.transport
        )

        with pytest.raises(RemoteStatusError):
            client.read_secret("kv/data/app/db")

        assert len(fake_vault.requests) == 1
