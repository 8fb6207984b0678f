"""Shared fixtures: an in-memory KVv2 store behind httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from vault import VaultClient

VAULT_ADDR = "https://vault.test"
VAULT_TOKEN = "s.test-token"
NAMESPACE = "team-a"


class FakeVault:
    """Serves LIST/GET/POST for KVv2 paths held in dictionaries."""

    def __init__(self) -> None:
        self.listings: dict[str, list[str]] = {}
        self.secrets: dict[str, dict[str, Any] | None] = {}  # keyed by data path, None = deleted
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.writes: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1/")

        if request.method == "GET" and request.url.params.get("list") == "true":
            if path not in self.listings:
                return httpx.Response(404, json={"errors": []})
            return httpx.Response(200, json={"data": {"keys": self.listings[path]}})

        if request.method == "GET":
            if path in self.fail_reads:
                return httpx.Response(500, json={"errors": ["internal error"]})
            if path not in self.secrets:
                return httpx.Response(404, json={"errors": []})
            return httpx.Response(
                200,
                json={"data": {"data": self.secrets[path], "metadata": {"version": 1}}},
            )

        if request.method == "POST":
            if path in self.fail_writes:
                return httpx.Response(500, json={"errors": ["write rejected"]})
            body = json.loads(request.content)
            self.secrets[path] = body["data"]
            self.writes.append(path)
            return httpx.Response(200, json={"data": {"version": 2}})

        return httpx.Response(405)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_vault() -> FakeVault:
    return FakeVault()


@pytest.fixture
def app_vault(fake_vault: FakeVault) -> FakeVault:
    """Store with two secrets under kv/metadata/app."""
    fake_vault.listings["kv/metadata/app"] = ["db", "config"]
    fake_vault.secrets["kv/data/app/db"] = {"host": "db.internal", "port": 5432, "ssl": True}
    fake_vault.secrets["kv/data/app/config"] = {
        "debug": False,
        "name": "billing",
        "limits": {"rps": 100, "burst": 2.5},
    }
    return fake_vault


@pytest.fixture
def client(fake_vault: FakeVault) -> VaultClient:
    return VaultClient(VAULT_ADDR, VAULT_TOKEN, NAMESPACE, transport=fake_vault.transport)
