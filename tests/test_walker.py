"""Tests for remote and local tree walking."""

from __future__ import annotations

import logging

import pytest

from vault import DecodeError
from vaultsync.errors import TraversalError
from vaultsync.walker import LocalWalker, RemoteWalker


@pytest.fixture
def nested_vault(fake_vault):
    """kv/metadata/app with a leaf, a subtree and a broken leaf."""
    fake_vault.listings["kv/metadata/app"] = ["db", "svc/", "broken"]
    fake_vault.listings["kv/metadata/app/svc/metadata"] = ["token"]
    fake_vault.secrets["kv/data/app/db"] = {"user": "admin"}
    fake_vault.secrets["kv/data/app/svc/metadata/token"] = {"value": "t0k3n"}
    fake_vault.fail_reads.add("kv/data/app/broken")
    return fake_vault


class TestRemoteWalker:
    def test_yields_subtrees_and_leaves(self, client, nested_vault):
        entries = list(RemoteWalker(client).walk("kv/metadata/app"))

        assert [(e.path, e.is_leaf) for e in entries] == [
            ("kv/metadata/app/db", True),
            ("kv/metadata/app/svc/metadata", False),
            ("kv/metadata/app/svc/metadata/token", True),
            ("kv/metadata/app/broken", True),
        ]

    def test_leaves_are_read_from_data_paths(self, client, nested_vault):
        list(RemoteWalker(client).walk("kv/metadata/app"))

        reads = [r.url.path for r in nested_vault.requests if "list" not in r.url.params]
        assert reads == [
            "/v1/kv/data/app/db",
            "/v1/kv/data/app/svc/metadata/token",
            "/v1/kv/data/app/broken",
        ]

    def test_custom_engine_name(self, client, fake_vault):
        fake_vault.listings["secrets/metadata/app"] = ["db"]
        fake_vault.secrets["secrets/data/app/db"] = {"user": "admin"}

        snapshot = RemoteWalker(client).collect("secrets/metadata/app")

        assert snapshot.secrets == {"secrets/metadata/app/db": {"user": "admin"}}

    def test_failed_leaf_is_skipped_with_warning(self, client, nested_vault, caplog):
        with caplog.at_level(logging.WARNING):
            snapshot = RemoteWalker(client).collect("kv/metadata/app")

        assert snapshot.secrets == {
            "kv/metadata/app/db": {"user": "admin"},
            "kv/metadata/app/svc/metadata/token": {"value": "t0k3n"},
        }
        assert snapshot.skipped == ["kv/metadata/app/broken"]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "kv/metadata/app/broken" in warnings[0].getMessage()

    def test_failed_listing_aborts(self, client, nested_vault):
        del nested_vault.listings["kv/metadata/app/svc/metadata"]

        with pytest.raises(TraversalError) as exc_info:
            RemoteWalker(client).collect("kv/metadata/app")

        assert exc_info.value.path == "kv/metadata/app/svc/metadata"
        assert "kv/metadata/app/svc/metadata" in str(exc_info.value)


class TestLocalWalker:
    def test_finds_yaml_files_recursively(self, tmp_path):
        (tmp_path / "svc").mkdir()
        (tmp_path / "db.yaml").write_text("user: admin\n")
        (tmp_path / "svc" / "token.yaml").write_text("value: t0k3n\n")
        (tmp_path / "README.md").write_text("# secrets\n")
        (tmp_path / "notes.yml").write_text("a: 1\n")

        entries = list(LocalWalker(tmp_path).walk())

        assert [e.relative_path for e in entries] == ["db.yaml", "svc/token.yaml"]
        assert entries[1].payload == {"value": "t0k3n"}
        assert entries[0].file_path.is_absolute()

    def test_directory_named_like_a_secret_is_skipped(self, tmp_path):
        (tmp_path / "odd.yaml").mkdir()
        (tmp_path / "odd.yaml" / "inner.yaml").write_text("a: 1\n")

        entries = list(LocalWalker(tmp_path).walk())

        assert [e.relative_path for e in entries] == ["odd.yaml/inner.yaml"]

    def test_malformed_file_names_the_file(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("key: [unclosed\n")

        with pytest.raises(DecodeError) as exc_info:
            list(LocalWalker(tmp_path).walk())

        assert "bad.yaml" in str(exc_info.value)
