"""Vault API data models."""

from typing import Any

from pydantic import BaseModel, Field


class ListData(BaseModel):
    """Keys under a listed path. Subtrees end with ``/``."""

    keys: list[str] = Field(default_factory=list)


class ListResponse(BaseModel):
    """Response of a LIST request."""

    data: ListData


class SecretMetadata(BaseModel):
    """Version metadata returned with a secret."""

    version: int | None = None
    created_time: str | None = None
    deletion_time: str | None = None
    destroyed: bool = False


class SecretData(BaseModel):
    """Payload and metadata of one secret version."""

    data: dict[str, Any] | None = None
    metadata: SecretMetadata = Field(default_factory=SecretMetadata)


class SecretResponse(BaseModel):
    """Response of a KVv2 read."""

    data: SecretData
