"""Clients for the services the ingest flow depends on."""

from .bag_validator import BagValidator
from .client import Client
from .exceptions import (
    APIError,
    ClientError,
    ConnectionError,
    NotFoundError,
    ResponseValidationError,
)
from .vault_catalog import VaultCatalogClient

__all__ = [
    "APIError",
    "BagValidator",
    "Client",
    "ClientError",
    "ConnectionError",
    "NotFoundError",
    "ResponseValidationError",
    "VaultCatalogClient",
]
