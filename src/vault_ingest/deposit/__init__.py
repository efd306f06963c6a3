"""Deposits: loading, payload files and the outbox."""

from .deposit import UPDATE_DETECTORS, Deposit, never_an_update, update_if_version_of
from .loader import DepositLoader, find_bag_dir
from .metadata import Creator, DatasetMetadata, FileMetadata
from .outbox import DepositOutbox
from .payload import PayloadFile, normalize_path

__all__ = [
    "Creator",
    "DatasetMetadata",
    "Deposit",
    "DepositLoader",
    "DepositOutbox",
    "FileMetadata",
    "PayloadFile",
    "UPDATE_DETECTORS",
    "find_bag_dir",
    "never_an_update",
    "normalize_path",
    "update_if_version_of",
]
