"""Payload files of a deposit and normalization of their paths.

Paths in a deposit may contain characters that are not acceptable in the
archive. Directory names keep only letters, digits, space and ``_-./\\``;
file names lose only the characters that are invalid on common
filesystems. Everything else becomes ``_``. Normalization is total and
idempotent.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable

from vault_ingest.rdabag.checksums import ManifestAlgorithm

PAYLOAD_PREFIX = "data/"

_INVALID_DIRECTORY_CHARS = re.compile(r"[^A-Za-z0-9_\-.\\/ ]")
_INVALID_FILENAME_CHARS = re.compile(r'[:*?"<>|;#]')


def normalize_directory_label(label: str) -> str:
    return _INVALID_DIRECTORY_CHARS.sub("_", label)


def normalize_filename(filename: str) -> str:
    return _INVALID_FILENAME_CHARS.sub("_", filename)


def strip_payload_prefix(filepath: str) -> str:
    if filepath.startswith(PAYLOAD_PREFIX):
        return filepath[len(PAYLOAD_PREFIX):]
    return filepath


def normalize_path(relative: str) -> PurePosixPath:
    """Normalize a payload path that is already relative to ``data/``.

    The ``data/`` prefix is not stripped here, so a payload directory that
    happens to be called ``data`` survives repeated normalization.

    Example:
        >>> normalize_path('&invalid**/here:*?"<>|;#.txt')
        PurePosixPath('_invalid__/here_________.txt')
    """
    directory, _, filename = relative.rpartition("/")
    if directory:
        return PurePosixPath(normalize_directory_label(directory)) / normalize_filename(filename)
    return PurePosixPath(normalize_filename(filename))


@dataclass
class PayloadFile:
    """A payload file of a deposit.

    Attributes:
        path: Normalized path relative to the bag's ``data/`` directory
        opener: Returns a fresh binary stream over the file's bytes; may be
                called more than once
        checksums: Checksums already known for the file; these are trusted
                   and not recomputed
        restricted: Whether access to the file is restricted
        description: Free-text description
        original_path: Path as recorded in the deposit, before normalization
        pid: Externally visible persistent identifier, if any
    """

    path: PurePosixPath
    opener: Callable[[], BinaryIO] = field(repr=False)
    checksums: dict[ManifestAlgorithm, str] = field(default_factory=dict)
    restricted: bool = False
    description: str = ""
    original_path: str | None = None
    pid: str | None = None

    def open(self) -> BinaryIO:
        return self.opener()

    @property
    def bag_path(self) -> PurePosixPath:
        """Path of the file inside the RDA bag."""
        return PurePosixPath("data") / self.path

    @classmethod
    def from_file(
        cls,
        source: Path,
        filepath: str,
        checksums: dict[ManifestAlgorithm, str] | None = None,
        restricted: bool = False,
        description: str | None = None,
        pid: str | None = None,
    ) -> "PayloadFile":
        """Create a payload file backed by a file on disk.

        When normalization changes the path, the original path is kept in
        the description so that it is not lost.
        """
        relative = strip_payload_prefix(filepath)
        normalized = normalize_path(relative)
        if description is None:
            description = ""
            if str(normalized) != relative:
                description = f"original_filepath: {filepath}"

        return cls(
            path=normalized,
            opener=lambda: source.open("rb"),
            checksums=dict(checksums or {}),
            restricted=restricted,
            description=description,
            original_path=filepath,
            pid=pid,
        )
