"""Checksum calculation for bag items.

Every item written into an RDA bag passes through a ``ChecksumStream`` so
that its digests are computed while the bytes flow to the output, and no
item ever has to be read twice.
"""

import hashlib
import logging
from enum import Enum
from typing import BinaryIO

from vault_ingest.exceptions import ChecksumsNotReadyError

logger = logging.getLogger(__name__)


class ManifestAlgorithm(Enum):
    """Digest algorithms supported in bag manifests.

    The value is the name used in manifest filenames
    (``manifest-<value>.txt``) and by ``hashlib``.
    """

    SHA1 = "sha1"
    MD5 = "md5"
    SHA256 = "sha256"
    SHA512 = "sha512"

    @property
    def hex_length(self) -> int:
        return hashlib.new(self.value).digest_size * 2

    @classmethod
    def from_name(cls, name: str) -> "ManifestAlgorithm":
        """Look up an algorithm by its manifest name, e.g. ``sha1``."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"unsupported manifest algorithm: {name}") from None


REQUIRED_ALGORITHMS: tuple[ManifestAlgorithm, ...] = (
    ManifestAlgorithm.SHA1,
    ManifestAlgorithm.MD5,
)


class ChecksumStream:
    """Read-only stream wrapper that digests everything read through it.

    The digest map becomes available once the wrapped stream has reported
    end-of-file; asking for it earlier raises ``ChecksumsNotReadyError``
    rather than handing out digests of a partial read.

    Example:
        with ChecksumStream(path.open("rb"), REQUIRED_ALGORITHMS) as stream:
            shutil.copyfileobj(stream, destination)
        stream.checksums  # {ManifestAlgorithm.SHA1: "...", ManifestAlgorithm.MD5: "..."}
    """

    def __init__(self, stream: BinaryIO, algorithms):
        self._stream = stream
        self._hashes = {algorithm: hashlib.new(algorithm.value) for algorithm in algorithms}
        self._checksums: dict[ManifestAlgorithm, str] | None = None
        self.bytes_read = 0

    def __repr__(self) -> str:
        names = ", ".join(a.value for a in self._hashes)
        return f"ChecksumStream([{names}])"

    def __enter__(self) -> "ChecksumStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def readable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        """Read from the wrapped stream, feeding every digest.

        Args:
            size: Maximum number of bytes to read; -1 or None reads to the end

        Returns:
            The bytes read; an empty result means end of stream
        """
        if self._checksums is not None:
            return b""

        if size is None or size < 0:
            data = self._stream.read()
            self._update(data)
            self._finalize()
            return data

        data = self._stream.read(size)
        if not data:
            self._finalize()
            return b""

        self._update(data)
        return data

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def drain(self) -> dict[ManifestAlgorithm, str]:
        """Consume the rest of the stream and return the digest map."""
        while self.read(64 * 1024):
            pass
        return self.checksums

    @property
    def finished(self) -> bool:
        return self._checksums is not None

    @property
    def checksums(self) -> dict[ManifestAlgorithm, str]:
        """Lowercase hex digests keyed by algorithm.

        Raises:
            ChecksumsNotReadyError: If the stream has not been read to the end
        """
        if self._checksums is None:
            raise ChecksumsNotReadyError(
                f"checksums requested after {self.bytes_read} bytes, "
                "before the stream was fully consumed"
            )
        return dict(self._checksums)

    def close(self) -> None:
        self._stream.close()

    def _update(self, data: bytes) -> None:
        self.bytes_read += len(data)
        for digest in self._hashes.values():
            digest.update(data)

    def _finalize(self) -> None:
        if self._checksums is None:
            self._checksums = {
                algorithm: digest.hexdigest().lower()
                for algorithm, digest in self._hashes.items()
            }
            logger.debug(f"Digested {self.bytes_read} bytes: {self._checksums}")
