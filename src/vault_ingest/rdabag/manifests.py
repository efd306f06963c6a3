"""Bookkeeping of checksums for every item written to a bag."""

import logging
from pathlib import PurePosixPath
from typing import Callable, Iterable

from vault_ingest.exceptions import IncompleteManifestError

from .checksums import REQUIRED_ALGORITHMS, ManifestAlgorithm

logger = logging.getLogger(__name__)

PAYLOAD_ROOT = "data"
TAG_MANIFEST_PREFIX = "tagmanifest-"


def is_payload_path(path: PurePosixPath) -> bool:
    return len(path.parts) > 0 and path.parts[0] == PAYLOAD_ROOT


def is_tag_manifest_path(path: PurePosixPath) -> bool:
    return str(path).startswith(TAG_MANIFEST_PREFIX)


def is_tag_path(path: PurePosixPath) -> bool:
    return not is_payload_path(path) and not is_tag_manifest_path(path)


def manifest_filename(algorithm: ManifestAlgorithm) -> str:
    return f"manifest-{algorithm.value}.txt"


def tag_manifest_filename(algorithm: ManifestAlgorithm) -> str:
    return f"{TAG_MANIFEST_PREFIX}{algorithm.value}.txt"


class ManifestAccumulator:
    """Ordered mapping of bag item path to its checksums.

    Items are recorded in the order they are written to the bag, and
    manifests list them in that same order.

    Attributes:
        algorithms: Algorithms every recorded item must have a checksum for
    """

    def __init__(self, algorithms: Iterable[ManifestAlgorithm] = REQUIRED_ALGORITHMS):
        self.algorithms: tuple[ManifestAlgorithm, ...] = tuple(algorithms)
        self._checksums: dict[PurePosixPath, dict[ManifestAlgorithm, str]] = {}

    def __len__(self) -> int:
        return len(self._checksums)

    def __contains__(self, path) -> bool:
        return PurePosixPath(path) in self._checksums

    def record(self, path: PurePosixPath | str, checksums: dict[ManifestAlgorithm, str]) -> None:
        """Record the checksums of an item that has just been written.

        Raises:
            ValueError: If the path was already recorded
        """
        key = PurePosixPath(path)
        if key in self._checksums:
            raise ValueError(f"bag item recorded twice: {key}")
        self._checksums[key] = {a: c.lower() for a, c in checksums.items()}

    def get(self, path: PurePosixPath | str) -> dict[ManifestAlgorithm, str] | None:
        checksums = self._checksums.get(PurePosixPath(path))
        return dict(checksums) if checksums is not None else None

    @property
    def paths(self) -> list[PurePosixPath]:
        return list(self._checksums)

    def missing(self) -> dict[PurePosixPath, list[ManifestAlgorithm]]:
        """Items lacking a checksum for one or more required algorithms."""
        result = {}
        for path, checksums in self._checksums.items():
            absent = [a for a in self.algorithms if not checksums.get(a)]
            if absent:
                result[path] = absent
        return result

    def manifest_lines(
        self,
        algorithm: ManifestAlgorithm,
        include: Callable[[PurePosixPath], bool],
    ) -> list[str]:
        """Build ``<checksum>  <path>`` lines for the selected items.

        Args:
            algorithm: Which checksum to list
            include: Predicate selecting the item paths to list

        Returns:
            Manifest lines in recording order, without line terminators

        Raises:
            IncompleteManifestError: If a selected item lacks the checksum
        """
        lines = []
        for path, checksums in self._checksums.items():
            if not include(path):
                continue
            checksum = checksums.get(algorithm)
            if not checksum:
                raise IncompleteManifestError(
                    f"No {algorithm.value} checksum recorded for {path}"
                )
            lines.append(f"{checksum}  {path}")
        return lines

    def payload_manifest(self, algorithm: ManifestAlgorithm) -> str:
        """Content of ``manifest-<algorithm>.txt``."""
        return "".join(f"{line}\n" for line in self.manifest_lines(algorithm, is_payload_path))

    def tag_manifest(self, algorithm: ManifestAlgorithm) -> str:
        """Content of ``tagmanifest-<algorithm>.txt``.

        Every recorded item must be complete at this point: the tag manifest
        is written last, so a gap here means an earlier write went
        unrecorded or was recorded with too few checksums.

        Raises:
            IncompleteManifestError: If any recorded item is incomplete
        """
        missing = self.missing()
        if missing:
            details = ", ".join(
                f"{path} ({', '.join(a.value for a in algorithms)})"
                for path, algorithms in missing.items()
            )
            raise IncompleteManifestError(f"Bag items without required checksums: {details}")

        return "".join(f"{line}\n" for line in self.manifest_lines(algorithm, is_tag_path))
