"""Output writers for RDA bags.

A ``BagOutputWriter`` receives named bag items as byte streams and places
them in some container. The zip and directory writers build the bag under
a ``.partial`` name and only rename it to its final name when closed
successfully, so a failed write never leaves a half-written bag behind
under the real name.
"""

import logging
import shutil
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from vault_ingest.exceptions import BagExistsError

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 1024 * 1024


def _partial_path(target: Path) -> Path:
    return target.with_name(f"{target.name}.partial")


def _item_name(path: PurePosixPath | str) -> str:
    name = PurePosixPath(path).as_posix()
    if name.startswith("/") or ".." in PurePosixPath(name).parts:
        raise ValueError(f"bag item path must be relative and inside the bag: {path}")
    return name


class BagOutputWriter(ABC):
    """Abstract base class for bag output containers.

    Writers are context managers: leaving the block normally commits the
    bag, leaving it with an exception discards whatever was written.
    """

    @abstractmethod
    def write_bag_item(self, stream: BinaryIO, path: PurePosixPath | str) -> None:
        """Copy *stream* to the end, storing it at *path* inside the bag.

        Args:
            stream: Readable binary stream; it is read to exhaustion
            path: Bag-relative POSIX path of the item
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Commit the bag."""
        pass

    def abort(self) -> None:
        """Discard everything written so far. Default is a no-op."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return False


class ZipBagOutputWriter(BagOutputWriter):
    """Write a bag as a single zip file.

    Attributes:
        target: Final path of the zip file
    """

    def __init__(self, target: Path):
        if target.exists():
            raise BagExistsError(f"Output bag already exists: {target}")

        self.target = target
        self._partial = _partial_path(target)
        self._partial.parent.mkdir(parents=True, exist_ok=True)
        self._zip: zipfile.ZipFile | None = zipfile.ZipFile(
            self._partial, mode="x", compression=zipfile.ZIP_DEFLATED
        )
        self._names: set[str] = set()

    def __repr__(self) -> str:
        return f"ZipBagOutputWriter('{self.target}')"

    def write_bag_item(self, stream: BinaryIO, path: PurePosixPath | str) -> None:
        if self._zip is None:
            raise ValueError("writer is closed")

        name = _item_name(path)
        if name in self._names:
            raise ValueError(f"duplicate bag item: {name}")
        self._names.add(name)

        logger.debug(f"Adding {name} to {self._partial.name}")
        with self._zip.open(name, mode="w", force_zip64=True) as entry:
            shutil.copyfileobj(stream, entry, COPY_BUFFER_SIZE)

    def close(self) -> None:
        if self._zip is None:
            return

        self._zip.close()
        self._zip = None

        if self.target.exists():
            self._partial.unlink()
            raise BagExistsError(f"Output bag appeared while writing: {self.target}")

        self._partial.rename(self.target)
        logger.info(f"Wrote bag {self.target}")

    def abort(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
        if self._partial.exists():
            logger.warning(f"Discarding partially written bag {self._partial}")
            self._partial.unlink()


class DirectoryBagOutputWriter(BagOutputWriter):
    """Write a bag as an unpacked directory tree.

    Attributes:
        target: Final path of the bag directory
    """

    def __init__(self, target: Path):
        if target.exists():
            raise BagExistsError(f"Output bag already exists: {target}")

        self.target = target
        self._partial = _partial_path(target)
        self._partial.mkdir(parents=True)
        self._closed = False

    def __repr__(self) -> str:
        return f"DirectoryBagOutputWriter('{self.target}')"

    def write_bag_item(self, stream: BinaryIO, path: PurePosixPath | str) -> None:
        if self._closed:
            raise ValueError("writer is closed")

        destination = self._partial / _item_name(path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("xb") as f:
            shutil.copyfileobj(stream, f, COPY_BUFFER_SIZE)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self.target.exists():
            shutil.rmtree(self._partial)
            raise BagExistsError(f"Output bag appeared while writing: {self.target}")

        self._partial.rename(self.target)
        logger.info(f"Wrote bag {self.target}")

    def abort(self) -> None:
        self._closed = True
        if self._partial.exists():
            logger.warning(f"Discarding partially written bag {self._partial}")
            shutil.rmtree(self._partial)


class NullBagOutputWriter(BagOutputWriter):
    """Drain every item without storing it.

    Useful for dry runs: checksums and manifests are still computed.

    Attributes:
        items: Names of the items written, in order
    """

    def __init__(self):
        self.items: list[str] = []

    def write_bag_item(self, stream: BinaryIO, path: PurePosixPath | str) -> None:
        self.items.append(_item_name(path))
        while stream.read(COPY_BUFFER_SIZE):
            pass

    def close(self) -> None:
        pass
