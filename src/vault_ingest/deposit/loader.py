"""Loading deposits from, and saving their state to, deposit directories."""

import json
import logging
from pathlib import Path, PurePosixPath

from lxml import etree
from pydantic import ValidationError as PydanticValidationError

from schemas.deposit import DepositProperties, State
from vault_ingest.exceptions import DepositLoadError
from vault_ingest.rdabag.checksums import ManifestAlgorithm

from .deposit import Deposit, UpdateDetector, never_an_update
from .metadata import FileMetadata, read_dataset_metadata, read_files_metadata
from .payload import PayloadFile

logger = logging.getLogger(__name__)

PROPERTIES_FILENAME = "deposit.json"
DATASET_XML = PurePosixPath("metadata/dataset.xml")
FILES_XML = PurePosixPath("metadata/files.xml")
BAGIT_TXT = PurePosixPath("bagit.txt")
BAG_INFO_TXT = PurePosixPath("bag-info.txt")


def find_bag_dir(path: Path) -> Path:
    """Return the single bag directory inside a deposit directory.

    Raises:
        DepositLoadError: If there is no subdirectory or more than one
    """
    try:
        candidates = sorted(p for p in path.iterdir() if p.is_dir())
    except OSError as e:
        raise DepositLoadError(f"Cannot list deposit directory {path}: {e}") from e

    if not candidates:
        raise DepositLoadError(f"No bag directory found in deposit {path}")
    if len(candidates) > 1:
        names = ", ".join(p.name for p in candidates)
        raise DepositLoadError(f"More than one bag directory in deposit {path}: {names}")
    return candidates[0]


def read_bag_info(path: Path) -> dict[str, list[str]]:
    """Parse a ``bag-info.txt`` file.

    Lines starting with whitespace continue the previous value. Keys may
    occur more than once.
    """
    result: dict[str, list[str]] = {}
    key: str | None = None

    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        if line[0] in " \t" and key is not None:
            result[key][-1] = f"{result[key][-1]} {line.strip()}"
            continue
        if ":" not in line:
            raise ValueError(f"Malformed line in {path.name}: {line!r}")
        key, _, value = line.partition(":")
        key = key.strip()
        result.setdefault(key, []).append(value.strip())

    return result


def read_bag_manifest(path: Path) -> dict[str, str]:
    """Parse a bag manifest into a map of bag-relative path to checksum."""
    result = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        checksum, filepath = line.split(maxsplit=1)
        result[filepath.strip()] = checksum.lower()
    return result


class DepositLoader:
    """Load deposits from inbox directories.

    How a deposit is recognized as a new version of an existing dataset is
    left to the injected ``update_detector``.

    Attributes:
        data_suppliers: Depositor id to data supplier name
        update_detector: Decides whether a loaded deposit is an update
    """

    def __init__(
        self,
        data_suppliers: dict[str, str] | None = None,
        update_detector: UpdateDetector = never_an_update,
    ):
        self.data_suppliers = data_suppliers or {}
        self.update_detector = update_detector

    def load(self, path: Path) -> Deposit:
        """Load the deposit in *path*.

        Args:
            path: Deposit directory

        Returns:
            The loaded deposit

        Raises:
            DepositLoadError: If the directory or its documents cannot be read
        """
        try:
            return self._load(path)
        except DepositLoadError:
            raise
        except (OSError, ValueError, etree.XMLSyntaxError, PydanticValidationError) as e:
            raise DepositLoadError(f"Could not load deposit {path.name}: {e}") from e

    def _load(self, path: Path) -> Deposit:
        bag_dir = find_bag_dir(path)
        properties = self.load_properties(path)

        if not (bag_dir / DATASET_XML).is_file():
            raise DepositLoadError(f"Deposit {path.name} has no {DATASET_XML}")

        dataset = read_dataset_metadata(bag_dir / DATASET_XML)
        bag_info = read_bag_info(bag_dir / BAG_INFO_TXT) if (bag_dir / BAG_INFO_TXT).is_file() else {}
        payload_files = self._payload_files(bag_dir, dataset.access_rights)
        metadata_files = self._metadata_files(bag_dir)

        logger.info(
            f"Loaded deposit {properties.id} with {len(payload_files)} payload files "
            f"and {len(metadata_files)} metadata files"
        )

        return Deposit(
            path=path,
            bag_dir=bag_dir,
            properties=properties,
            dataset=dataset,
            bag_info=bag_info,
            payload_files=payload_files,
            metadata_files=metadata_files,
            update_detector=self.update_detector,
            data_suppliers=self.data_suppliers,
        )

    def _payload_files(self, bag_dir: Path, access_rights: str | None) -> list[PayloadFile]:
        known_checksums = self._known_checksums(bag_dir)

        if (bag_dir / FILES_XML).is_file():
            entries = read_files_metadata(bag_dir / FILES_XML)
        else:
            data_dir = bag_dir / "data"
            entries = [
                FileMetadata(filepath=p.relative_to(bag_dir).as_posix())
                for p in sorted(data_dir.rglob("*"))
                if p.is_file()
            ] if data_dir.is_dir() else []

        payload_files = []
        seen = set()
        for entry in entries:
            source = bag_dir / entry.filepath
            if not source.is_file():
                raise DepositLoadError(f"Payload file {entry.filepath} does not exist in bag {bag_dir.name}")

            checksums = {
                algorithm: by_path[entry.filepath]
                for algorithm, by_path in known_checksums.items()
                if entry.filepath in by_path
            }
            payload_file = PayloadFile.from_file(
                source,
                entry.filepath,
                checksums=checksums,
                restricted=entry.is_restricted(access_rights),
                description=entry.description,
                pid=entry.identifier,
            )

            if payload_file.path in seen:
                raise DepositLoadError(
                    f"Payload files collide after normalization: {payload_file.path}"
                )
            seen.add(payload_file.path)
            payload_files.append(payload_file)

        return payload_files

    def _known_checksums(self, bag_dir: Path) -> dict[ManifestAlgorithm, dict[str, str]]:
        result = {}
        for algorithm in ManifestAlgorithm:
            manifest = bag_dir / f"manifest-{algorithm.value}.txt"
            if manifest.is_file():
                result[algorithm] = read_bag_manifest(manifest)
        return result

    def _metadata_files(self, bag_dir: Path) -> list[PurePosixPath]:
        """Bag-relative paths of everything that is not payload or a manifest."""
        result = []
        for p in sorted(bag_dir.rglob("*")):
            if not p.is_file():
                continue
            relative = PurePosixPath(p.relative_to(bag_dir).as_posix())
            if relative.parts[0] == "data":
                continue
            if len(relative.parts) == 1 and relative.name.startswith(("manifest-", "tagmanifest-")):
                continue
            result.append(relative)

        first = [p for p in (BAGIT_TXT, BAG_INFO_TXT) if p in result]
        return first + [p for p in result if p not in first]

    def load_properties(self, path: Path) -> DepositProperties:
        """Read ``deposit.json``, or start fresh properties if there is none."""
        properties_file = path / PROPERTIES_FILENAME
        if not properties_file.exists():
            logger.warning(f"No {PROPERTIES_FILENAME} in {path}; starting with defaults")
            return DepositProperties(id=path.name)

        data = json.loads(properties_file.read_text())
        data.setdefault("id", path.name)
        return DepositProperties.model_validate(data)

    def save_properties(self, deposit: Deposit) -> None:
        self._write_properties(deposit.path, deposit.properties)

    def update_state(self, path: Path, state: State, message: str) -> None:
        """Record a state in a deposit directory without loading the deposit.

        Used when a deposit fails before, or while, being loaded.
        """
        properties = self.load_properties(path)
        properties.state = state
        properties.state_description = message
        self._write_properties(path, properties)

    def _write_properties(self, path: Path, properties: DepositProperties) -> None:
        properties_file = path / PROPERTIES_FILENAME
        tmp_file = properties_file.with_suffix(".json.tmp")
        tmp_file.write_text(properties.model_dump_json(indent=2, exclude_none=True))
        tmp_file.replace(properties_file)
        logger.debug(f"Wrote {properties_file} with state {properties.state.value}")
