"""The deposit being converted.

A ``Deposit`` is owned by exactly one conversion task at a time. Its
identity (id, bag, documents) is fixed once loaded; its archival
identifier, version and state are assigned in place while the task runs
and written back to ``deposit.json`` by the loader.
"""

from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable

from schemas.deposit import DepositProperties, LogEntry, State

from .metadata import Creator, DatasetMetadata
from .payload import PayloadFile

UpdateDetector = Callable[["Deposit"], bool]


def never_an_update(deposit: "Deposit") -> bool:
    return False


def update_if_version_of(deposit: "Deposit") -> bool:
    return deposit.is_version_of is not None


UPDATE_DETECTORS: dict[str, UpdateDetector] = {
    "never": never_an_update,
    "is-version-of": update_if_version_of,
}


class Deposit:
    """A deposit loaded from an inbox directory.

    Attributes:
        path: Deposit directory
        bag_dir: The bag inside the deposit directory
        properties: Persisted properties, updated in place
        dataset: Dataset-level metadata from ``dataset.xml``
        bag_info: ``bag-info.txt`` entries; keys may repeat, so values are lists
        payload_files: Payload files in the order they are to be written
        metadata_files: Bag-relative paths of the bag's own metadata files
    """

    def __init__(
        self,
        path: Path,
        bag_dir: Path,
        properties: DepositProperties,
        dataset: DatasetMetadata,
        bag_info: dict[str, list[str]],
        payload_files: list[PayloadFile],
        metadata_files: list[PurePosixPath],
        update_detector: UpdateDetector = never_an_update,
        data_suppliers: dict[str, str] | None = None,
    ):
        self.path = path
        self.bag_dir = bag_dir
        self.properties = properties
        self.dataset = dataset
        self.bag_info = bag_info
        self.payload_files = payload_files
        self.metadata_files = metadata_files
        self._update_detector = update_detector
        self._data_suppliers = data_suppliers or {}

    def __repr__(self) -> str:
        return f"Deposit({self.id})"

    @property
    def id(self) -> str:
        return self.properties.id

    @property
    def bag_id(self) -> str:
        return self.properties.bag_id or f"urn:uuid:{self.id}"

    @property
    def doi(self) -> str | None:
        return self.properties.identifier_doi or self.dataset.doi

    @property
    def nbn(self) -> str | None:
        return self.properties.identifier_urn

    @nbn.setter
    def nbn(self, value: str) -> None:
        self.properties.identifier_urn = value

    @property
    def object_version(self) -> int | None:
        return self.properties.object_version

    @object_version.setter
    def object_version(self, value: int) -> None:
        self.properties.object_version = value

    @property
    def title(self) -> str:
        return self.dataset.title

    @property
    def alternative_titles(self) -> list[str]:
        return self.dataset.alternative_titles

    @property
    def descriptions(self) -> list[str]:
        return self.dataset.descriptions

    @property
    def creators(self) -> list[Creator]:
        return self.dataset.creators

    @property
    def depositor_id(self) -> str | None:
        return self.properties.depositor_id

    @property
    def data_supplier(self) -> str | None:
        """Name of the data supplier, falling back to the depositor id."""
        if self.depositor_id is None:
            return None
        return self._data_suppliers.get(self.depositor_id, self.depositor_id)

    @property
    def is_version_of(self) -> str | None:
        values = self.bag_info_values("Is-Version-Of")
        return values[0] if values else None

    @property
    def sword_token(self) -> str | None:
        return self.properties.sword_token or self.is_version_of

    @property
    def is_update(self) -> bool:
        return self._update_detector(self)

    @property
    def state(self) -> State:
        return self.properties.state

    @property
    def state_description(self) -> str | None:
        return self.properties.state_description

    def set_state(self, state: State, message: str) -> None:
        self.properties.state = state
        self.properties.state_description = message

    def bag_info_values(self, key: str) -> list[str]:
        return list(self.bag_info.get(key, []))

    def open_metadata_file(self, path: PurePosixPath | str) -> BinaryIO:
        """Open one of the bag's metadata files for reading.

        Raises:
            ValueError: If the path is not one of the bag's metadata files
        """
        key = PurePosixPath(path)
        if key not in self.metadata_files:
            raise ValueError(f"{key} is not a metadata file of deposit {self.id}")
        return (self.bag_dir / key).open("rb")

    def write_log(self, message: str, level: str | None = None, stage: str | None = None) -> None:
        self.properties.log.append(LogEntry(message=message, level=level, stage=stage))
