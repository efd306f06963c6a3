"""RDA bag writer.

Assembles a complete RDA bag for a deposit through a ``BagOutputWriter``.
The order of the items is fixed:

1. payload files under ``data/``
2. ``metadata/datacite.xml``
3. ``metadata/oai-ore.rdf`` and ``metadata/oai-ore.jsonld``
4. ``metadata/pid-mapping.txt``
5. ``bag-info.txt`` and ``bagit.txt`` copied from the deposit
6. the deposit's remaining metadata files, verbatim
7. ``original-metadata.zip``
8. ``manifest-<alg>.txt`` for every required algorithm
9. ``tagmanifest-<alg>.txt`` for every required algorithm, last, because
   it lists the checksums of everything written in steps 2-8
"""

import io
import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, BinaryIO, Iterable

from .checksums import REQUIRED_ALGORITHMS, ChecksumStream, ManifestAlgorithm
from .converters import (
    DataciteConverter,
    OaiOreConverter,
    OaiOreSerializer,
    OriginalMetadataSerializer,
    PidMappingConverter,
)
from .manifests import ManifestAccumulator, is_payload_path, manifest_filename, tag_manifest_filename
from .output import BagOutputWriter

if TYPE_CHECKING:
    from vault_ingest.deposit.deposit import Deposit
    from vault_ingest.deposit.payload import PayloadFile

logger = logging.getLogger(__name__)

DATACITE_PATH = PurePosixPath("metadata/datacite.xml")
OAI_ORE_RDF_PATH = PurePosixPath("metadata/oai-ore.rdf")
OAI_ORE_JSONLD_PATH = PurePosixPath("metadata/oai-ore.jsonld")
PID_MAPPING_PATH = PurePosixPath("metadata/pid-mapping.txt")
BAG_INFO_PATH = PurePosixPath("bag-info.txt")
BAGIT_PATH = PurePosixPath("bagit.txt")
ORIGINAL_METADATA_PATH = PurePosixPath("original-metadata.zip")


class RdaBagWriter:
    """Write the RDA bag of one deposit.

    Every item except the tag manifests passes through a ``ChecksumStream``
    on its way to the output, and its checksums are recorded in a
    ``ManifestAccumulator``; nothing is read back from the output.

    Attributes:
        algorithms: Algorithms every manifest is written for
    """

    def __init__(
        self,
        algorithms: Iterable[ManifestAlgorithm] = REQUIRED_ALGORITHMS,
        datacite_converter: DataciteConverter | None = None,
        oai_ore_converter: OaiOreConverter | None = None,
        oai_ore_serializer: OaiOreSerializer | None = None,
        pid_mapping_converter: PidMappingConverter | None = None,
        original_metadata_serializer: OriginalMetadataSerializer | None = None,
    ):
        self.algorithms = tuple(algorithms)
        self._datacite = datacite_converter or DataciteConverter()
        self._oai_ore = oai_ore_converter or OaiOreConverter(self.algorithms[0])
        self._oai_ore_serializer = oai_ore_serializer or OaiOreSerializer()
        self._pid_mapping = pid_mapping_converter or PidMappingConverter()
        self._original_metadata = original_metadata_serializer or OriginalMetadataSerializer()

    def write(self, deposit: "Deposit", output: BagOutputWriter) -> ManifestAccumulator:
        """Write the complete bag.

        Args:
            deposit: Deposit with NBN and object version assigned
            output: Writer receiving the bag items

        Returns:
            The checksums of every item written before the tag manifests
        """
        checksums = ManifestAccumulator(self.algorithms)

        for payload_file in deposit.payload_files:
            self._write_payload_file(payload_file, output, checksums)

        logger.info(f"Writing {DATACITE_PATH}")
        self._write_bytes(self._datacite.serialize(deposit), DATACITE_PATH, output, checksums)

        logger.info("Writing metadata/oai-ore")
        payload_checksums = {p: checksums.get(p) for p in checksums.paths if is_payload_path(p)}
        resource_map = self._oai_ore.convert(deposit, payload_checksums)
        self._write_bytes(
            self._oai_ore_serializer.serialize_as_rdf(resource_map), OAI_ORE_RDF_PATH, output, checksums
        )
        self._write_bytes(
            self._oai_ore_serializer.serialize_as_jsonld(resource_map), OAI_ORE_JSONLD_PATH, output, checksums
        )

        logger.info(f"Writing {PID_MAPPING_PATH}")
        self._write_bytes(self._pid_mapping.serialize(deposit), PID_MAPPING_PATH, output, checksums)

        for path in (BAG_INFO_PATH, BAGIT_PATH):
            logger.info(f"Writing {path}")
            with deposit.open_metadata_file(path) as stream:
                self._write_checksummed(stream, path, output, checksums)

        for path in deposit.metadata_files:
            if path in checksums:
                if path not in (BAG_INFO_PATH, BAGIT_PATH):
                    logger.warning(f"Not copying {path} from deposit {deposit.id}: already written")
                continue
            logger.info(f"Writing {path}")
            with deposit.open_metadata_file(path) as stream:
                self._write_checksummed(stream, path, output, checksums)

        logger.info(f"Writing {ORIGINAL_METADATA_PATH}")
        self._write_bytes(
            self._original_metadata.serialize(deposit), ORIGINAL_METADATA_PATH, output, checksums
        )

        for algorithm in self.algorithms:
            path = PurePosixPath(manifest_filename(algorithm))
            logger.info(f"Writing {path}")
            self._write_bytes(
                checksums.payload_manifest(algorithm).encode("utf-8"), path, output, checksums
            )

        # Last: covers everything above
        for algorithm in self.algorithms:
            path = PurePosixPath(tag_manifest_filename(algorithm))
            logger.info(f"Writing {path}")
            output.write_bag_item(io.BytesIO(checksums.tag_manifest(algorithm).encode("utf-8")), path)

        return checksums

    def _write_payload_file(
        self,
        payload_file: "PayloadFile",
        output: BagOutputWriter,
        checksums: ManifestAccumulator,
    ) -> None:
        known = {a: c for a, c in payload_file.checksums.items() if c}
        to_calculate = [a for a in self.algorithms if a not in known]
        logger.debug(f"Checksums already present for {payload_file.path}: {known}")

        logger.info(f"Writing payload file {payload_file.bag_path}")
        with payload_file.open() as stream, ChecksumStream(stream, to_calculate) as digesting:
            output.write_bag_item(digesting, payload_file.bag_path)
            calculated = digesting.checksums

        logger.debug(f"Newly calculated checksums for {payload_file.path}: {calculated}")
        checksums.record(payload_file.bag_path, {**known, **calculated})

    def _write_checksummed(
        self,
        stream: BinaryIO,
        path: PurePosixPath,
        output: BagOutputWriter,
        checksums: ManifestAccumulator,
    ) -> None:
        with ChecksumStream(stream, self.algorithms) as digesting:
            output.write_bag_item(digesting, path)
            checksums.record(path, digesting.checksums)

    def _write_bytes(
        self,
        content: bytes,
        path: PurePosixPath,
        output: BagOutputWriter,
        checksums: ManifestAccumulator,
    ) -> None:
        self._write_checksummed(io.BytesIO(content), path, output, checksums)


class RdaBagWriterFactory:
    """Create an ``RdaBagWriter`` per deposit.

    Writers keep no state between deposits, but one is created per task so
    that tasks never share anything.
    """

    def __init__(self, publisher: str = "DANS", algorithms: Iterable[ManifestAlgorithm] = REQUIRED_ALGORITHMS):
        self.publisher = publisher
        self.algorithms = tuple(algorithms)

    def create_rda_bag_writer(self, deposit: "Deposit") -> RdaBagWriter:
        logger.debug(f"Creating RDA bag writer for deposit {deposit.id}")
        return RdaBagWriter(
            algorithms=self.algorithms,
            datacite_converter=DataciteConverter(publisher=self.publisher),
        )
