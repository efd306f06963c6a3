"""OAI-ORE resource map for ``metadata/oai-ore.rdf`` and ``metadata/oai-ore.jsonld``.

The resource map describes the dataset as an ORE aggregation of its payload
files. It is built once as an ``OreResourceMap`` and serialized twice: as
RDF/XML and as JSON-LD framed on the aggregation.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lxml import etree

from ..checksums import ManifestAlgorithm
from .pid_mapping import file_uri

if TYPE_CHECKING:
    from vault_ingest.deposit.deposit import Deposit

logger = logging.getLogger(__name__)

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
ORE_NS = "http://www.openarchives.org/ore/terms/"
DCTERMS_NS = "http://purl.org/dc/terms/"
SCHEMA_NS = "http://schema.org/"
DVCORE_NS = "https://dataverse.org/schema/core#"

ORE_CONTEXT = "https://w3id.org/ore/context"
USED_NAMESPACES = {
    "dcterms": DCTERMS_NS,
    "schema": SCHEMA_NS,
    "dvcore": DVCORE_NS,
}

CHECKSUM_NAMES = {
    ManifestAlgorithm.SHA1: "SHA-1",
    ManifestAlgorithm.MD5: "MD5",
    ManifestAlgorithm.SHA256: "SHA-256",
    ManifestAlgorithm.SHA512: "SHA-512",
}


@dataclass
class AggregatedResource:
    """A payload file as an aggregated resource."""

    uri: str
    name: str
    directory_label: str | None
    restricted: bool
    description: str | None = None
    checksum: tuple[str, str] | None = None


@dataclass
class OreResourceMap:
    """The resource map of one dataset version."""

    uri: str
    aggregation_uri: str
    title: str
    alternative_titles: list[str] = field(default_factory=list)
    identifiers: list[str] = field(default_factory=list)
    creators: list[str] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    resources: list[AggregatedResource] = field(default_factory=list)


class OaiOreConverter:
    """Build the resource map of a deposit.

    Attributes:
        checksum_algorithm: Algorithm whose checksum is listed per file
    """

    def __init__(self, checksum_algorithm: ManifestAlgorithm = ManifestAlgorithm.SHA1):
        self.checksum_algorithm = checksum_algorithm

    def convert(self, deposit: "Deposit", checksums: dict | None = None) -> OreResourceMap:
        """Build the resource map.

        Args:
            deposit: Deposit with its NBN assigned
            checksums: Checksums of the payload files as written to the bag,
                       keyed by bag path
        """
        if not deposit.nbn:
            raise ValueError(f"deposit {deposit.id} has no NBN; cannot build resource map")

        checksums = checksums or {}
        resources = []
        for payload_file in deposit.payload_files:
            file_checksums = checksums.get(payload_file.bag_path, {})
            checksum = None
            if self.checksum_algorithm in file_checksums:
                checksum = (
                    CHECKSUM_NAMES[self.checksum_algorithm],
                    file_checksums[self.checksum_algorithm],
                )
            directory = str(payload_file.path.parent)
            resources.append(
                AggregatedResource(
                    uri=payload_file.pid or file_uri(payload_file),
                    name=payload_file.path.name,
                    directory_label=None if directory == "." else directory,
                    restricted=payload_file.restricted,
                    description=payload_file.description or None,
                    checksum=checksum,
                )
            )

        return OreResourceMap(
            uri=f"{deposit.bag_id}#ore",
            aggregation_uri=deposit.nbn,
            title=deposit.title,
            alternative_titles=list(deposit.alternative_titles),
            identifiers=[i for i in (deposit.doi, deposit.nbn) if i],
            creators=[c.name for c in deposit.creators],
            descriptions=list(deposit.descriptions),
            sources=list(deposit.dataset.sources),
            resources=resources,
        )


class OaiOreSerializer:
    """Serialize an ``OreResourceMap`` as RDF/XML or framed JSON-LD."""

    def serialize_as_rdf(self, resource_map: OreResourceMap) -> bytes:
        nsmap = {"rdf": RDF_NS, "ore": ORE_NS, **USED_NAMESPACES}
        root = etree.Element(f"{{{RDF_NS}}}RDF", nsmap=nsmap)

        res_map = etree.SubElement(root, f"{{{ORE_NS}}}ResourceMap")
        res_map.set(f"{{{RDF_NS}}}about", resource_map.uri)
        self._resource(res_map, ORE_NS, "describes", resource_map.aggregation_uri)

        aggregation = etree.SubElement(root, f"{{{ORE_NS}}}Aggregation")
        aggregation.set(f"{{{RDF_NS}}}about", resource_map.aggregation_uri)
        self._resource(aggregation, ORE_NS, "isDescribedBy", resource_map.uri)
        self._literal(aggregation, DCTERMS_NS, "title", resource_map.title)
        for value in resource_map.alternative_titles:
            self._literal(aggregation, DCTERMS_NS, "alternative", value)
        for value in resource_map.identifiers:
            self._literal(aggregation, DCTERMS_NS, "identifier", value)
        for value in resource_map.creators:
            self._literal(aggregation, DCTERMS_NS, "creator", value)
        for value in resource_map.descriptions:
            self._literal(aggregation, DCTERMS_NS, "description", value)
        for value in resource_map.sources:
            self._literal(aggregation, DCTERMS_NS, "source", value)
        for resource in resource_map.resources:
            self._resource(aggregation, ORE_NS, "aggregates", resource.uri)

        for resource in resource_map.resources:
            element = etree.SubElement(root, f"{{{ORE_NS}}}AggregatedResource")
            element.set(f"{{{RDF_NS}}}about", resource.uri)
            self._literal(element, SCHEMA_NS, "name", resource.name)
            if resource.directory_label:
                self._literal(element, DVCORE_NS, "directoryLabel", resource.directory_label)
            if resource.description:
                self._literal(element, DCTERMS_NS, "description", resource.description)
            self._literal(element, DVCORE_NS, "restricted", "true" if resource.restricted else "false")
            if resource.checksum:
                checksum = etree.SubElement(element, f"{{{DVCORE_NS}}}checksum")
                checksum.set(f"{{{RDF_NS}}}parseType", "Resource")
                self._literal(checksum, DVCORE_NS, "checksumAlgorithm", resource.checksum[0])
                self._literal(checksum, DVCORE_NS, "checksumValue", resource.checksum[1])

        return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)

    def serialize_as_jsonld(self, resource_map: OreResourceMap) -> bytes:
        aggregation: dict = {
            "@id": resource_map.aggregation_uri,
            "@type": "Aggregation",
            "isDescribedBy": resource_map.uri,
            "dcterms:title": resource_map.title,
        }
        optional = {
            "dcterms:alternative": resource_map.alternative_titles,
            "dcterms:identifier": resource_map.identifiers,
            "dcterms:creator": resource_map.creators,
            "dcterms:description": resource_map.descriptions,
            "dcterms:source": resource_map.sources,
        }
        for key, values in optional.items():
            if values:
                aggregation[key] = values if len(values) > 1 else values[0]

        aggregation["aggregates"] = [self._resource_jsonld(r) for r in resource_map.resources]

        document = {
            "@context": [ORE_CONTEXT, USED_NAMESPACES],
            "@id": resource_map.uri,
            "@type": "ResourceMap",
            "describes": aggregation,
        }
        return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")

    def _resource_jsonld(self, resource: AggregatedResource) -> dict:
        result: dict = {
            "@id": resource.uri,
            "@type": "AggregatedResource",
            "schema:name": resource.name,
        }
        if resource.directory_label:
            result["dvcore:directoryLabel"] = resource.directory_label
        if resource.description:
            result["dcterms:description"] = resource.description
        result["dvcore:restricted"] = resource.restricted
        if resource.checksum:
            result["dvcore:checksum"] = {
                "dvcore:checksumAlgorithm": resource.checksum[0],
                "dvcore:checksumValue": resource.checksum[1],
            }
        return result

    def _literal(self, parent: etree._Element, ns: str, local: str, text: str) -> None:
        etree.SubElement(parent, f"{{{ns}}}{local}").text = text

    def _resource(self, parent: etree._Element, ns: str, local: str, uri: str) -> None:
        etree.SubElement(parent, f"{{{ns}}}{local}").set(f"{{{RDF_NS}}}resource", uri)
