"""DataCite converter for ``metadata/datacite.xml``.

Builds a DataCite kernel-4 resource description from the deposit's
dataset-level metadata.
"""

import logging
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from lxml import etree

if TYPE_CHECKING:
    from vault_ingest.deposit.deposit import Deposit

logger = logging.getLogger(__name__)

DATACITE_NS = "http://datacite.org/schema/kernel-4"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
DATACITE_SCHEMA = "http://schema.datacite.org/meta/kernel-4/metadata.xsd"


def _el(parent: etree._Element, local: str, text: str | None = None, **attrs) -> etree._Element:
    element = etree.SubElement(parent, f"{{{DATACITE_NS}}}{local}")
    for name, value in attrs.items():
        element.set(name, value)
    if text is not None:
        element.text = text
    return element


class DataciteConverter:
    """Convert a deposit into a DataCite XML document.

    Attributes:
        publisher: Publisher name written to every document
    """

    def __init__(self, publisher: str = "DANS"):
        self.publisher = publisher

    def convert(self, deposit: "Deposit") -> etree._Element:
        root = etree.Element(
            f"{{{DATACITE_NS}}}resource",
            nsmap={None: DATACITE_NS, "xsi": XSI_NS},
        )
        root.set(f"{{{XSI_NS}}}schemaLocation", f"{DATACITE_NS} {DATACITE_SCHEMA}")

        identifier_type, identifier = self._identifier(deposit)
        _el(root, "identifier", identifier, identifierType=identifier_type)

        creators = _el(root, "creators")
        for creator in deposit.creators:
            creator_el = _el(creators, "creator")
            _el(creator_el, "creatorName", creator.name)
            if creator.affiliation:
                _el(creator_el, "affiliation", creator.affiliation)

        titles = _el(root, "titles")
        _el(titles, "title", deposit.title)
        for alternative in deposit.alternative_titles:
            _el(titles, "title", alternative, titleType="AlternativeTitle")

        _el(root, "publisher", self.publisher)
        _el(root, "publicationYear", self._publication_year(deposit))
        _el(root, "resourceType", resourceTypeGeneral="Dataset")

        if deposit.descriptions:
            descriptions = _el(root, "descriptions")
            _el(
                descriptions,
                "description",
                "; ".join(deposit.descriptions),
                descriptionType="Abstract",
            )

        return root

    def serialize(self, deposit: "Deposit") -> bytes:
        return etree.tostring(
            self.convert(deposit),
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=True,
        )

    def _identifier(self, deposit: "Deposit") -> tuple[str, str]:
        if deposit.doi:
            return "DOI", re.sub(r"^(doi:|https?://(dx\.)?doi\.org/)", "", deposit.doi, flags=re.I)
        if deposit.nbn:
            return "URN", deposit.nbn
        raise ValueError(f"deposit {deposit.id} has neither a DOI nor an NBN")

    def _publication_year(self, deposit: "Deposit") -> str:
        available = deposit.dataset.available
        if available and re.match(r"^\d{4}", available):
            return available[:4]
        return str(datetime.now(timezone.utc).year)
