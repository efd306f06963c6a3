"""Readers for the descriptive metadata documents inside a deposit bag.

Only the handful of dataset-level fields needed to build the RDA bag's
own metadata are extracted here: ``metadata/dataset.xml`` (DDM) and
``metadata/files.xml``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

logger = logging.getLogger(__name__)

DDM_NS = "http://schemas.dans.knaw.nl/dataset/ddm-v2/"
DC_NS = "http://purl.org/dc/elements/1.1/"
DCTERMS_NS = "http://purl.org/dc/terms/"
DAI_NS = "http://easy.dans.knaw.nl/schemas/dcx/dai/"
FILES_NS = "http://easy.dans.knaw.nl/schemas/bag/metadata/files/"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

NAMESPACES = {
    "ddm": DDM_NS,
    "dc": DC_NS,
    "dcterms": DCTERMS_NS,
    "dcx-dai": DAI_NS,
    "files": FILES_NS,
    "xsi": XSI_NS,
}

OPEN_ACCESS = "OPEN_ACCESS"
ANONYMOUS = "ANONYMOUS"


@dataclass
class Creator:
    """A creator of the dataset.

    Attributes:
        name: Display name
        affiliation: Organization the creator belongs to, if known
        dai: Digital Author Identifier or ORCID, if known
    """

    name: str
    affiliation: str | None = None
    dai: str | None = None


@dataclass
class DatasetMetadata:
    """Dataset-level fields read from ``dataset.xml``."""

    title: str
    alternative_titles: list[str] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)
    creators: list[Creator] = field(default_factory=list)
    access_rights: str | None = None
    available: str | None = None
    doi: str | None = None
    sources: list[str] = field(default_factory=list)


@dataclass
class FileMetadata:
    """Per-file fields read from ``files.xml``.

    Attributes:
        filepath: Path of the file in the bag, including ``data/``
        accessible_to_rights: Value of accessibleToRights, None if absent
        description: Description of the file, if any
        identifier: Persistent identifier of the file, if files.xml has one
    """

    filepath: str
    accessible_to_rights: str | None = None
    description: str | None = None
    identifier: str | None = None

    def is_restricted(self, dataset_access_rights: str | None) -> bool:
        """Decide whether access to the file is restricted.

        File-level rights win over dataset-level access rights; without
        either the file is considered open.
        """
        if self.accessible_to_rights is not None:
            return self.accessible_to_rights.strip() != ANONYMOUS
        if dataset_access_rights is not None:
            return dataset_access_rights.strip() != OPEN_ACCESS
        return False


def parse_xml(path: Path) -> etree._ElementTree:
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    return etree.parse(str(path), parser)


def _texts(root: etree._Element, xpath: str) -> list[str]:
    return [
        " ".join(el.text.split())
        for el in root.xpath(xpath, namespaces=NAMESPACES)
        if el.text and el.text.strip()
    ]


def _first(root: etree._Element, xpath: str) -> str | None:
    values = _texts(root, xpath)
    return values[0] if values else None


def _author_name(author: etree._Element) -> str:
    parts = [
        _first(author, "dcx-dai:titles"),
        _first(author, "dcx-dai:initials"),
        _first(author, "dcx-dai:insertions"),
        _first(author, "dcx-dai:surname"),
    ]
    return " ".join(p for p in parts if p)


def _creators(root: etree._Element) -> list[Creator]:
    creators = []
    profile = "/ddm:DDM/ddm:profile"

    for author in root.xpath(f"{profile}/dcx-dai:creatorDetails/dcx-dai:author", namespaces=NAMESPACES):
        name = _author_name(author)
        if not name:
            continue
        creators.append(
            Creator(
                name=name,
                affiliation=_first(author, "dcx-dai:organization/dcx-dai:name"),
                dai=_first(author, "dcx-dai:DAI") or _first(author, "dcx-dai:ORCID"),
            )
        )

    for organization in root.xpath(
        f"{profile}/dcx-dai:creatorDetails/dcx-dai:organization", namespaces=NAMESPACES
    ):
        name = _first(organization, "dcx-dai:name")
        if name:
            creators.append(Creator(name=name))

    for name in _texts(root, f"{profile}/dc:creator"):
        creators.append(Creator(name=name))

    return creators


def read_dataset_metadata(path: Path) -> DatasetMetadata:
    """Read the dataset fields from a DDM document.

    Raises:
        ValueError: If the document has no title
        lxml.etree.XMLSyntaxError: If the document is not well-formed
    """
    root = parse_xml(path).getroot()

    title = _first(root, "/ddm:DDM/ddm:profile/dc:title")
    if title is None:
        raise ValueError(f"{path.name} has no dataset title")

    return DatasetMetadata(
        title=title,
        alternative_titles=_texts(root, "/ddm:DDM/ddm:dcmiMetadata/dcterms:alternative"),
        descriptions=(
            _texts(root, "/ddm:DDM/ddm:profile/dc:description")
            + _texts(root, "/ddm:DDM/ddm:dcmiMetadata/dcterms:description")
        ),
        creators=_creators(root),
        access_rights=_first(root, "/ddm:DDM/ddm:profile/ddm:accessRights"),
        available=_first(root, "/ddm:DDM/ddm:profile/ddm:available"),
        doi=_first(
            root,
            "/ddm:DDM/ddm:dcmiMetadata/dcterms:identifier[@xsi:type='id-type:DOI']",
        ),
        sources=_texts(root, "/ddm:DDM/ddm:dcmiMetadata/dcterms:source"),
    )


def read_files_metadata(path: Path) -> list[FileMetadata]:
    """Read the per-file entries of a ``files.xml`` document, in order."""
    root = parse_xml(path).getroot()
    result = []

    for file_el in root.findall(f"{{{FILES_NS}}}file"):
        filepath = file_el.get("filepath")
        if not filepath:
            logger.warning(f"Skipping file element without filepath in {path}")
            continue

        rights_el = file_el.find(f"{{{FILES_NS}}}accessibleToRights")
        accessible_to_rights = None
        if rights_el is not None:
            accessible_to_rights = (rights_el.text or "").strip()

        description_el = file_el.find(f"{{{DCTERMS_NS}}}description")
        description = None
        if description_el is not None and description_el.text:
            description = description_el.text.strip()

        identifier_el = file_el.find(f"{{{DCTERMS_NS}}}identifier")
        identifier = None
        if identifier_el is not None and identifier_el.text and identifier_el.text.strip():
            identifier = identifier_el.text.strip()

        result.append(
            FileMetadata(
                filepath=filepath,
                accessible_to_rights=accessible_to_rights,
                description=description,
                identifier=identifier,
            )
        )

    return result
