"""Pytest fixtures for vault ingest tests."""

import hashlib
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from schemas.catalog import RegisteredDeposit
from vault_ingest.clients.bag_validator import BagValidator
from vault_ingest.clients.vault_catalog import VaultCatalogClient
from vault_ingest.deposit.loader import DepositLoader
from vault_ingest.deposit.outbox import DepositOutbox
from vault_ingest.identifiers import IdMinter

DEPOSIT_ID = "0b9bb5ee-3187-4387-bb39-2c09536c79f7"

DATASET_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ddm:DDM xmlns:ddm="http://schemas.dans.knaw.nl/dataset/ddm-v2/"
         xmlns:dc="http://purl.org/dc/elements/1.1/"
         xmlns:dcterms="http://purl.org/dc/terms/"
         xmlns:dcx-dai="http://easy.dans.knaw.nl/schemas/dcx/dai/"
         xmlns:id-type="http://easy.dans.knaw.nl/schemas/vocab/identifier-type/"
         xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
    <ddm:profile>
        <dc:title>A bag with some files</dc:title>
        <dc:description>Contains three files.</dc:description>
        <dcx-dai:creatorDetails>
            <dcx-dai:author>
                <dcx-dai:titles>Prof.</dcx-dai:titles>
                <dcx-dai:initials>A.B.</dcx-dai:initials>
                <dcx-dai:insertions>van</dcx-dai:insertions>
                <dcx-dai:surname>Dijk</dcx-dai:surname>
                <dcx-dai:organization>
                    <dcx-dai:name xml:lang="en">Utrecht University</dcx-dai:name>
                </dcx-dai:organization>
            </dcx-dai:author>
        </dcx-dai:creatorDetails>
        <ddm:created>2023-01-01</ddm:created>
        <ddm:available>2023-02-01</ddm:available>
        <ddm:audience>D24000</ddm:audience>
        <ddm:accessRights>OPEN_ACCESS</ddm:accessRights>
    </ddm:profile>
    <ddm:dcmiMetadata>
        <dcterms:alternative>Some files in a bag</dcterms:alternative>
        <dcterms:description>Collected in 2022.</dcterms:description>
        <dcterms:identifier xsi:type="id-type:DOI">10.17026/dans-12345</dcterms:identifier>
        <dcterms:source>https://example.org/source</dcterms:source>
    </ddm:dcmiMetadata>
</ddm:DDM>
"""

FILES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<files xmlns="http://easy.dans.knaw.nl/schemas/bag/metadata/files/"
       xmlns:dcterms="http://purl.org/dc/terms/">
    <file filepath="data/README.txt">
        <accessibleToRights>ANONYMOUS</accessibleToRights>
    </file>
    <file filepath="data/a:b/c?d.txt"/>
    <file filepath="data/secret/report.csv">
        <accessibleToRights>RESTRICTED_REQUEST</accessibleToRights>
        <dcterms:description>Interview results</dcterms:description>
    </file>
</files>
"""

PAYLOAD = {
    "data/README.txt": b"Read me first\n",
    "data/a:b/c?d.txt": b"odd name\n",
    "data/secret/report.csv": b"id,answer\n1,yes\n",
}


def sha1(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


def md5(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


def make_deposit(
    parent: Path,
    deposit_id: str = DEPOSIT_ID,
    bag_info: str = "Created: 2023-02-07T10:00:00+01:00\n",
    properties: dict | None = None,
    files_xml: str | None = FILES_XML,
    dataset_xml: str = DATASET_XML,
    payload: dict[str, bytes] | None = None,
) -> Path:
    """Write a deposit directory with a single bag into *parent*.

    The bag carries a ``manifest-sha1.txt`` for its payload and a
    ``deposit.json`` next to it, as deposits arrive in the inbox.
    """
    payload = PAYLOAD if payload is None else payload

    deposit_dir = parent / deposit_id
    bag_dir = deposit_dir / "bag"
    (bag_dir / "metadata").mkdir(parents=True)

    (bag_dir / "bagit.txt").write_text("BagIt-Version: 0.97\nTag-File-Character-Encoding: UTF-8\n")
    (bag_dir / "bag-info.txt").write_text(bag_info)
    (bag_dir / "metadata" / "dataset.xml").write_text(dataset_xml)
    if files_xml is not None:
        (bag_dir / "metadata" / "files.xml").write_text(files_xml)

    for filepath, content in payload.items():
        target = bag_dir / filepath
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    (bag_dir / "manifest-sha1.txt").write_text(
        "".join(f"{sha1(content)}  {filepath}\n" for filepath, content in payload.items())
    )

    props = {"id": deposit_id, "state": "PENDING", "depositor_id": "user001"}
    props.update(properties or {})
    (deposit_dir / "deposit.json").write_text(json.dumps(props, indent=2))

    return deposit_dir


def read_properties(deposit_dir: Path) -> dict:
    return json.loads((deposit_dir / "deposit.json").read_text())


@pytest.fixture
def inbox(tmp_path):
    path = tmp_path / "inbox"
    path.mkdir()
    return path


@pytest.fixture
def outbox(tmp_path):
    box = DepositOutbox(tmp_path / "outbox")
    box.create_buckets()
    return box


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "rda-bags"
    path.mkdir()
    return path


@pytest.fixture
def deposit_dir(inbox):
    """A valid new deposit in the inbox."""
    return make_deposit(inbox)


@pytest.fixture
def loader():
    return DepositLoader()


@pytest.fixture
def mock_validator():
    """Bag validator that finds every bag compliant."""
    return MagicMock(spec=BagValidator)


@pytest.fixture
def mock_catalog():
    """Vault catalog that knows no datasets and assigns version 1."""
    catalog = MagicMock(spec=VaultCatalogClient)
    catalog.find_deposit.return_value = None
    catalog.register_deposit.side_effect = lambda deposit: RegisteredDeposit(
        nbn=deposit.nbn, object_version=1
    )
    return catalog


@pytest.fixture
def id_minter():
    return IdMinter()
