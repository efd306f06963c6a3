"""Tests for manifest bookkeeping."""

from pathlib import PurePosixPath

import pytest

from vault_ingest.exceptions import IncompleteManifestError
from vault_ingest.rdabag.checksums import ManifestAlgorithm
from vault_ingest.rdabag.manifests import (
    ManifestAccumulator,
    is_payload_path,
    is_tag_path,
    manifest_filename,
    tag_manifest_filename,
)

SHA1 = ManifestAlgorithm.SHA1
MD5 = ManifestAlgorithm.MD5


def _filled() -> ManifestAccumulator:
    acc = ManifestAccumulator()
    acc.record("data/a.txt", {SHA1: "a" * 40, MD5: "A" * 32})
    acc.record("data/sub/b.txt", {SHA1: "b" * 40, MD5: "b" * 32})
    acc.record("metadata/datacite.xml", {SHA1: "c" * 40, MD5: "c" * 32})
    acc.record("manifest-sha1.txt", {SHA1: "d" * 40, MD5: "d" * 32})
    return acc


class TestPathClassification:
    """Tests for payload and tag path predicates."""

    def test_payload_path(self):
        assert is_payload_path(PurePosixPath("data/a.txt"))
        assert not is_payload_path(PurePosixPath("database.txt"))
        assert not is_payload_path(PurePosixPath("metadata/data/x"))

    def test_tag_path_excludes_payload_and_tag_manifests(self):
        assert is_tag_path(PurePosixPath("bag-info.txt"))
        assert is_tag_path(PurePosixPath("manifest-md5.txt"))
        assert not is_tag_path(PurePosixPath("data/a.txt"))
        assert not is_tag_path(PurePosixPath("tagmanifest-md5.txt"))

    def test_filenames(self):
        assert manifest_filename(SHA1) == "manifest-sha1.txt"
        assert tag_manifest_filename(MD5) == "tagmanifest-md5.txt"


class TestManifestAccumulator:
    """Tests for ManifestAccumulator."""

    def test_record_keeps_order(self):
        """Paths are listed in the order they were recorded."""
        acc = _filled()

        assert [str(p) for p in acc.paths] == [
            "data/a.txt",
            "data/sub/b.txt",
            "metadata/datacite.xml",
            "manifest-sha1.txt",
        ]
        assert len(acc) == 4
        assert "data/a.txt" in acc

    def test_record_lowercases(self):
        """Checksums are stored in lowercase."""
        acc = _filled()

        assert acc.get("data/a.txt")[MD5] == "a" * 32

    def test_record_twice_refused(self):
        """An item cannot be recorded twice."""
        acc = _filled()

        with pytest.raises(ValueError, match="recorded twice"):
            acc.record("data/a.txt", {SHA1: "e" * 40, MD5: "e" * 32})

    def test_payload_manifest(self):
        """The payload manifest lists only data/ items with two spaces."""
        acc = _filled()

        assert acc.payload_manifest(SHA1) == (
            f"{'a' * 40}  data/a.txt\n"
            f"{'b' * 40}  data/sub/b.txt\n"
        )

    def test_tag_manifest(self):
        """The tag manifest lists everything outside data/."""
        acc = _filled()

        lines = acc.tag_manifest(MD5).splitlines()

        assert lines == [
            f"{'c' * 32}  metadata/datacite.xml",
            f"{'d' * 32}  manifest-sha1.txt",
        ]

    def test_payload_manifest_missing_checksum(self):
        """A payload item without the requested checksum is an error."""
        acc = ManifestAccumulator()
        acc.record("data/a.txt", {SHA1: "a" * 40})

        with pytest.raises(IncompleteManifestError, match="md5"):
            acc.payload_manifest(MD5)

    def test_tag_manifest_requires_complete_entries(self):
        """Every item, payload included, must be complete for the tag manifest."""
        acc = ManifestAccumulator()
        acc.record("data/a.txt", {SHA1: "a" * 40})
        acc.record("bagit.txt", {SHA1: "b" * 40, MD5: "b" * 32})

        with pytest.raises(IncompleteManifestError, match="data/a.txt"):
            acc.tag_manifest(SHA1)

    def test_missing(self):
        acc = ManifestAccumulator()
        acc.record("data/a.txt", {SHA1: "a" * 40})

        assert acc.missing() == {PurePosixPath("data/a.txt"): [MD5]}
