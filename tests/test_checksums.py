"""Tests for checksum calculation."""

import hashlib
import io
import shutil

import pytest

from vault_ingest.exceptions import ChecksumsNotReadyError
from vault_ingest.rdabag.checksums import REQUIRED_ALGORITHMS, ChecksumStream, ManifestAlgorithm


class TestManifestAlgorithm:
    """Tests for ManifestAlgorithm."""

    def test_required_algorithms(self):
        """SHA-1 and MD5 are required for every manifest."""
        assert REQUIRED_ALGORITHMS == (ManifestAlgorithm.SHA1, ManifestAlgorithm.MD5)

    def test_from_name(self):
        """Algorithms are looked up by their manifest name."""
        assert ManifestAlgorithm.from_name("SHA1") is ManifestAlgorithm.SHA1
        assert ManifestAlgorithm.from_name(" md5 ") is ManifestAlgorithm.MD5

    def test_from_name_unsupported(self):
        """Unknown names are refused."""
        with pytest.raises(ValueError, match="unsupported manifest algorithm"):
            ManifestAlgorithm.from_name("crc32")

    def test_hex_length(self):
        """Hex length matches the digest size."""
        assert ManifestAlgorithm.SHA1.hex_length == 40
        assert ManifestAlgorithm.MD5.hex_length == 32
        assert ManifestAlgorithm.SHA256.hex_length == 64


class TestChecksumStream:
    """Tests for ChecksumStream."""

    def test_digests_match_hashlib(self):
        """Digests equal those of hashlib over the same bytes."""
        content = b"some content" * 1000
        stream = ChecksumStream(io.BytesIO(content), REQUIRED_ALGORITHMS)

        assert stream.read() == content
        assert stream.checksums == {
            ManifestAlgorithm.SHA1: hashlib.sha1(content).hexdigest(),
            ManifestAlgorithm.MD5: hashlib.md5(content).hexdigest(),
        }

    def test_chunked_reads(self):
        """Reading in chunks gives the same digests once EOF is seen."""
        content = bytes(range(256)) * 100
        stream = ChecksumStream(io.BytesIO(content), [ManifestAlgorithm.SHA256])

        chunks = []
        while chunk := stream.read(1000):
            chunks.append(chunk)

        assert b"".join(chunks) == content
        assert stream.checksums[ManifestAlgorithm.SHA256] == hashlib.sha256(content).hexdigest()
        assert stream.bytes_read == len(content)

    def test_checksums_before_eof_raise(self):
        """Asking for digests before the end of the stream fails."""
        stream = ChecksumStream(io.BytesIO(b"abcdef"), REQUIRED_ALGORITHMS)
        stream.read(3)

        with pytest.raises(ChecksumsNotReadyError):
            stream.checksums

        assert stream.finished is False

    def test_exact_size_read_is_not_eof(self):
        """Reading exactly the content length does not yet signal EOF."""
        stream = ChecksumStream(io.BytesIO(b"abc"), REQUIRED_ALGORITHMS)
        stream.read(3)

        assert stream.finished is False
        assert stream.read(3) == b""
        assert stream.finished is True

    def test_copyfileobj(self):
        """Works as a source for shutil.copyfileobj."""
        content = b"x" * 100_000
        destination = io.BytesIO()

        with ChecksumStream(io.BytesIO(content), REQUIRED_ALGORITHMS) as stream:
            shutil.copyfileobj(stream, destination, 4096)

        assert destination.getvalue() == content
        assert stream.checksums[ManifestAlgorithm.MD5] == hashlib.md5(content).hexdigest()

    def test_empty_stream(self):
        """An empty stream has the digests of no bytes."""
        stream = ChecksumStream(io.BytesIO(b""), REQUIRED_ALGORITHMS)

        assert stream.drain()[ManifestAlgorithm.SHA1] == hashlib.sha1(b"").hexdigest()

    def test_no_algorithms(self):
        """With nothing to calculate the digest map is empty."""
        stream = ChecksumStream(io.BytesIO(b"abc"), [])

        assert stream.drain() == {}

    def test_readinto(self):
        """readinto fills the buffer and feeds the digests."""
        stream = ChecksumStream(io.BytesIO(b"abc"), [ManifestAlgorithm.MD5])
        buffer = bytearray(10)

        assert stream.readinto(buffer) == 3
        assert bytes(buffer[:3]) == b"abc"
        assert stream.readinto(buffer) == 0
        assert stream.checksums[ManifestAlgorithm.MD5] == hashlib.md5(b"abc").hexdigest()

    def test_close_closes_wrapped_stream(self):
        """Closing the wrapper closes the wrapped stream."""
        inner = io.BytesIO(b"abc")
        with ChecksumStream(inner, REQUIRED_ALGORITHMS):
            pass

        assert inner.closed
