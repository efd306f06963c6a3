"""RDA bag construction: checksums, manifests, output containers and the writer."""

from .checksums import REQUIRED_ALGORITHMS, ChecksumStream, ManifestAlgorithm
from .manifests import ManifestAccumulator
from .output import BagOutputWriter, DirectoryBagOutputWriter, NullBagOutputWriter, ZipBagOutputWriter

__all__ = [
    "BagOutputWriter",
    "ChecksumStream",
    "DirectoryBagOutputWriter",
    "ManifestAccumulator",
    "ManifestAlgorithm",
    "NullBagOutputWriter",
    "REQUIRED_ALGORITHMS",
    "ZipBagOutputWriter",
]
