"""Bundling of the deposit's original metadata for provenance."""

import io
import logging
import shutil
import zipfile
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault_ingest.deposit.deposit import Deposit

logger = logging.getLogger(__name__)

ORIGINAL_METADATA_FILES = (
    PurePosixPath("metadata/dataset.xml"),
    PurePosixPath("metadata/files.xml"),
)


class OriginalMetadataSerializer:
    """Zip the deposit's original descriptive metadata.

    The resulting ``original-metadata.zip`` preserves the documents the RDA
    bag's own metadata was derived from.
    """

    def __init__(self, paths: tuple[PurePosixPath, ...] = ORIGINAL_METADATA_FILES):
        self.paths = paths

    def serialize(self, deposit: "Deposit") -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in self.paths:
                if path not in deposit.metadata_files:
                    logger.debug(f"Deposit {deposit.id} has no {path}; not bundling it")
                    continue
                with deposit.open_metadata_file(path) as source, zf.open(str(path), "w") as target:
                    shutil.copyfileobj(source, target)
        return buffer.getvalue()
