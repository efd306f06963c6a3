"""Minting and handling of archival identifiers."""

import re
import threading
import uuid

URN_NBN_PREFIX = "urn:nbn:nl:ui:13-"


class IdMinter:
    """Mint URN:NBN identifiers for new datasets.

    Identifiers are based on random UUIDs; the minter also remembers what it
    handed out so that a value is never returned twice in one process.
    """

    def __init__(self, prefix: str = URN_NBN_PREFIX):
        self.prefix = prefix
        self._minted: set[str] = set()
        self._lock = threading.Lock()

    def mint_urn_nbn(self) -> str:
        with self._lock:
            while True:
                nbn = f"{self.prefix}{uuid.uuid4()}"
                if nbn not in self._minted:
                    self._minted.add(nbn)
                    return nbn


def strip_namespace(identifier: str) -> str:
    """Lowercase an identifier and drop everything up to its last colon.

    >>> strip_namespace("urn:uuid:0B9BB5EE-3187-4387-BB39-2C09536C79F7")
    '0b9bb5ee-3187-4387-bb39-2c09536c79f7'
    """
    return re.sub(r".*:", "", identifier.lower())
