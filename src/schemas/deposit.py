"""Deposit properties schemas.

Every deposit directory carries a ``deposit.json`` file with its
processing state. The file is rewritten on every state change, so that the
state and the reason for it travel with the directory into the outbox.

Directory structure:
    inbox/
    └── {deposit_id}/
        ├── deposit.json          # DepositProperties
        └── {bag_name}/
            ├── bagit.txt
            ├── bag-info.txt
            ├── manifest-sha1.txt
            ├── metadata/
            │   ├── dataset.xml
            │   └── files.xml
            └── data/
                └── ...
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class State(str, Enum):
    """Processing state of a deposit.

    PENDING is the only non-terminal state. ACCEPTED means an RDA bag was
    produced; REJECTED means the deposit content is at fault; FAILED means
    an internal or system error occurred.
    """

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not State.PENDING


class LogEntry(BaseModel):
    """An entry in the deposit's processing history."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: str
    level: str | None = None
    stage: str | None = None


class DepositProperties(BaseModel):
    """Persisted properties of a deposit.

    Attributes:
        id: Deposit identifier, by default the deposit directory name
        state: Current processing state
        state_description: Human-readable reason for the current state
        depositor_id: Account that submitted the deposit
        identifier_doi: DOI of the dataset, if already known
        identifier_urn: Archival identifier (URN:NBN) once assigned
        sword_token: Token of the dataset this deposit is a version of
        bag_id: Identifier of the deposit's bag
        object_version: Version number assigned by the vault catalog
        log: Processing history
    """

    id: str
    state: State = State.PENDING
    state_description: str | None = None
    depositor_id: str | None = None
    identifier_doi: str | None = None
    identifier_urn: str | None = None
    sword_token: str | None = None
    bag_id: str | None = None
    object_version: int | None = None
    log: list[LogEntry] = []

    model_config = {"extra": "allow"}
