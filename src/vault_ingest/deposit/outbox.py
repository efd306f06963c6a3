"""Outbox for deposits that have reached a terminal state."""

import logging
import shutil
from pathlib import Path

from schemas.deposit import State
from vault_ingest.exceptions import OutboxError

from .deposit import Deposit

logger = logging.getLogger(__name__)

STATE_DIRECTORIES = {
    State.ACCEPTED: "processed",
    State.REJECTED: "rejected",
    State.FAILED: "failed",
}


class DepositOutbox:
    """Move deposit directories into the outbox bucket matching their state.

    Directory structure:
        outbox/
        ├── processed/    # ACCEPTED
        ├── rejected/     # REJECTED
        └── failed/       # FAILED

    Attributes:
        root: Outbox directory
    """

    def __init__(self, root: Path):
        self.root = root

    def __repr__(self) -> str:
        return f"DepositOutbox('{self.root}')"

    def bucket(self, state: State) -> Path:
        """Directory for deposits in *state*.

        Raises:
            ValueError: If the state is not terminal
        """
        if state not in STATE_DIRECTORIES:
            raise ValueError(f"no outbox for non-terminal state {state.value}")
        return self.root / STATE_DIRECTORIES[state]

    def create_buckets(self) -> None:
        for name in STATE_DIRECTORIES.values():
            (self.root / name).mkdir(parents=True, exist_ok=True)

    def move(self, path: Path, state: State) -> Path:
        """Move a deposit directory into the bucket for *state*.

        Args:
            path: Deposit directory in the inbox
            state: Terminal state of the deposit

        Returns:
            New location of the deposit directory

        Raises:
            OutboxError: If the target exists already or the move fails
        """
        bucket = self.bucket(state)
        target = bucket / path.name

        if target.exists():
            raise OutboxError(f"Cannot move {path.name} to outbox: {target} already exists")

        try:
            bucket.mkdir(parents=True, exist_ok=True)
            shutil.move(str(path), str(target))
        except OSError as e:
            raise OutboxError(f"Cannot move {path} to {bucket}: {e}") from e

        logger.info(f"Moved deposit {path.name} to {bucket}")
        return target

    def move_accepted(self, path: Path) -> Path:
        return self.move(path, State.ACCEPTED)

    def move_rejected(self, path: Path, reason: str) -> Path:
        logger.info(f"Rejecting deposit {path.name}: {reason}")
        return self.move(path, State.REJECTED)

    def move_failed(self, path: Path, reason: str) -> Path:
        logger.info(f"Failing deposit {path.name}: {reason}")
        return self.move(path, State.FAILED)

    def move_deposit(self, deposit: Deposit) -> Path:
        """Move a loaded deposit according to its own state."""
        return self.move(deposit.path, deposit.state)

    def list_deposits(self, state: State) -> list[Path]:
        bucket = self.bucket(state)
        if not bucket.is_dir():
            return []
        return sorted(p for p in bucket.iterdir() if p.is_dir())
