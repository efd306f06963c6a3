"""Inbox watching and dispatch of deposits to conversion tasks."""

import logging
import signal
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from time import sleep
from typing import Callable

from schemas.deposit import State
from vault_ingest.deposit.loader import DepositLoader
from vault_ingest.deposit.outbox import STATE_DIRECTORIES, DepositOutbox
from vault_ingest.exceptions import OutboxError

from .task import ConvertToRdaBagTask

logger = logging.getLogger(__name__)

TaskFactory = Callable[[Path], ConvertToRdaBagTask]


class IngestArea:
    """Hand each deposit directory in the inbox to exactly one task.

    A directory is claimed before its task is submitted and released when
    the task has finished, by which time it has left the inbox. Deposits
    that could not be moved to the outbox stay claimed so they are not
    picked up again by the same process.

    Attributes:
        inbox: Directory watched for deposit directories
        outbox: Outbox receiving finished deposits
        poll_interval: Seconds between inbox scans when idle
        max_workers: Number of tasks running concurrently
        results: Terminal state of every deposit processed so far
        stuck: Deposits left in the inbox after a failed move
        shutdown_requested: Flag for graceful shutdown
    """

    def __init__(
        self,
        inbox: Path,
        outbox: DepositOutbox,
        task_factory: TaskFactory,
        deposit_loader: DepositLoader,
        max_workers: int = 2,
        poll_interval: float = 5,
    ):
        self.inbox = inbox
        self.outbox = outbox
        self.task_factory = task_factory
        self.deposit_loader = deposit_loader
        self.max_workers = max_workers
        self.poll_interval = poll_interval
        self.shutdown_requested = False

        self.results: dict[str, State] = {}
        self.stuck: set[Path] = set()
        self._in_flight: set[Path] = set()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"IngestArea('{self.inbox}')"

    def pending_deposits(self) -> list[Path]:
        """Deposit directories in the inbox not yet claimed by a task."""
        with self._lock:
            claimed = self._in_flight | self.stuck
        return sorted(
            p for p in self.inbox.iterdir()
            if p.is_dir() and not p.name.startswith(".") and p not in claimed
        )

    def claim(self, path: Path) -> bool:
        with self._lock:
            if path in self._in_flight or path in self.stuck:
                return False
            self._in_flight.add(path)
            return True

    def release(self, path: Path) -> None:
        with self._lock:
            self._in_flight.discard(path)

    def in_flight(self) -> list[Path]:
        with self._lock:
            return sorted(self._in_flight)

    def recover_finished_deposits(self) -> int:
        """Move deposits whose state is already terminal to the outbox.

        A deposit can be left in the inbox with a terminal state if the
        process stopped between recording the state and moving the
        directory. Such deposits are not converted again.

        Returns:
            Number of deposits moved
        """
        recovered = 0
        for path in self.pending_deposits():
            try:
                properties = self.deposit_loader.load_properties(path)
            except Exception as e:
                logger.debug(f"Not recovering {path.name}, properties unreadable: {e}")
                continue

            if not properties.state.is_terminal:
                continue

            logger.warning(f"Recovering finished deposit {path.name} with state {properties.state.value}")
            try:
                self.outbox.move(path, properties.state)
            except OutboxError as e:
                logger.error(f"Could not recover deposit {path.name}: {e}")
                with self._lock:
                    self.stuck.add(path)
                continue

            self.results[path.name] = properties.state
            recovered += 1
        return recovered

    def process(self, path: Path) -> State | None:
        """Run the conversion task for one claimed deposit directory."""
        task = self.task_factory(path)
        try:
            state = task.run()
            self.results[path.name] = state
            logger.info(f"Deposit {path.name} finished with state {state.value}")
            return state
        except OutboxError as e:
            logger.critical(f"Deposit {path.name} needs operator attention: {e}")
            with self._lock:
                self.stuck.add(path)
            return None
        except Exception as e:
            logger.critical(f"Unexpected error in task for deposit {path.name}: {e}", exc_info=e)
            with self._lock:
                self.stuck.add(path)
            return None
        finally:
            self.release(path)

    def submit(self, executor: ThreadPoolExecutor, path: Path) -> Future | None:
        if not self.claim(path):
            return None
        logger.debug(f"Submitting deposit {path.name}")
        return executor.submit(self.process, path)

    def run_once(self) -> dict[str, State]:
        """Process every deposit currently in the inbox and wait for them.

        Returns:
            Terminal state per deposit name, for the deposits of this run
        """
        self.outbox.create_buckets()
        self.recover_finished_deposits()

        futures: dict[Future, Path] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for path in self.pending_deposits():
                future = self.submit(executor, path)
                if future is not None:
                    futures[future] = path
            wait(futures)

        return {
            path.name: future.result()
            for future, path in futures.items()
            if future.result() is not None
        }

    def run_forever(self) -> None:
        """Watch the inbox until a shutdown signal is received.

        On shutdown no new deposits are started; running tasks are allowed
        to finish.
        """
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

        self.outbox.create_buckets()
        self.recover_finished_deposits()
        logger.info(f"Watching {self.inbox} with {self.max_workers} workers")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            while not self.shutdown_requested:
                submitted = 0
                for path in self.pending_deposits():
                    if self.shutdown_requested:
                        break
                    if self.submit(executor, path) is not None:
                        submitted += 1
                if not submitted:
                    sleep(self.poll_interval)

        logger.info("Ingest area: exiting gracefully")

    def snapshot(self) -> dict[str, int]:
        """Count deposits in the inbox and in each outbox bucket."""
        counts = {
            "inbox": sum(1 for p in self.inbox.iterdir() if p.is_dir()) if self.inbox.exists() else 0,
            "in_progress": len(self.in_flight()),
        }
        for state, name in STATE_DIRECTORIES.items():
            counts[name] = len(self.outbox.list_deposits(state))
        return counts

    def _handle_shutdown(self, signum, frame) -> None:
        logger.info("Ingest area: shutdown signal received, will exit after running tasks")
        self.shutdown_requested = True
