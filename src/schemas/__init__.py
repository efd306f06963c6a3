"""Schema definitions for the vault ingest flow."""

from .catalog import CatalogDeposit, DepositRegistration, RegisteredDeposit
from .config import IngestFlowConfig, TaskQueueConfig
from .deposit import DepositProperties, LogEntry, State
from .validation import RuleViolation, ValidateCommand, ValidateResult

__all__ = [
    "CatalogDeposit",
    "DepositProperties",
    "DepositRegistration",
    "IngestFlowConfig",
    "LogEntry",
    "RegisteredDeposit",
    "RuleViolation",
    "State",
    "TaskQueueConfig",
    "ValidateCommand",
    "ValidateResult",
]
