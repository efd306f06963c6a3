"""Exceptions raised by the ingest flow.

The conversion task classifies every error it catches into one of two
terminal deposit states: ``InvalidDepositError`` means the deposit itself
is at fault (REJECTED); anything else is treated as a system failure
(FAILED).
"""


class IngestError(Exception):
    """Base exception for all ingest flow errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class InvalidDepositError(IngestError):
    """Raised when a deposit's content or provenance is not acceptable."""

    def __init__(self, message: str, violations: list[str] | None = None, *args, **kwargs):
        self.violations = violations or []
        super().__init__(message, *args, **kwargs)


class DepositLoadError(IngestError):
    """Raised when a deposit directory cannot be read or parsed."""

    pass


class ChecksumsNotReadyError(IngestError):
    """Raised when checksums are requested before the stream was drained."""

    pass


class IncompleteManifestError(IngestError):
    """Raised when a bag item lacks a checksum for a required algorithm."""

    pass


class BagExistsError(IngestError):
    """Raised when the output bag already exists at the target path."""

    pass


class OutboxError(IngestError):
    """Raised when a deposit directory cannot be moved into the outbox."""

    pass
