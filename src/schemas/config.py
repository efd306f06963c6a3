"""Ingest flow configuration schema.

Loaded from a JSON file, e.g.::

    {
      "inbox": "/var/opt/dans.knaw.nl/tmp/auto-ingest/inbox",
      "outbox": "/var/opt/dans.knaw.nl/tmp/auto-ingest/outbox",
      "rda_bag_output_dir": "/var/opt/dans.knaw.nl/tmp/rda-bags",
      "validate_dans_bag": {"base_url": "http://localhost:20330"},
      "vault_catalog": {"base_url": "http://localhost:20305"},
      "task_queue": {"max_workers": 4, "poll_interval": 5}
    }
"""

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class TaskQueueConfig(BaseModel):
    """Worker pool settings.

    Attributes:
        max_workers: Number of deposits converted concurrently
        poll_interval: Seconds between inbox scans when idle
    """

    max_workers: int = Field(default=2, ge=1)
    poll_interval: float = Field(default=5, gt=0)


class IngestFlowConfig(BaseModel):
    """Configuration of the ingest flow.

    Attributes:
        inbox: Directory watched for deposit directories
        outbox: Directory holding processed/rejected/failed buckets
        rda_bag_output_dir: Directory receiving the RDA bags
        validate_dans_bag: Client config for the bag validator service
        vault_catalog: Client config for the vault catalog service
        task_queue: Worker pool settings
        data_suppliers: Depositor id to data supplier name
        update_detection: How to tell a new version of an existing dataset
        output_filename_prefix: Prefix of every RDA bag filename
        publisher: Publisher name written to DataCite metadata
    """

    inbox: Path
    outbox: Path
    rda_bag_output_dir: Path
    validate_dans_bag: dict[str, Any]
    vault_catalog: dict[str, Any]
    task_queue: TaskQueueConfig = Field(default_factory=TaskQueueConfig)
    data_suppliers: dict[str, str] = {}
    update_detection: Literal["never", "is-version-of"] = "never"
    output_filename_prefix: str = "vaas-"
    publisher: str = "DANS"

    @classmethod
    def from_file(cls, path: Path) -> "IngestFlowConfig":
        """Load and validate a JSON configuration file."""
        data = json.loads(path.read_text())
        return cls.model_validate(data)
