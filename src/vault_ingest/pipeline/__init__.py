from .ingest_area import IngestArea
from .orchestrator import IngestFlow
from .task import ConvertToRdaBagTask, output_filename

__all__ = [
    "ConvertToRdaBagTask",
    "IngestArea",
    "IngestFlow",
    "output_filename",
]
