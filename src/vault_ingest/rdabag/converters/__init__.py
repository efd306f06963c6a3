"""Converters producing the RDA bag's derived metadata documents."""

from .datacite import DataciteConverter
from .oai_ore import OaiOreConverter, OaiOreSerializer, OreResourceMap
from .original_metadata import OriginalMetadataSerializer
from .pid_mapping import PidMappingConverter

__all__ = [
    "DataciteConverter",
    "OaiOreConverter",
    "OaiOreSerializer",
    "OreResourceMap",
    "OriginalMetadataSerializer",
    "PidMappingConverter",
]
