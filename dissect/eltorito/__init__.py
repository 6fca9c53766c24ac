import logging
import os

from dissect.eltorito.c_iso_9660 import (
    DATA_START,
    SECTOR_SIZE,
    BootIndicator,
    BootMedia,
    HeaderIndicator,
    Platform,
    VolumeDescriptorType,
)
from dissect.eltorito.catalog import (
    BootCatalog,
    BootSection,
    InitialEntry,
    SectionEntry,
    SectionHeaderEntry,
    SelectionCriteria,
    SelectionCriteriaType,
    ValidationEntry,
)
from dissect.eltorito.descriptors import (
    BootRecord,
    PrimaryVolumeDescriptor,
    VolumeDescriptorHeader,
)
from dissect.eltorito.exceptions import Error
from dissect.eltorito.fields import A_CHARSET, D_CHARSET, DecDateTime, FixedString
from dissect.eltorito.volume import ElTorito, iter_volume_descriptors

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_ELTORITO", "CRITICAL"))

__all__ = [
    "A_CHARSET",
    "BootCatalog",
    "BootIndicator",
    "BootMedia",
    "BootRecord",
    "BootSection",
    "D_CHARSET",
    "DATA_START",
    "DecDateTime",
    "ElTorito",
    "Error",
    "FixedString",
    "HeaderIndicator",
    "InitialEntry",
    "Platform",
    "PrimaryVolumeDescriptor",
    "SECTOR_SIZE",
    "SectionEntry",
    "SectionHeaderEntry",
    "SelectionCriteria",
    "SelectionCriteriaType",
    "ValidationEntry",
    "VolumeDescriptorHeader",
    "VolumeDescriptorType",
    "iter_volume_descriptors",
]
