from __future__ import annotations

import logging
from typing import BinaryIO, Iterator, Union

from dissect.eltorito.c_iso_9660 import DATA_START, SECTOR_SIZE, VolumeDescriptorType
from dissect.eltorito.catalog import BootCatalog
from dissect.eltorito.descriptors import (
    BootRecord,
    PrimaryVolumeDescriptor,
    VolumeDescriptorHeader,
    read_sector,
)

log = logging.getLogger(__name__)

VolumeDescriptor = Union[BootRecord, PrimaryVolumeDescriptor]


def iter_volume_descriptors(fh: BinaryIO, start: int = DATA_START, strict: bool = True) -> Iterator[VolumeDescriptor]:
    """Walk the volume descriptor set of a disc, starting at ``start``.

    Boot records and primary volume descriptors are yielded. Supplementary and partition
    descriptors are skipped. The walk stops at the set terminator without reading any
    further. Any parse error aborts the walk.
    """
    offset = start
    fh.seek(offset)

    while True:
        sector = read_sector(fh)
        header = VolumeDescriptorHeader.parse(sector)
        log.debug("Volume descriptor %s at offset %#x", header.type.name, offset)

        if header.type == VolumeDescriptorType.TERMINATOR:
            break

        if header.type == VolumeDescriptorType.BOOT_RECORD:
            yield BootRecord.parse(sector)
        elif header.type == VolumeDescriptorType.PRIMARY:
            yield PrimaryVolumeDescriptor.parse(sector, strict=strict)
        elif header.type == VolumeDescriptorType.SUPPLEMENTARY:
            log.debug("Skipping supplementary volume descriptor at offset %#x", offset)
        elif header.type == VolumeDescriptorType.PARTITION:
            log.warning("Volume partition descriptors are not supported, skipping offset %#x", offset)

        offset += SECTOR_SIZE


class ElTorito:
    """The volume descriptors and boot catalog of a disc.

    Args:
        fh: File-like object of the disc image.
        start: Offset of the volume descriptor set. Defaults to sector 16.
        strict: Passed on to :meth:`PrimaryVolumeDescriptor.parse`.
    """

    def __init__(self, fh: BinaryIO, start: int = DATA_START, strict: bool = True):
        self.fh = fh
        self.primary_volume: PrimaryVolumeDescriptor = None
        self.boot_record: BootRecord | None = None
        self._boot_catalog: BootCatalog | None = None

        for descriptor in iter_volume_descriptors(fh, start, strict):
            if isinstance(descriptor, PrimaryVolumeDescriptor):
                if self.primary_volume is not None:
                    log.warning("Multiple primary volume descriptors found, using the first one")
                    continue
                self.primary_volume = descriptor
            elif isinstance(descriptor, BootRecord):
                if self.boot_record is not None:
                    log.warning("Multiple boot records found, using the first one")
                    continue
                self.boot_record = descriptor

        if self.primary_volume is None:
            raise ValueError("No primary volume descriptor found")

    @property
    def name(self) -> str:
        return self.primary_volume.name

    @property
    def bootable(self) -> bool:
        return self.boot_record is not None

    @property
    def boot_catalog(self) -> BootCatalog | None:
        """The boot catalog the boot record points at, or None for a disc without boot record."""
        if self.boot_record is None:
            return None

        if self._boot_catalog is None:
            self._boot_catalog = BootCatalog.from_fh(self.fh, self.boot_record.catalog_sector)
        return self._boot_catalog
