from io import BytesIO
from typing import Callable

import pytest

from dissect.eltorito.c_iso_9660 import (
    SECTOR_SIZE,
    BootIndicator,
    BootMedia,
    HeaderIndicator,
    Platform,
)
from dissect.eltorito.catalog import (
    BootCatalog,
    BootSection,
    InitialEntry,
    SectionEntry,
    SectionHeaderEntry,
    ValidationEntry,
)
from dissect.eltorito.descriptors import (
    BootRecord,
    PrimaryVolumeDescriptor,
    terminator_sector,
)
from dissect.eltorito.fields import A_CHARSET, D_CHARSET, DecDateTime, FixedString

BOOT_IMAGE = (b"\xfa\xeb\xfe" + b"\x90" * 509) * 4


class CountingBytesIO(BytesIO):
    def __init__(self, data: bytes):
        super().__init__(data)
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        return super().read(size)


def build_image(*sectors: bytes) -> CountingBytesIO:
    """Build an image with an empty system area followed by ``sectors``."""
    for sector in sectors:
        assert len(sector) == SECTOR_SIZE
    return CountingBytesIO(bytes(SECTOR_SIZE * 16) + b"".join(sectors))


@pytest.fixture
def image_from_sectors() -> Callable[..., CountingBytesIO]:
    return build_image


@pytest.fixture
def primary_volume() -> PrimaryVolumeDescriptor:
    created = DecDateTime(2024, 3, 9, 12, 25, 25, 0, 4)
    return PrimaryVolumeDescriptor(
        system_id=FixedString.from_str("LINUX", 32, A_CHARSET),
        volume_id=FixedString.from_str("ELTORITO", 32, D_CHARSET),
        volume_space_size=21,
        path_table_size=10,
        type_l_path_table=22,
        type_m_path_table=23,
        publisher_id=FixedString.from_str("HACKSY", 127, A_CHARSET),
        application_id=FixedString.from_str("DISSECT.ELTORITO", 127, A_CHARSET),
        creation_date=created,
        modification_date=created,
        application_used=bytes(range(256)) * 2,
    )


@pytest.fixture
def boot_catalog() -> BootCatalog:
    return BootCatalog(
        validation=ValidationEntry(header_id=1, platform_id=Platform.X86),
        initial=InitialEntry(
            boot_indicator=BootIndicator.BOOTABLE,
            boot_media=BootMedia.NO_EMULATION,
            load_segment=0x7C0,
            sector_count=4,
            virtual_disk_addr=20,
        ),
        sections=(
            BootSection(
                SectionHeaderEntry(HeaderIndicator.FINAL, Platform.UEFI, 1),
                (
                    SectionEntry(
                        boot_indicator=BootIndicator.BOOTABLE,
                        boot_media=BootMedia.NO_EMULATION,
                        sector_count=4,
                        virtual_disk_addr=20,
                    ),
                ),
            ),
        ),
    )


@pytest.fixture
def bootable_iso(primary_volume: PrimaryVolumeDescriptor, boot_catalog: BootCatalog) -> CountingBytesIO:
    # 16: PVD, 17: boot record, 18: terminator, 19: boot catalog, 20: boot image
    return build_image(
        primary_volume.dumps(),
        BootRecord.el_torito(19).dumps(),
        terminator_sector(),
        boot_catalog.dumps(),
        BOOT_IMAGE,
    )
