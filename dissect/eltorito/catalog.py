from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import BinaryIO, Iterator

from dissect.util.stream import RangeStream

from dissect.eltorito.c_iso_9660 import (
    ATAPI_DRIVER_BIT,
    CONTINUATION_ENTRY_BIT,
    ENTRY_SIZE,
    EXTENSION_INDICATOR,
    MEDIA_TYPE_MASK,
    SCSI_DRIVER_BIT,
    SECTOR_SIZE,
    VALIDATION_KEY,
    VIRTUAL_SECTOR_SIZE,
    BootIndicator,
    BootMedia,
    HeaderIndicator,
    Platform,
    c_iso,
)
from dissect.eltorito.descriptors import read_sector
from dissect.eltorito.exceptions import (
    InvalidKeyBytesError,
    UnknownBootIndicatorError,
    UnknownBootMediaError,
    UnknownHeaderIndicatorError,
    UnknownPlatformIdError,
)
from dissect.eltorito.fields import (
    A_CHARSET,
    FixedString,
    dump_optional_string,
    write_into,
)

log = logging.getLogger(__name__)

SELECTION_CRITERIA_SIZE = 19
UNUSED_ENTRY = 0x00


def _tag(enum: type[IntEnum], value: int, error: type[Exception]) -> IntEnum:
    try:
        return enum(value)
    except ValueError:
        raise error(value)


def _entry(buf: bytes) -> bytes:
    buf = bytes(buf[:ENTRY_SIZE])
    if len(buf) != ENTRY_SIZE:
        raise ValueError(f"Expected a {ENTRY_SIZE} byte catalog entry, got {len(buf)} bytes")
    return buf


def _checksum(buf: bytes) -> int:
    """Sum of all little-endian 16-bit words of an entry, modulo 2^16."""
    return sum(int.from_bytes(buf[i : i + 2], "little") for i in range(0, len(buf), 2)) & 0xFFFF


class CatalogEntry:
    def dumps(self) -> bytes:
        raise NotImplementedError()

    def dump(self, out: bytearray | memoryview, offset: int = 0) -> None:
        """Write this entry into a 32 byte slot of ``out``."""
        write_into(out, offset, self.dumps())


class SelectionCriteriaType(IntEnum):
    NONE = 0
    LANGUAGE_AND_VERSION = 1


@dataclass(frozen=True)
class SelectionCriteria:
    """The selection criteria type of a section entry.

    Either one of the known :class:`SelectionCriteriaType` values, or an unrecognized
    byte which is kept as is.
    """

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"Selection criteria type must fit in a byte: {self.value}")

    @classmethod
    def known(cls, criteria_type: SelectionCriteriaType) -> SelectionCriteria:
        return cls(SelectionCriteriaType(criteria_type).value)

    @classmethod
    def unknown(cls, value: int) -> SelectionCriteria:
        if value in {t.value for t in SelectionCriteriaType}:
            raise ValueError(f"Selection criteria type {value} is not unknown")
        return cls(value)

    @property
    def type(self) -> SelectionCriteriaType | None:
        """The known criteria type, or None for an unrecognized value."""
        try:
            return SelectionCriteriaType(self.value)
        except ValueError:
            return None

    @property
    def is_unknown(self) -> bool:
        return self.type is None

    def __repr__(self) -> str:
        if self.type is None:
            return f"SelectionCriteria.unknown({self.value:#04x})"
        return f"SelectionCriteria.known(SelectionCriteriaType.{self.type.name})"


NO_SELECTION_CRITERIA = SelectionCriteria.known(SelectionCriteriaType.NONE)


@dataclass(frozen=True)
class ValidationEntry(CatalogEntry):
    """The first entry of the boot catalog.

    When dumped, the checksum is calculated so that all 16-bit words of the entry sum
    up to zero.
    """

    header_id: int = 1
    platform_id: Platform = Platform.X86
    manufacturer_id: FixedString | None = None

    @classmethod
    def parse(cls, buf: bytes) -> ValidationEntry:
        buf = _entry(buf)
        entry = c_iso.eltorito_validation_entry(buf)

        if entry.key != VALIDATION_KEY:
            raise InvalidKeyBytesError(entry.key)

        if _checksum(buf) != 0:
            log.warning("Validation entry checksum mismatch (stored %#06x)", entry.checksum)

        return cls(
            header_id=entry.header_id,
            platform_id=_tag(Platform, entry.platform_id, UnknownPlatformIdError),
            manufacturer_id=FixedString.optional(entry.id_string, A_CHARSET),
        )

    def dumps(self) -> bytes:
        entry = c_iso.eltorito_validation_entry(
            header_id=self.header_id,
            platform_id=self.platform_id,
            reserved=0,
            id_string=dump_optional_string(self.manufacturer_id, 24),
            checksum=0,
            key=VALIDATION_KEY,
        )
        entry.checksum = -_checksum(entry.dumps()) & 0xFFFF
        return entry.dumps()


class BootImageMixin:
    """Access to the boot image a catalog entry points at."""

    virtual_disk_addr: int
    sector_count: int

    @property
    def image_offset(self) -> int:
        return self.virtual_disk_addr * SECTOR_SIZE

    @property
    def image_size(self) -> int:
        return self.sector_count * VIRTUAL_SECTOR_SIZE

    def open(self, fh: BinaryIO) -> RangeStream:
        """Construct a file-like object for reading the boot image from the disc ``fh``."""
        return RangeStream(fh, self.image_offset, self.image_size)


@dataclass(frozen=True)
class InitialEntry(BootImageMixin, CatalogEntry):
    """The initial/default entry, the second entry of the boot catalog."""

    boot_indicator: BootIndicator
    boot_media: BootMedia
    load_segment: int = 0
    system_type: int = 0
    sector_count: int = 1
    virtual_disk_addr: int = 0

    @classmethod
    def parse(cls, buf: bytes) -> InitialEntry:
        entry = c_iso.eltorito_initial_entry(_entry(buf))
        return cls(
            boot_indicator=_tag(BootIndicator, entry.boot_indicator, UnknownBootIndicatorError),
            boot_media=_tag(BootMedia, entry.boot_media, UnknownBootMediaError),
            load_segment=entry.load_segment,
            system_type=entry.system_type,
            sector_count=entry.sector_count,
            virtual_disk_addr=entry.load_rba,
        )

    @property
    def bootable(self) -> bool:
        return self.boot_indicator == BootIndicator.BOOTABLE

    def dumps(self) -> bytes:
        return c_iso.eltorito_initial_entry(
            boot_indicator=self.boot_indicator,
            boot_media=self.boot_media,
            load_segment=self.load_segment,
            system_type=self.system_type,
            unused1=0,
            sector_count=self.sector_count,
            load_rba=self.virtual_disk_addr,
            unused2=bytes(20),
        ).dumps()


@dataclass(frozen=True)
class SectionHeaderEntry(CatalogEntry):
    header_indicator: HeaderIndicator
    platform_id: Platform
    section_count: int
    id_string: FixedString | None = None

    @classmethod
    def parse(cls, buf: bytes) -> SectionHeaderEntry:
        entry = c_iso.eltorito_section_header_entry(_entry(buf))
        return cls(
            header_indicator=_tag(HeaderIndicator, entry.header_indicator, UnknownHeaderIndicatorError),
            platform_id=_tag(Platform, entry.platform_id, UnknownPlatformIdError),
            section_count=entry.section_count,
            id_string=FixedString.optional(entry.id_string, A_CHARSET),
        )

    @property
    def is_final(self) -> bool:
        return self.header_indicator == HeaderIndicator.FINAL

    def dumps(self) -> bytes:
        return c_iso.eltorito_section_header_entry(
            header_indicator=self.header_indicator,
            platform_id=self.platform_id,
            section_count=self.section_count,
            id_string=dump_optional_string(self.id_string, 28),
        ).dumps()


@dataclass(frozen=True)
class SectionEntry(BootImageMixin, CatalogEntry):
    """A section entry, describing one bootable image of a section.

    The media byte holds the boot media type in its low nibble and three flags in
    bits 5, 6 and 7. The 32 byte extension records that follow the entry in the
    catalog are kept as raw bytes in ``extension_records``.
    """

    boot_indicator: BootIndicator
    boot_media: BootMedia
    has_continuation_entry: bool = False
    image_contains_atapi_driver: bool = False
    image_contains_scsi_driver: bool = False
    load_segment: int = 0
    system_type: int = 0
    sector_count: int = 1
    virtual_disk_addr: int = 0
    selection_criteria: SelectionCriteria = NO_SELECTION_CRITERIA
    selection_criteria_bytes: bytes = field(default=bytes(SELECTION_CRITERIA_SIZE))
    extension_records: tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        if len(self.selection_criteria_bytes) != SELECTION_CRITERIA_SIZE:
            raise ValueError(f"selection_criteria_bytes must be {SELECTION_CRITERIA_SIZE} bytes")

        for record in self.extension_records:
            if len(record) != ENTRY_SIZE or record[0] != EXTENSION_INDICATOR:
                raise ValueError(f"Invalid extension record: {record!r}")

    @classmethod
    def parse(cls, buf: bytes) -> SectionEntry:
        entry = c_iso.eltorito_section_entry(_entry(buf))
        media_flags = entry.media_flags

        return cls(
            boot_indicator=_tag(BootIndicator, entry.boot_indicator, UnknownBootIndicatorError),
            boot_media=_tag(BootMedia, media_flags & MEDIA_TYPE_MASK, UnknownBootMediaError),
            has_continuation_entry=bool(media_flags & (1 << CONTINUATION_ENTRY_BIT)),
            image_contains_atapi_driver=bool(media_flags & (1 << ATAPI_DRIVER_BIT)),
            image_contains_scsi_driver=bool(media_flags & (1 << SCSI_DRIVER_BIT)),
            load_segment=entry.load_segment,
            system_type=entry.system_type,
            sector_count=entry.sector_count,
            virtual_disk_addr=entry.load_rba,
            selection_criteria=SelectionCriteria(entry.selection_criteria_type),
            selection_criteria_bytes=entry.selection_criteria,
        )

    @property
    def bootable(self) -> bool:
        return self.boot_indicator == BootIndicator.BOOTABLE

    @property
    def media_flags(self) -> int:
        media_flags = int(self.boot_media)
        media_flags |= int(self.has_continuation_entry) << CONTINUATION_ENTRY_BIT
        media_flags |= int(self.image_contains_atapi_driver) << ATAPI_DRIVER_BIT
        media_flags |= int(self.image_contains_scsi_driver) << SCSI_DRIVER_BIT
        return media_flags

    def dumps(self) -> bytes:
        return c_iso.eltorito_section_entry(
            boot_indicator=self.boot_indicator,
            media_flags=self.media_flags,
            load_segment=self.load_segment,
            system_type=self.system_type,
            unused1=0,
            sector_count=self.sector_count,
            load_rba=self.virtual_disk_addr,
            selection_criteria_type=self.selection_criteria.value,
            selection_criteria=self.selection_criteria_bytes,
        ).dumps()


@dataclass(frozen=True)
class BootSection:
    header: SectionHeaderEntry
    entries: tuple[SectionEntry, ...] = ()


@dataclass(frozen=True)
class BootCatalog:
    """The El Torito boot catalog: a validation entry, the initial entry and any sections.

    The sections end at the final section header or at an unused (zero) slot. Any
    other byte where a section header is expected is an error. Extension records
    following a section entry are kept on that entry.
    """

    validation: ValidationEntry
    initial: InitialEntry
    sections: tuple[BootSection, ...] = ()

    @classmethod
    def parse(cls, buf: bytes) -> BootCatalog:
        buf = bytes(buf)
        validation = ValidationEntry.parse(buf[0:ENTRY_SIZE])
        initial = InitialEntry.parse(buf[ENTRY_SIZE : 2 * ENTRY_SIZE])

        sections = []
        offset = 2 * ENTRY_SIZE
        while offset + ENTRY_SIZE <= len(buf):
            if buf[offset] == UNUSED_ENTRY:
                break

            header = SectionHeaderEntry.parse(buf[offset : offset + ENTRY_SIZE])
            offset += ENTRY_SIZE

            entries = []
            while len(entries) < header.section_count:
                entry = SectionEntry.parse(buf[offset : offset + ENTRY_SIZE])
                offset += ENTRY_SIZE

                records = []
                follows = entry.has_continuation_entry
                while follows and offset + ENTRY_SIZE <= len(buf) and buf[offset] == EXTENSION_INDICATOR:
                    log.debug("Extension record at catalog offset %#x", offset)
                    records.append(buf[offset : offset + ENTRY_SIZE])
                    follows = bool(buf[offset + 1] & (1 << CONTINUATION_ENTRY_BIT))
                    offset += ENTRY_SIZE

                if records:
                    entry = replace(entry, extension_records=tuple(records))
                entries.append(entry)

            sections.append(BootSection(header, tuple(entries)))
            if header.is_final:
                break

        return cls(validation, initial, tuple(sections))

    @classmethod
    def from_fh(cls, fh: BinaryIO, sector: int) -> BootCatalog:
        fh.seek(sector * SECTOR_SIZE)
        return cls.parse(read_sector(fh))

    def entries(self) -> Iterator[InitialEntry | SectionEntry]:
        """Yield the initial entry followed by every section entry."""
        yield self.initial
        for section in self.sections:
            yield from section.entries

    def dumps(self) -> bytes:
        out = bytearray(SECTOR_SIZE)
        self.validation.dump(out, 0)
        self.initial.dump(out, ENTRY_SIZE)

        offset = 2 * ENTRY_SIZE
        for section in self.sections:
            if len(section.entries) != section.header.section_count:
                raise ValueError(
                    f"Section header announces {section.header.section_count} entries, got {len(section.entries)}"
                )

            section.header.dump(out, offset)
            offset += ENTRY_SIZE
            for entry in section.entries:
                entry.dump(out, offset)
                offset += ENTRY_SIZE
                for record in entry.extension_records:
                    write_into(out, offset, record)
                    offset += ENTRY_SIZE

        return bytes(out)
