from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO

from dissect.eltorito.c_iso_9660 import (
    EL_TORITO_SPECIFICATION,
    ISO_STANDARD_ID,
    LONG_ID_MARKER,
    SECTOR_SIZE,
    VolumeDescriptorType,
    c_iso,
)
from dissect.eltorito.exceptions import (
    UnexpectedTypeError,
    UnknownIdentError,
    UnknownTypeError,
    UnknownVersionError,
)
from dissect.eltorito.fields import (
    A_CHARSET,
    D_CHARSET,
    DecDateTime,
    FixedString,
    dump_optional_datetime,
    dump_optional_string,
    read_both_endian,
    write_both_endian,
    write_into,
)

log = logging.getLogger(__name__)

HEADER_SIZE = 7
LONG_ID_SIZE = 127
APPLICATION_USED_SIZE = 512


def read_sector(fh: BinaryIO) -> bytes:
    """Read exactly one sector from the current position of ``fh``."""
    buf = fh.read(SECTOR_SIZE)
    if len(buf) != SECTOR_SIZE:
        raise EOFError(f"Short read: expected {SECTOR_SIZE} bytes, got {len(buf)}")
    return buf


def _check_sector(buf: bytes) -> bytes:
    buf = bytes(buf)
    if len(buf) < SECTOR_SIZE:
        raise ValueError(f"Expected a {SECTOR_SIZE} byte sector, got {len(buf)} bytes")
    return buf[:SECTOR_SIZE]


@dataclass(frozen=True)
class VolumeDescriptorHeader:
    """The header shared by all volume descriptors: type, ``CD001`` and version."""

    type: VolumeDescriptorType
    version: int = 1

    @classmethod
    def parse(cls, buf: bytes) -> VolumeDescriptorHeader:
        buf = bytes(buf[:HEADER_SIZE])
        if len(buf) != HEADER_SIZE:
            raise ValueError(f"Expected {HEADER_SIZE} header bytes, got {len(buf)}")

        header = c_iso.iso_volume_descriptor_header(buf)

        try:
            vd_type = VolumeDescriptorType(header.type)
        except ValueError:
            raise UnknownTypeError(header.type)

        if header.id != ISO_STANDARD_ID:
            raise UnknownIdentError(header.id)

        if header.version != 1:
            raise UnknownVersionError(header.version)

        return cls(vd_type, header.version)

    def expect(self, vd_type: VolumeDescriptorType) -> None:
        if self.type != vd_type:
            raise UnexpectedTypeError(vd_type, self.type)

    def dumps(self) -> bytes:
        return c_iso.iso_volume_descriptor_header(
            type=self.type,
            id=ISO_STANDARD_ID,
            version=self.version,
        ).dumps()

    def dump(self, out: bytearray | memoryview, offset: int = 0) -> None:
        write_into(out, offset, self.dumps())


def terminator_sector() -> bytes:
    """Return a volume descriptor set terminator sector."""
    header = VolumeDescriptorHeader(VolumeDescriptorType.TERMINATOR)
    return header.dumps().ljust(SECTOR_SIZE, b"\x00")


def _parse_long_id(buf: bytes) -> FixedString | None:
    if buf[0] != LONG_ID_MARKER:
        return None
    return FixedString.parse(buf[1:], A_CHARSET)


def _dump_long_id(value: FixedString | None) -> bytes:
    if value is None:
        return b" " * (LONG_ID_SIZE + 1)
    return bytes([LONG_ID_MARKER]) + dump_optional_string(value, LONG_ID_SIZE)


def _optional_location(value: int) -> int | None:
    return value or None


@dataclass(frozen=True)
class PrimaryVolumeDescriptor:
    """The Primary Volume Descriptor.

    The string fields are :class:`FixedString` instances and are None when empty. The
    publisher, data preparer and application identifiers are only present when their
    field starts with the ``_`` marker byte. ``application_used`` is only kept when an
    application identifier is present.

    References:
        - https://wiki.osdev.org/ISO_9660#The_Primary_Volume_Descriptor
    """

    system_id: FixedString | None = None
    volume_id: FixedString | None = None
    volume_space_size: int = 0
    volume_set_size: int = 1
    volume_sequence_number: int = 1
    logical_block_size: int = SECTOR_SIZE
    path_table_size: int = 0
    type_l_path_table: int = 0
    opt_type_l_path_table: int | None = None
    type_m_path_table: int = 0
    opt_type_m_path_table: int | None = None
    root_directory_record: bytes = bytes(c_iso.ROOT_DIRECTORY_RECORD_LENGTH)
    volume_set_id: FixedString | None = None
    publisher_id: FixedString | None = None
    preparer_id: FixedString | None = None
    application_id: FixedString | None = None
    copyright_file_id: FixedString | None = None
    abstract_file_id: FixedString | None = None
    bibliographic_file_id: FixedString | None = None
    creation_date: DecDateTime | None = None
    modification_date: DecDateTime | None = None
    expiration_date: DecDateTime | None = None
    effective_date: DecDateTime | None = None
    application_used: bytes | None = None

    @classmethod
    def parse(cls, buf: bytes, strict: bool = True) -> PrimaryVolumeDescriptor:
        """Parse a primary volume descriptor sector.

        Args:
            buf: The 2048 byte sector.
            strict: Check that both halves of the both-endian integers agree and validate
                the d-character fields against the d-character set. When False, the
                d-character fields are validated against the a-character set instead,
                which many real-world images need.
        """
        buf = _check_sector(buf)
        VolumeDescriptorHeader.parse(buf).expect(VolumeDescriptorType.PRIMARY)

        pvd = c_iso.iso_primary_descriptor(buf)
        d_charset = D_CHARSET if strict else A_CHARSET

        if pvd.file_structure_version != 1:
            raise UnknownVersionError(pvd.file_structure_version)

        application_id = _parse_long_id(pvd.application_id)

        return cls(
            system_id=FixedString.optional(pvd.system_id, A_CHARSET),
            volume_id=FixedString.optional(pvd.volume_id, d_charset),
            volume_space_size=read_both_endian(pvd.volume_space_size, 4, strict),
            volume_set_size=read_both_endian(pvd.volume_set_size, 2, strict),
            volume_sequence_number=read_both_endian(pvd.volume_sequence_number, 2, strict),
            logical_block_size=read_both_endian(pvd.logical_block_size, 2, strict),
            path_table_size=read_both_endian(pvd.path_table_size, 4, strict),
            type_l_path_table=pvd.type_l_path_table,
            opt_type_l_path_table=_optional_location(pvd.opt_type_l_path_table),
            type_m_path_table=int.from_bytes(pvd.type_m_path_table_be, "big"),
            opt_type_m_path_table=_optional_location(int.from_bytes(pvd.opt_type_m_path_table_be, "big")),
            root_directory_record=pvd.root_directory_record,
            volume_set_id=FixedString.optional(pvd.volume_set_id, d_charset),
            publisher_id=_parse_long_id(pvd.publisher_id),
            preparer_id=_parse_long_id(pvd.preparer_id),
            application_id=application_id,
            copyright_file_id=FixedString.optional(pvd.copyright_file_id, d_charset),
            abstract_file_id=FixedString.optional(pvd.abstract_file_id, d_charset),
            bibliographic_file_id=FixedString.optional(pvd.bibliographic_file_id, d_charset),
            creation_date=DecDateTime.parse(pvd.creation_date),
            modification_date=DecDateTime.parse(pvd.modification_date),
            expiration_date=DecDateTime.parse(pvd.expiration_date),
            effective_date=DecDateTime.parse(pvd.effective_date),
            application_used=pvd.application_data if application_id is not None else None,
        )

    @property
    def name(self) -> str:
        return self.volume_id.value if self.volume_id is not None else ""

    def dumps(self) -> bytes:
        if self.application_used is not None and len(self.application_used) != APPLICATION_USED_SIZE:
            raise ValueError(f"application_used must be {APPLICATION_USED_SIZE} bytes")

        return c_iso.iso_primary_descriptor(
            type=VolumeDescriptorType.PRIMARY,
            id=ISO_STANDARD_ID,
            version=1,
            unused1=b"\x00",
            system_id=dump_optional_string(self.system_id, 32),
            volume_id=dump_optional_string(self.volume_id, 32),
            unused2=bytes(8),
            volume_space_size=write_both_endian(self.volume_space_size, 4),
            unused3=bytes(32),
            volume_set_size=write_both_endian(self.volume_set_size, 2),
            volume_sequence_number=write_both_endian(self.volume_sequence_number, 2),
            logical_block_size=write_both_endian(self.logical_block_size, 2),
            path_table_size=write_both_endian(self.path_table_size, 4),
            type_l_path_table=self.type_l_path_table,
            opt_type_l_path_table=self.opt_type_l_path_table or 0,
            type_m_path_table_be=self.type_m_path_table.to_bytes(4, "big"),
            opt_type_m_path_table_be=(self.opt_type_m_path_table or 0).to_bytes(4, "big"),
            root_directory_record=self.root_directory_record,
            volume_set_id=dump_optional_string(self.volume_set_id, 128),
            publisher_id=_dump_long_id(self.publisher_id),
            preparer_id=_dump_long_id(self.preparer_id),
            application_id=_dump_long_id(self.application_id),
            copyright_file_id=dump_optional_string(self.copyright_file_id, 37),
            abstract_file_id=dump_optional_string(self.abstract_file_id, 37),
            bibliographic_file_id=dump_optional_string(self.bibliographic_file_id, 37),
            creation_date=dump_optional_datetime(self.creation_date),
            modification_date=dump_optional_datetime(self.modification_date),
            expiration_date=dump_optional_datetime(self.expiration_date),
            effective_date=dump_optional_datetime(self.effective_date),
            file_structure_version=1,
            unused4=b"\x00",
            application_data=self.application_used or bytes(APPLICATION_USED_SIZE),
            unused5=bytes(653),
        ).dumps()

    def dump(self, out: bytearray | memoryview, offset: int = 0) -> None:
        write_into(out, offset, self.dumps())


EL_TORITO_SYSTEM_ID = FixedString.from_str(EL_TORITO_SPECIFICATION, 32)


@dataclass(frozen=True)
class BootRecord:
    """The El Torito Boot Record volume descriptor, which points at the boot catalog.

    References:
        - https://pdos.csail.mit.edu/6.828/2014/readings/boot-cdrom.pdf
    """

    catalog_sector: int
    boot_system_id: FixedString | None = EL_TORITO_SYSTEM_ID
    boot_id: FixedString | None = None

    @classmethod
    def el_torito(cls, catalog_sector: int) -> BootRecord:
        return cls(catalog_sector)

    @classmethod
    def parse(cls, buf: bytes) -> BootRecord:
        buf = _check_sector(buf)
        VolumeDescriptorHeader.parse(buf).expect(VolumeDescriptorType.BOOT_RECORD)

        record = c_iso.iso_boot_record(buf)
        boot_system_id = FixedString.optional(record.boot_system_id, A_CHARSET)
        if boot_system_id != EL_TORITO_SYSTEM_ID:
            log.warning("Boot record is not an El Torito boot record: %r", boot_system_id)

        return cls(
            catalog_sector=record.catalog_sector,
            boot_system_id=boot_system_id,
            boot_id=FixedString.optional(record.boot_id, A_CHARSET),
        )

    @property
    def catalog_offset(self) -> int:
        return self.catalog_sector * SECTOR_SIZE

    def dumps(self) -> bytes:
        return c_iso.iso_boot_record(
            type=VolumeDescriptorType.BOOT_RECORD,
            id=ISO_STANDARD_ID,
            version=1,
            boot_system_id=dump_optional_string(self.boot_system_id, 32, b"\x00"),
            boot_id=dump_optional_string(self.boot_id, 32, b"\x00"),
            catalog_sector=self.catalog_sector,
            boot_system_use=bytes(1973),
        ).dumps()

    def dump(self, out: bytearray | memoryview, offset: int = 0) -> None:
        write_into(out, offset, self.dumps())
