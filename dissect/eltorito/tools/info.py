from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dissect.eltorito.c_iso_9660 import DATA_START
from dissect.eltorito.catalog import BootCatalog
from dissect.eltorito.descriptors import BootRecord, PrimaryVolumeDescriptor
from dissect.eltorito.exceptions import Error
from dissect.eltorito.volume import ElTorito

log = logging.getLogger(__name__)

PVD_FIELDS = [
    "system_id",
    "volume_id",
    "volume_space_size",
    "volume_set_size",
    "volume_sequence_number",
    "logical_block_size",
    "path_table_size",
    "type_l_path_table",
    "opt_type_l_path_table",
    "type_m_path_table",
    "opt_type_m_path_table",
    "volume_set_id",
    "publisher_id",
    "preparer_id",
    "application_id",
    "copyright_file_id",
    "abstract_file_id",
    "bibliographic_file_id",
    "creation_date",
    "modification_date",
    "expiration_date",
    "effective_date",
]


def _format(value: object) -> str:
    if value is None:
        return "-"
    if hasattr(value, "to_datetime"):
        return value.to_datetime().isoformat()
    return str(value)


def print_primary_volume(pvd: PrimaryVolumeDescriptor) -> None:
    print("Primary volume descriptor:")
    for name in PVD_FIELDS:
        print(f"  {name:<24} {_format(getattr(pvd, name))}")


def print_boot_record(record: BootRecord) -> None:
    print("Boot record:")
    print(f"  {'boot_system_id':<24} {_format(record.boot_system_id)}")
    print(f"  {'boot_id':<24} {_format(record.boot_id)}")
    print(f"  {'catalog_sector':<24} {record.catalog_sector} (offset {record.catalog_offset:#x})")


def print_boot_catalog(catalog: BootCatalog) -> None:
    print("Boot catalog:")
    print(f"  validation: {catalog.validation}")
    print(f"  initial:    {catalog.initial}")
    for section in catalog.sections:
        print(f"  section:    {section.header}")
        for entry in section.entries:
            print(f"    entry:    {entry}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="eltorito-info",
        description="Print the volume descriptors and El Torito boot catalog of a disc image.",
    )
    parser.add_argument("image", type=Path, help="path to the disc image")
    parser.add_argument(
        "--offset",
        type=lambda value: int(value, 0),
        default=DATA_START,
        help="offset of the volume descriptor set (default: %(default)#x)",
    )
    parser.add_argument("--lenient", action="store_true", help="accept non-conformant d-character fields")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    args = parser.parse_args(argv)

    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)]
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("dissect.eltorito").setLevel(level)

    try:
        with args.image.open("rb") as fh:
            disc = ElTorito(fh, args.offset, strict=not args.lenient)
            print_primary_volume(disc.primary_volume)

            if disc.boot_record is None:
                print("No boot record found")
                return 0

            print_boot_record(disc.boot_record)
            print_boot_catalog(disc.boot_catalog)
    except (Error, EOFError, OSError, ValueError) as e:
        log.error("Unable to read %s: %s", args.image, e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
