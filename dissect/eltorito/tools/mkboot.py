from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone

from dissect.eltorito.c_iso_9660 import (
    DATA_START,
    SECTOR_SIZE,
    VIRTUAL_SECTOR_SIZE,
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
from dissect.eltorito.exceptions import Error
from dissect.eltorito.fields import D_CHARSET, DecDateTime, FixedString

log = logging.getLogger(__name__)

FIRST_SECTOR = DATA_START // SECTOR_SIZE


def build_skeleton(
    catalog_sector: int | None = None,
    image_sector: int | None = None,
    sector_count: int = 4,
    boot_media: BootMedia = BootMedia.FLOPPY_1_44,
    volume_id: str = "BOOT",
    with_terminator: bool = False,
    now: datetime | None = None,
) -> bytes:
    """Build the volume descriptors and boot catalog of a minimal bootable disc.

    The returned bytes are meant to be written at sector 16 of the image: a primary
    volume descriptor, a boot record, optionally a set terminator, and the boot catalog.
    The boot image itself is expected at ``image_sector``.
    """
    sectors = 4 if with_terminator else 3
    if catalog_sector is None:
        catalog_sector = FIRST_SECTOR + sectors - 1
    if image_sector is None:
        image_sector = catalog_sector + 1

    image_sectors = -(-sector_count * VIRTUAL_SECTOR_SIZE // SECTOR_SIZE)
    created = DecDateTime.from_datetime(now or datetime.now(timezone.utc))

    pvd = PrimaryVolumeDescriptor(
        volume_id=FixedString.from_str(volume_id, 32, D_CHARSET),
        volume_space_size=image_sector + image_sectors,
        creation_date=created,
        modification_date=created,
    )

    catalog = BootCatalog(
        validation=ValidationEntry(header_id=1, platform_id=Platform.X86),
        initial=InitialEntry(
            boot_indicator=BootIndicator.BOOTABLE,
            boot_media=boot_media,
            sector_count=sector_count,
            virtual_disk_addr=image_sector,
        ),
        sections=(
            BootSection(
                SectionHeaderEntry(HeaderIndicator.FINAL, Platform.X86, 1),
                (
                    SectionEntry(
                        boot_indicator=BootIndicator.BOOTABLE,
                        boot_media=boot_media,
                        sector_count=sector_count,
                        virtual_disk_addr=image_sector,
                    ),
                ),
            ),
        ),
    )

    out = bytearray(SECTOR_SIZE * sectors)
    pvd.dump(out, 0)
    BootRecord.el_torito(catalog_sector).dump(out, SECTOR_SIZE)
    if with_terminator:
        out[2 * SECTOR_SIZE : 3 * SECTOR_SIZE] = terminator_sector()
    out[(sectors - 1) * SECTOR_SIZE :] = catalog.dumps()

    log.info("Boot catalog at sector %d, boot image at sector %d", catalog_sector, image_sector)
    return bytes(out)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="eltorito-mkboot",
        description="Write the descriptors and boot catalog of a minimal El Torito bootable disc to stdout.",
    )
    parser.add_argument("--catalog-sector", type=int, help="sector of the boot catalog")
    parser.add_argument("--image-sector", type=int, help="sector of the boot image")
    parser.add_argument("--sector-count", type=int, default=4, help="number of 512 byte sectors to load")
    parser.add_argument(
        "--media",
        choices=[media.name.lower() for media in BootMedia],
        default=BootMedia.FLOPPY_1_44.name.lower(),
        help="boot media type (default: %(default)s)",
    )
    parser.add_argument("--volume-id", default="BOOT", help="volume identifier (default: %(default)s)")
    parser.add_argument("--with-terminator", action="store_true", help="add a volume descriptor set terminator")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    args = parser.parse_args(argv)

    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)]
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("dissect.eltorito").setLevel(level)

    try:
        data = build_skeleton(
            catalog_sector=args.catalog_sector,
            image_sector=args.image_sector,
            sector_count=args.sector_count,
            boot_media=BootMedia[args.media.upper()],
            volume_id=args.volume_id,
            with_terminator=args.with_terminator,
        )
    except (Error, ValueError) as e:
        parser.error(str(e))

    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
