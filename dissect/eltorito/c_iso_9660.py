from enum import IntEnum

from dissect.cstruct import cstruct

iso_def = """
#define ISOFS_BLOCK_SIZE 0x800

#define SYSTEM_AREA_SIZE ISOFS_BLOCK_SIZE * 16

#define BOOT_CATALOG_ENTRY_SIZE 0x20

#define ROOT_DIRECTORY_RECORD_LENGTH 0x22

struct iso_volume_descriptor_header {
    uint8_t type;
    char    id[5];
    uint8_t version;
};

struct dec_datetime {
    char    year[4];
    char    month[2];
    char    day[2];
    char    hour[2];
    char    minute[2];
    char    second[2];
    char    centiseconds[2];
    int8_t  offset;
};

struct iso_primary_descriptor {
    uint8_t         type;
    char            id[5];
    uint8_t         version;
    char            unused1;
    char            system_id[32];
    char            volume_id[32];
    char            unused2[8];
    char            volume_space_size[8];
    char            unused3[32];
    char            volume_set_size[4];
    char            volume_sequence_number[4];
    char            logical_block_size[4];
    char            path_table_size[8];
    uint32_t        type_l_path_table;
    uint32_t        opt_type_l_path_table;
    char            type_m_path_table_be[4];
    char            opt_type_m_path_table_be[4];
    char            root_directory_record[ROOT_DIRECTORY_RECORD_LENGTH];
    char            volume_set_id[128];
    char            publisher_id[128];
    char            preparer_id[128];
    char            application_id[128];
    char            copyright_file_id[37];
    char            abstract_file_id[37];
    char            bibliographic_file_id[37];
    char            creation_date[17];
    char            modification_date[17];
    char            expiration_date[17];
    char            effective_date[17];
    uint8_t         file_structure_version;
    char            unused4;
    char            application_data[512];
    char            unused5[653];
};

struct iso_boot_record {
    uint8_t         type;
    char            id[5];
    uint8_t         version;
    char            boot_system_id[32];
    char            boot_id[32];
    uint32_t        catalog_sector;
    char            boot_system_use[1973];
};

/* El Torito boot catalog entries, 32 bytes each */

struct eltorito_validation_entry {
    uint8_t         header_id;
    uint8_t         platform_id;
    uint16_t        reserved;
    char            id_string[24];
    uint16_t        checksum;
    char            key[2];
};

struct eltorito_initial_entry {
    uint8_t         boot_indicator;
    uint8_t         boot_media;
    uint16_t        load_segment;
    uint8_t         system_type;
    uint8_t         unused1;
    uint16_t        sector_count;
    uint32_t        load_rba;
    char            unused2[20];
};

struct eltorito_section_header_entry {
    uint8_t         header_indicator;
    uint8_t         platform_id;
    uint16_t        section_count;
    char            id_string[28];
};

struct eltorito_section_entry {
    uint8_t         boot_indicator;
    uint8_t         media_flags;
    uint16_t        load_segment;
    uint8_t         system_type;
    uint8_t         unused1;
    uint16_t        sector_count;
    uint32_t        load_rba;
    uint8_t         selection_criteria_type;
    char            selection_criteria[19];
};
"""  # noqa

c_iso = cstruct().load(iso_def)

SECTOR_SIZE = c_iso.ISOFS_BLOCK_SIZE
DATA_START = c_iso.SYSTEM_AREA_SIZE
ENTRY_SIZE = c_iso.BOOT_CATALOG_ENTRY_SIZE

# El Torito virtual sectors are always 512 bytes
VIRTUAL_SECTOR_SIZE = 512

ISO_STANDARD_ID = b"CD001"
EL_TORITO_SPECIFICATION = "EL TORITO SPECIFICATION"

# Marks the long identifier fields of the primary volume descriptor as present
LONG_ID_MARKER = 0x5F

VALIDATION_KEY = b"\x55\xaa"
EXTENSION_INDICATOR = 0x44

# Section entry media byte layout
MEDIA_TYPE_MASK = 0x0F
CONTINUATION_ENTRY_BIT = 5
ATAPI_DRIVER_BIT = 6
SCSI_DRIVER_BIT = 7


class VolumeDescriptorType(IntEnum):
    BOOT_RECORD = 0
    PRIMARY = 1
    SUPPLEMENTARY = 2
    PARTITION = 3
    TERMINATOR = 255


class Platform(IntEnum):
    X86 = 0
    PPC = 1
    MAC = 2
    UEFI = 0xEF


class BootIndicator(IntEnum):
    NOT_BOOTABLE = 0x00
    BOOTABLE = 0x88


class BootMedia(IntEnum):
    NO_EMULATION = 0
    FLOPPY_1_2 = 1
    FLOPPY_1_44 = 2
    FLOPPY_2_88 = 3
    HARD_DRIVE = 4


class HeaderIndicator(IntEnum):
    PARTIAL = 0x90
    FINAL = 0x91
