"""
Fixed conventions shared by the build pipeline.

Two groups live here: the cargo / mkisofs-rs conventions the pipeline
relies on, and the ISO 9660 Primary Volume Descriptor layout the label
patcher writes into.
"""

# --------------------------------------------------------------------------- #
# Cargo project conventions                                                   #
# --------------------------------------------------------------------------- #
MANIFEST_FILENAME = "Cargo.toml"
TARGET_TRIPLE = "wasm32-unknown-unknown"
TARGET_DIR = "target"
BINARY_EXT = "wasm"
OUTPUT_BINARY_NAME = f"main.{BINARY_EXT}"
CONTENT_DIR = "content"
DEFAULT_OUTPUT_ROOT = "build"

# --------------------------------------------------------------------------- #
# External tools                                                              #
# --------------------------------------------------------------------------- #
CARGO = "cargo"
IMAGE_GENERATOR = "mkisofs-rs"
IMAGE_GENERATOR_CRATE = "mkisofs-rs"

# --------------------------------------------------------------------------- #
# ISO 9660 Primary Volume Descriptor                                          #
# --------------------------------------------------------------------------- #
SECTOR_SIZE = 2048
PVD_OFFSET = 16 * SECTOR_SIZE                   # 0x8000
PVD_HEADER_FMT = "u8r40u8"                      # type code, "CD001", version
PVD_HEADER_LEN = 7
PVD_TYPE_PRIMARY = 1
PVD_STANDARD_ID = b"CD001"
PVD_VERSION = 1
VOLUME_ID_OFFSET = PVD_OFFSET + 40              # 0x8028
VOLUME_ID_LEN = 32
VOLUME_ID_PAD = b"\x20"
