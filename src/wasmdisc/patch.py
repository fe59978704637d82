"""
Volume label patching.

mkisofs-rs has no option for the volume identifier, so it is rewritten in
place once the image exists. The Primary Volume Descriptor sits at sector
16 (0x8000); its volume identifier is the 32-byte a-character field at
0x8028, padded with spaces.
"""
from __future__ import annotations

import logging
import pathlib

import bitstruct

from .constants import (
    PVD_HEADER_FMT,
    PVD_HEADER_LEN,
    PVD_OFFSET,
    PVD_STANDARD_ID,
    PVD_TYPE_PRIMARY,
    PVD_VERSION,
    VOLUME_ID_LEN,
    VOLUME_ID_OFFSET,
    VOLUME_ID_PAD,
)
from .errors import InvalidLabel, PatchFailed

LOG = logging.getLogger(__name__)


def validate_label(label: str) -> bytes:
    """Return the ASCII bytes of ``label``; raises ``InvalidLabel`` if they do not fit."""
    try:
        raw = label.encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidLabel(f"Disc label must be ASCII: {label!r}") from e
    if len(raw) > VOLUME_ID_LEN:
        raise InvalidLabel(
            f"Disc label is {len(raw)} bytes, the volume identifier holds {VOLUME_ID_LEN}: {label!r}"
        )
    return raw


def volume_id_field(label: str) -> bytes:
    """The exact 32 bytes written for ``label``."""
    raw = validate_label(label)
    return raw + VOLUME_ID_PAD * (VOLUME_ID_LEN - len(raw))


def _check_descriptor(f, image_path: pathlib.Path) -> None:
    f.seek(0, 2)
    size = f.tell()
    if size < VOLUME_ID_OFFSET + VOLUME_ID_LEN:
        raise PatchFailed(f"{image_path} is {size} bytes, too short to hold a volume descriptor")

    f.seek(PVD_OFFSET)
    vd_type, std_id, version = bitstruct.unpack(PVD_HEADER_FMT, f.read(PVD_HEADER_LEN))
    if (vd_type, std_id, version) != (PVD_TYPE_PRIMARY, PVD_STANDARD_ID, PVD_VERSION):
        raise PatchFailed(f"{image_path} has no primary volume descriptor at {PVD_OFFSET:#x}")


def patch_label(image_path: pathlib.Path, label: str) -> None:
    """
    Overwrite the volume identifier of ``image_path`` with ``label``.

    The label is validated before the file is opened, so an oversized or
    non-ASCII label never touches the image.
    """
    field = volume_id_field(label)
    try:
        with open(image_path, "r+b") as f:
            _check_descriptor(f, image_path)
            f.seek(VOLUME_ID_OFFSET)
            f.write(field)
    except OSError as e:
        raise PatchFailed(f"Could not patch volume label in {image_path}: {e}") from e
    LOG.info("Volume label set to %r", label)


def read_label(image_path: pathlib.Path) -> str:
    """Current volume identifier of ``image_path``, trailing padding removed."""
    try:
        with open(image_path, "rb") as f:
            _check_descriptor(f, image_path)
            f.seek(VOLUME_ID_OFFSET)
            raw = f.read(VOLUME_ID_LEN)
    except OSError as e:
        raise PatchFailed(f"Could not read volume label from {image_path}: {e}") from e
    return raw.decode("ascii", errors="replace").rstrip(" ")
