"""
Disc image generation.

The default backend shells out to ``mkisofs-rs`` (installed through
``cargo install`` before each build). The ``pycdlib`` backend masters an
equivalent non-bootable image in-process. Either way the volume label is
written afterwards by ``wasmdisc.patch``.
"""
from __future__ import annotations

import logging
import pathlib
import re
from typing import Dict, Set

import pycdlib
from pycdlib.pycdlibexception import PyCdlibException

from .config import Settings
from .errors import DependencyUnavailable, ImageGenFailed, InvalidImage, ToolTimeout
from .process import run_tool

LOG = logging.getLogger(__name__)

BACKEND_MKISOFS = "mkisofs-rs"
BACKEND_PYCDLIB = "pycdlib"
BACKENDS = (BACKEND_MKISOFS, BACKEND_PYCDLIB)

_NON_DCHAR = re.compile(r"[^A-Z0-9_]")
JOLIET_NAME_MAX = 64


def ensure_generator(settings: Settings) -> None:
    """
    Install or update mkisofs-rs via cargo.

    Raises ``DependencyUnavailable`` if cargo cannot be started, fails, or
    times out.
    """
    LOG.info("Ensuring %s is installed", settings.GENERATOR_CRATE)
    try:
        run_tool(
            [settings.CARGO_BIN, "install", settings.GENERATOR_CRATE],
            failure=DependencyUnavailable,
            timeout=settings.TIMEOUT,
        )
    except ToolTimeout as e:
        raise DependencyUnavailable(settings.CARGO_BIN, detail=str(e), output=e.output) from e


def build_image(
    layout_root: pathlib.Path,
    image_path: pathlib.Path,
    settings: Settings,
) -> pathlib.Path:
    """Generate ``image_path`` from the files under ``layout_root``."""
    image_path = pathlib.Path(image_path)
    image_path.parent.mkdir(parents=True, exist_ok=True)

    if settings.GENERATOR == BACKEND_PYCDLIB:
        write_iso(pathlib.Path(layout_root), image_path)
    else:
        LOG.info("Running %s over %s", settings.GENERATOR_BIN, layout_root)
        run_tool(
            [settings.GENERATOR_BIN, "--no-boot", "-o", image_path, layout_root],
            failure=ImageGenFailed,
            timeout=settings.TIMEOUT,
        )

    if not image_path.is_file():
        raise ImageGenFailed(settings.GENERATOR, detail=f"no image written to {image_path}")

    LOG.info("Image written: %s", image_path)
    return image_path


# --------------------------------------------------------------------------- #
# In-process backend                                                          #
# --------------------------------------------------------------------------- #
def _iso_name(name: str, used: Set[str], is_dir: bool) -> str:
    """
    Map ``name`` to a unique ISO 9660 level 3 identifier within one directory.

    Long and lowercase names survive through the Rock Ridge and Joliet
    entries; this is only the plain ISO 9660 fallback.
    """
    if is_dir:
        stem, ext = name, ""
    else:
        p = pathlib.PurePath(name)
        stem, ext = p.stem, p.suffix.lstrip(".")
    stem = _NON_DCHAR.sub("_", stem.upper())[:24] or "_"
    ext = _NON_DCHAR.sub("_", ext.upper())[:3]

    candidate, n = stem, 1
    while candidate in used:
        suffix = f"_{n}"
        candidate = stem[: 24 - len(suffix)] + suffix
        n += 1
    used.add(candidate)

    if is_dir:
        return candidate
    return f"{candidate}.{ext};1"


def _joliet_path(rel: pathlib.PurePath):
    """
    Joliet path for ``rel``, or None when a component is too long for Joliet.

    Such entries (and everything below them) are reachable through their
    Rock Ridge names only.
    """
    if any(len(part) > JOLIET_NAME_MAX for part in rel.parts):
        return None
    return "/" + rel.as_posix()


def write_iso(source_dir: pathlib.Path, out_path: pathlib.Path) -> None:
    """
    Build an ISO9660 level 3 image of everything under ``source_dir``,
    with Rock Ridge and Joliet names carrying the original file names.
    """
    iso = pycdlib.PyCdlib()
    iso.new(interchange_level=3, rock_ridge="1.09", joliet=3)

    # relative dir -> its ISO path, and the identifiers already taken in it
    iso_dirs: Dict[pathlib.PurePath, str] = {pathlib.PurePath("."): ""}
    used: Dict[pathlib.PurePath, Set[str]] = {pathlib.PurePath("."): set()}

    try:
        for path in sorted(source_dir.rglob("*")):
            rel = pathlib.PurePath(path.relative_to(source_dir))
            parent = rel.parent
            is_dir = path.is_dir()
            ident = _iso_name(rel.name, used[parent], is_dir)
            iso_path = f"{iso_dirs[parent]}/{ident}"
            joliet_path = _joliet_path(rel)

            if is_dir:
                iso.add_directory(iso_path, rr_name=rel.name, joliet_path=joliet_path)
                iso_dirs[rel] = iso_path
                used[rel] = set()
            else:
                iso.add_file(str(path), iso_path, rr_name=rel.name, joliet_path=joliet_path)

        iso.write(str(out_path))
    except (PyCdlibException, OSError) as e:
        raise ImageGenFailed(BACKEND_PYCDLIB, detail=str(e)) from e
    finally:
        iso.close()

    LOG.info("Mastered %s with pycdlib", out_path)


def list_files(image_path: pathlib.Path) -> Dict[str, int]:
    """
    Path -> size for every file in ``image_path``.

    Rock Ridge names are used when the image has them, plain ISO 9660
    identifiers otherwise.
    """
    iso = pycdlib.PyCdlib()
    try:
        iso.open(str(image_path))
    except (PyCdlibException, OSError) as e:
        raise InvalidImage(f"Could not read {image_path}: {e}") from e
    try:
        key = "rr_path" if iso.has_rock_ridge() else "iso_path"
        found: Dict[str, int] = {}
        for dirname, _dirs, files in iso.walk(**{key: "/"}):
            for f in files:
                p = f"{dirname.rstrip('/')}/{f}"
                rec = iso.get_record(**{key: p})
                found[p] = rec.get_data_length()
        return found
    finally:
        iso.close()
