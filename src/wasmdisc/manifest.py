"""
Cargo.toml reader.

Only ``package.name`` and the optional ``lib.name`` matter here: together
they decide the file name cargo gives the compiled ``.wasm``.
"""
from __future__ import annotations

import logging
import pathlib
import tomllib

from .constants import MANIFEST_FILENAME
from .errors import MalformedManifest, MissingManifest
from .models import ProjectManifest

LOG = logging.getLogger(__name__)


def manifest_path(input_path: pathlib.Path) -> pathlib.Path:
    return pathlib.Path(input_path) / MANIFEST_FILENAME


def resolve(input_path: pathlib.Path) -> ProjectManifest:
    """
    Read ``<input_path>/Cargo.toml`` into a ``ProjectManifest``.

    Raises ``MissingManifest`` if the file is absent and ``MalformedManifest``
    if it is not TOML or carries no usable package name.
    """
    path = manifest_path(input_path)
    if not path.is_file():
        raise MissingManifest(f"Could not find {MANIFEST_FILENAME} at input path {input_path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise MalformedManifest(f"Could not parse {path}: {e}") from e

    package = data.get("package")
    if not isinstance(package, dict):
        raise MalformedManifest(f"{path} has no [package] table")

    name = package.get("name")
    if not isinstance(name, str) or not name:
        raise MalformedManifest(f"{path} has no package name")

    lib_name = None
    lib = data.get("lib")
    if isinstance(lib, dict) and "name" in lib:
        lib_name = lib["name"]
        if not isinstance(lib_name, str) or not lib_name:
            raise MalformedManifest(f"{path} has an invalid [lib] name")

    manifest = ProjectManifest(declared_name=name, explicit_lib_name=lib_name)
    LOG.debug("Resolved %s -> artifact %s", path, manifest.artifact_name)
    return manifest
