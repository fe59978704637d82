"""
``wasmdisc new``: lay down a minimal cdylib crate for the wasm target.
"""
from __future__ import annotations

import logging
import pathlib
from typing import List

from .constants import MANIFEST_FILENAME, TARGET_TRIPLE
from .errors import AlreadyInitialized

LOG = logging.getLogger(__name__)

CARGO_TOML = """\
[package]
name = "{name}"
version = "1.0.0"
authors = [""]

[lib]
crate-type = ["cdylib"]

[dependencies]
"""

CARGO_CONFIG = f"""\
[build]
target = "{TARGET_TRIPLE}"
rustflags = [
    "-C", "link-arg=--max-memory=16777216",
    "-C", "link-arg=--export-table",
]
"""

LIB_RS = """\
#[no_mangle]
pub fn main(_: i32, _: i32) -> i32 {
    return 0;
}
"""


def new_project(name: str, root: pathlib.Path = pathlib.Path(".")) -> List[pathlib.Path]:
    """
    Write Cargo.toml, .cargo/config.toml and src/lib.rs under ``root``.

    Raises ``AlreadyInitialized`` without writing anything if ``root``
    already has a Cargo.toml.
    """
    root = pathlib.Path(root)
    manifest = root / MANIFEST_FILENAME
    if manifest.exists():
        raise AlreadyInitialized(f"{MANIFEST_FILENAME} already exists in {root}")

    files = [
        (manifest, CARGO_TOML.format(name=name)),
        (root / ".cargo" / "config.toml", CARGO_CONFIG),
        (root / "src" / "lib.rs", LIB_RS),
    ]
    written = []
    for path, text in files:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        LOG.info("%s written", path)
        written.append(path)
    return written
