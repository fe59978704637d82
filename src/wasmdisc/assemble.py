"""
Output layout assembly.

Collects the compiled module and the optional ``content/`` tree under
``<output_root>/<profile>/``. Nothing is deleted first; files are
overwritten one by one so a rebuild just replaces what it produces.
"""
from __future__ import annotations

import logging
import pathlib
import shutil
from typing import List

from tqdm import tqdm

from .constants import BINARY_EXT, CONTENT_DIR, TARGET_DIR, TARGET_TRIPLE
from .errors import ArtifactNotFound, AssemblyFailed
from .models import BuildProfile, OutputLayout

LOG = logging.getLogger(__name__)


def artifact_path(input_path: pathlib.Path, profile: BuildProfile, artifact_name: str) -> pathlib.Path:
    """Where cargo leaves ``<artifact_name>.wasm`` for ``profile``."""
    return (
        pathlib.Path(input_path)
        / TARGET_DIR
        / TARGET_TRIPLE
        / profile.value
        / f"{artifact_name}.{BINARY_EXT}"
    )


def _copy_tree(src: pathlib.Path, dest: pathlib.Path) -> List[pathlib.Path]:
    files = sorted(p for p in src.rglob("*") if p.is_file())
    copied: List[pathlib.Path] = []
    for path in tqdm(files, desc=f"Copying {src.name}", unit="file", leave=False):
        target = dest / path.relative_to(src)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, target)
        copied.append(target)
    # keep empty directories too
    for d in src.rglob("*"):
        if d.is_dir():
            (dest / d.relative_to(src)).mkdir(parents=True, exist_ok=True)
    return copied


def assemble(
    input_path: pathlib.Path,
    output_root: pathlib.Path,
    profile: BuildProfile,
    artifact_name: str,
) -> OutputLayout:
    """
    Copy the compiled module to ``main.wasm`` and the asset tree next to it.

    Raises ``ArtifactNotFound`` when cargo did not produce the expected file
    and ``AssemblyFailed`` on any filesystem error while copying.
    """
    input_path = pathlib.Path(input_path)
    layout = OutputLayout(root=pathlib.Path(output_root) / profile.value)
    wasm = artifact_path(input_path, profile, artifact_name)

    try:
        LOG.info("Creating dir: %s", layout.root)
        layout.root.mkdir(parents=True, exist_ok=True)

        if not wasm.is_file():
            raise ArtifactNotFound(f"Compiled module not found at {wasm}")

        LOG.info("Copying %s to %s", wasm, layout.binary_path)
        shutil.copyfile(wasm, layout.binary_path)

        content = input_path / CONTENT_DIR
        if content.is_dir():
            layout.asset_files = _copy_tree(content, layout.root / CONTENT_DIR)
            LOG.info("Copied %d asset file(s) from %s", len(layout.asset_files), content)
        else:
            LOG.debug("No %s/ directory under %s", CONTENT_DIR, input_path)
    except OSError as e:
        raise AssemblyFailed(f"Could not assemble output in {layout.root}: {e}") from e

    return layout
