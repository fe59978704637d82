"""Cargo invocation for the wasm target."""
from __future__ import annotations

import logging
import pathlib
from typing import Optional

from .constants import CARGO, TARGET_TRIPLE
from .errors import BuildFailed
from .models import BuildProfile
from .process import ToolResult, run_tool

LOG = logging.getLogger(__name__)


def build_command(profile: BuildProfile, cargo: str = CARGO) -> list[str]:
    return [cargo, "build", "--target", TARGET_TRIPLE, *profile.cargo_flags()]


def invoke(
    input_path: pathlib.Path,
    profile: BuildProfile,
    cargo: str = CARGO,
    timeout: Optional[float] = None,
) -> ToolResult:
    """Compile the crate at ``input_path``; raises ``BuildFailed`` on any failure."""
    cmd = build_command(profile, cargo)
    LOG.info("Compiling %s (%s)", input_path, profile.value)
    result = run_tool(cmd, failure=BuildFailed, cwd=input_path, timeout=timeout)
    LOG.info("Compile finished")
    return result
