"""
Single entry point for launching external tools.

Every cargo / mkisofs-rs call goes through ``run_tool`` so launch errors,
non-zero exits and timeouts are all detected the same way.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Type

from .errors import ExternalToolFailed, ToolTimeout

LOG = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Outcome of a tool that ran to completion with exit status 0."""
    args: list[str]
    exit_code: int
    output: str


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def run_tool(
    args: Sequence[str],
    failure: Type[ExternalToolFailed] = ExternalToolFailed,
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> ToolResult:
    """
    Run ``args`` and block until it exits.

    Raises ``failure`` (an ``ExternalToolFailed`` subclass) when the process
    cannot be started or exits non-zero, and ``ToolTimeout`` when ``timeout``
    elapses; ``subprocess.run`` kills the child before that is raised.
    """
    args = [str(a) for a in args]
    tool = args[0]
    LOG.debug("Running %s (cwd=%s)", " ".join(args), cwd or ".")

    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
            text=True,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolTimeout(tool, timeout, output=_as_text(e.output)) from e
    except OSError as e:
        raise failure(tool, launch_error=str(e)) from e

    output = proc.stdout or ""
    for line in output.splitlines():
        LOG.debug("[%s] %s", tool, line)

    if proc.returncode != 0:
        raise failure(tool, exit_code=proc.returncode, output=output)

    return ToolResult(args=args, exit_code=proc.returncode, output=output)
