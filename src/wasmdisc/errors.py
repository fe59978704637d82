"""
Error hierarchy for wasmdisc.

Library code raises these; only the CLI turns them into an exit code.
"""
from __future__ import annotations

from typing import Optional


class WasmDiscError(Exception):
    """Base class for every failure the pipeline reports to the user."""


class MissingManifest(WasmDiscError):
    pass


class MalformedManifest(WasmDiscError):
    pass


class InvalidProfile(WasmDiscError):
    pass


class AlreadyInitialized(WasmDiscError):
    pass


class ArtifactNotFound(WasmDiscError):
    pass


class AssemblyFailed(WasmDiscError):
    pass


class InvalidLabel(WasmDiscError):
    pass


class PatchFailed(WasmDiscError):
    pass


class ExternalToolFailed(WasmDiscError):
    """
    An external process could not be launched or reported failure.

    Normally one of ``exit_code`` / ``launch_error`` is set; in-process
    backends pass ``detail`` instead. ``output`` holds the captured
    stdout+stderr when the process ran.
    """

    def __init__(
        self,
        tool: str,
        exit_code: Optional[int] = None,
        launch_error: Optional[str] = None,
        output: str = "",
        detail: Optional[str] = None,
    ):
        self.tool = tool
        self.exit_code = exit_code
        self.launch_error = launch_error
        self.output = output
        self.detail = detail
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.launch_error is not None:
            return f"{self.tool} could not be started: {self.launch_error}"
        if self.detail is not None:
            return f"{self.tool} failed: {self.detail}"
        return f"{self.tool} exited with status {self.exit_code}"


class BuildFailed(ExternalToolFailed):
    pass


class ImageGenFailed(ExternalToolFailed):
    pass


class DependencyUnavailable(ExternalToolFailed):
    pass


class ToolTimeout(ExternalToolFailed):
    def __init__(self, tool: str, timeout: float, output: str = ""):
        self.timeout = timeout
        super().__init__(tool, launch_error=None, output=output)

    def _describe(self) -> str:
        return f"{self.tool} timed out after {self.timeout:g}s"


class InvalidImage(WasmDiscError):
    pass


class InvalidConfig(WasmDiscError):
    pass
