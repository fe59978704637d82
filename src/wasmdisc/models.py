"""
Data model for a single build invocation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .constants import DEFAULT_OUTPUT_ROOT, OUTPUT_BINARY_NAME
from .errors import InvalidProfile


class BuildProfile(str, Enum):
    """Cargo build profiles; the value doubles as the output directory name."""
    DEBUG = "debug"
    RELEASE = "release"

    @classmethod
    def parse(cls, value: str) -> "BuildProfile":
        try:
            return cls(value)
        except ValueError:
            raise InvalidProfile(f"Unrecognized build profile: {value}") from None

    def cargo_flags(self) -> List[str]:
        """Extra ``cargo build`` flags for this profile."""
        return ["--release"] if self is BuildProfile.RELEASE else []


@dataclass(frozen=True)
class ProjectManifest:
    """The two fields of ``Cargo.toml`` the pipeline consumes."""
    declared_name: str
    explicit_lib_name: Optional[str] = None

    @property
    def artifact_name(self) -> str:
        if self.explicit_lib_name:
            return self.explicit_lib_name
        # cargo normalizes crate names the same way for library targets
        return self.declared_name.replace("-", "_")


@dataclass(frozen=True)
class BuildRequest:
    input_path: Path
    output_root: Path = Path(DEFAULT_OUTPUT_ROOT)
    profile: BuildProfile = BuildProfile.DEBUG
    disc_label: Optional[str] = None

    def label_for(self, manifest: ProjectManifest) -> str:
        return self.disc_label if self.disc_label is not None else manifest.artifact_name

    @property
    def image_path(self) -> Path:
        return self.output_root / f"{self.profile.value}.iso"


@dataclass
class OutputLayout:
    """Where the assembler put things under ``<output_root>/<profile>``."""
    root: Path
    asset_files: List[Path] = field(default_factory=list)

    @property
    def binary_path(self) -> Path:
        return self.root / OUTPUT_BINARY_NAME


@dataclass
class BuildOutcome:
    manifest: ProjectManifest
    layout: OutputLayout
    image_path: Path
    label: str
