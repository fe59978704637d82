"""
Runtime configuration.

Values come from the environment (``WASMDISC_*``) or a ``.env`` file;
the CLI overrides them per invocation.
"""
from typing import Literal, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import CARGO, IMAGE_GENERATOR, IMAGE_GENERATOR_CRATE
from .errors import InvalidConfig

ENV_PREFIX = "WASMDISC_"


class Settings(BaseSettings):
    """Tool locations and process limits"""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    # External tools
    CARGO_BIN: str = CARGO
    GENERATOR_BIN: str = IMAGE_GENERATOR
    GENERATOR_CRATE: str = IMAGE_GENERATOR_CRATE

    # Image backend: mkisofs-rs (external) or pycdlib (in-process)
    GENERATOR: Literal["mkisofs-rs", "pycdlib"] = IMAGE_GENERATOR

    # Seconds; None waits forever
    TIMEOUT: Optional[float] = None

    SKIP_INSTALL: bool = False


def load_settings(**overrides) -> Settings:
    """Build ``Settings``; raises ``InvalidConfig`` with a one-line summary on bad values."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{ENV_PREFIX}{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidConfig(f"Invalid configuration: {problems}") from None
