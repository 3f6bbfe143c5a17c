"""SCM Forensics configuration module.

All settings support environment variable overrides with the
SCM_FORENSICS_ prefix, e.g. SCM_FORENSICS_LOG_LEVEL=debug.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scm_forensics.logging import LOG_LEVELS

# Default paths
FORENSICS_HOME = Path.home() / ".scm-forensics"

LOG_FORMATS = ("json", "console")


class ForensicsSettings(BaseSettings):
    """Configuration for mining runs and snapshot storage."""

    model_config = SettingsConfigDict(
        env_prefix="SCM_FORENSICS_",
        env_nested_delimiter="__",
    )

    home: Path = Field(
        default=FORENSICS_HOME,
        description="Base directory for persisted data",
    )
    snapshot_dir: Path = Field(
        default_factory=lambda: FORENSICS_HOME / "snapshots",
        description="Directory holding one JSON snapshot per mined repository",
    )

    log_level: str = Field(
        default="info",
        description="Logging level (debug, info, warning, error)",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (json or console)",
    )

    include_merges: bool = Field(
        default=False,
        description="Record file changes of merge commits against their first parent",
    )
    detect_renames: bool = Field(
        default=True,
        description="Follow renamed files so their history continues under the new path",
    )
    max_log_errors: int = Field(
        default=20,
        ge=1,
        description="Maximum number of error lines kept in a mining report log",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {value!r}")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {value!r}")
        return value


# Module-level singleton
settings = ForensicsSettings()
