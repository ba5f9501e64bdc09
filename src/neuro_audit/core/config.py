"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


class DraftDefaults(BaseModel):
    """Initial values of a fresh audit form."""

    session_start: str = "09:00"
    metabolic_energy: int = 7
    coherence_index: int = 90
    presence_level: int = 9
    anchor_identity: int = 7


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    # Store namespace; every trader shares it, filtering is per trader
    app_id: str = "hipnotrading-audit-v1"
    data_dir: str = "data"

    # IANA zone used to read epoch timestamps; None = system local time
    display_timezone: str | None = None
    local_date_format: str = "%Y-%m-%d"

    # Unset disables the coach trader directory
    coach_access_code: str | None = None

    draft: DraftDefaults = Field(default_factory=DraftDefaults)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "NEURO_AUDIT_", "env_nested_delimiter": "__"}

    @property
    def store_path(self) -> Path:
        return Path(self.data_dir) / self.app_id / "audits.jsonl"

    def resolve_timezone(self) -> tzinfo | None:
        """Resolve ``display_timezone``.

        Raises:
            ConfigError: if the zone name is unknown.
        """
        if not self.display_timezone:
            return None
        try:
            return ZoneInfo(self.display_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(
                f"Unknown display_timezone: {self.display_timezone!r}"
            ) from exc

    def coach_mode(self, access_code: str | None) -> bool:
        """True when ``access_code`` unlocks the trader directory."""
        if not self.coach_access_code or not access_code:
            return False
        return access_code == self.coach_access_code


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    return Settings(**data)
