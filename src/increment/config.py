"""
Configuration management for Increment.

Centralised configuration with YAML loading and sensible defaults.
The config carries the channel naming rules the engine depends on
(reserved series keys, the non-performance denylist, spend column
headers) plus window sizes and API settings.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Section configs
# ---------------------------------------------------------------------------

class ChannelConfig(BaseModel):
    """Channel naming rules shared by the normalizer and the catalog."""

    date_key: str = Field(default="date")
    baseline_key: str = Field(default="baseline")
    unattributed_key: str = Field(default="unattributed")
    non_performance: list[str] = Field(
        default_factory=lambda: ["Youtube", "Fta Tv", "Bvod", "SVOD", "TV"],
        description="Channels excluded from attribution views (TV-like media)",
    )
    total_row_label: str = Field(default="Total", description="Spend sheet total row sentinel")
    channel_columns: list[str] = Field(default_factory=lambda: ["Channels", "Channel"])

    @property
    def reserved_keys(self) -> tuple[str, str, str]:
        return (self.date_key, self.baseline_key, self.unattributed_key)


class SpendColumnsConfig(BaseModel):
    """Header names in the spend CSV, first match wins."""

    spend: list[str] = Field(default_factory=lambda: ["Total Spend ($)"])
    revenue: list[str] = Field(
        default_factory=lambda: ["Total Revenue  ($)", "Total Revenue ($)"],
        description="The double-spaced header appears in some exports",
    )
    roi: list[str] = Field(default_factory=lambda: ["Total ROI (%)"])


class WindowConfig(BaseModel):
    """Trailing window sizes, in rows (one row per reporting period)."""

    last_3m: int = Field(default=13, ge=1)
    last_6m: int = Field(default=26, ge=1)
    last_12m: int = Field(default=52, ge=1)


class ServerConfig(BaseModel):
    """API server settings."""

    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8000)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

class IncrementConfig(BaseModel):
    """Root configuration for Increment."""

    project_name: str = Field(default="Increment")
    environment: str = Field(default="development")

    channels: ChannelConfig = Field(default_factory=ChannelConfig)
    spend_columns: SpendColumnsConfig = Field(default_factory=SpendColumnsConfig)
    windows: WindowConfig = Field(default_factory=WindowConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "IncrementConfig":
        """Load config from a YAML file."""
        with open(Path(path)) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Write config to a YAML file."""
        with open(Path(path), "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------

_config: IncrementConfig | None = None


def get_config() -> IncrementConfig:
    """Return the global config instance (creates default if needed)."""
    global _config
    if _config is None:
        _config = IncrementConfig()
    return _config


def set_config(config: IncrementConfig) -> None:
    """Override the global config instance."""
    global _config
    _config = config


def load_config(path: Path | str | None = None) -> IncrementConfig:
    """
    Load config from file, falling back to standard locations, then defaults.
    """
    global _config

    if path is not None:
        _config = IncrementConfig.from_yaml(path)
    else:
        for candidate in [Path("config.yaml"), Path("config/config.yaml")]:
            if candidate.exists():
                _config = IncrementConfig.from_yaml(candidate)
                break
        else:
            _config = IncrementConfig()

    return _config
