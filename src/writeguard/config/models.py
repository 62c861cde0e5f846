"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, writeguard.toml only contains
overrides. A fresh project needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- writeguard.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True, "extra": "forbid"}

    url: str = "sqlite:///writeguard.db"
    echo: bool = False
    create_tables: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True, "extra": "forbid"}

    entry_points: bool = True
    local_dir: str = ".writeguard/plugins"


class WriteguardConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True, "extra": "forbid"}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
