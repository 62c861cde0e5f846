"""WriteguardSettings: CLI flags, env vars and ``writeguard.toml`` in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``WRITEGUARD_*`` prefix, ``__`` for nested keys
     (``WRITEGUARD_DATABASE__URL``)
  3. Config file: ``writeguard.toml``, located by :func:`find_config`
  4. Code defaults baked into the section models

Relative SQLite paths and the local plugin directory resolve against
``project_root``, the directory holding the config file.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from sqlalchemy.engine import make_url

from writeguard.config.discovery import find_config, read_config_file
from writeguard.config.models import DatabaseConfig, PluginsConfig

# Values read from the config file for the settings object being built.
_file_values: ContextVar[dict[str, Any] | None] = ContextVar(
    "writeguard_file_values", default=None
)


class ConfigFileSource(PydanticBaseSettingsSource):
    """Settings source over already-parsed ``writeguard.toml`` values."""

    def __init__(self, settings_cls: type[BaseSettings], values: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._values = values

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, field_name in self._values

    def __call__(self) -> dict[str, Any]:
        return dict(self._values)


class WriteguardSettings(BaseSettings):
    """Frozen settings for one CLI invocation or embedding.

    Attributes:
        project_root: Directory relative paths resolve against (parent of
            ``writeguard.toml``, or CWD if no config found).
        config_path: The config file in use, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "WRITEGUARD_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- writeguard.toml sections ---
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            ConfigFileSource(settings_cls, _file_values.get() or {}),
        )

    @property
    def database_url(self) -> str:
        """Database URL with a relative SQLite path resolved against project_root."""
        url = make_url(self.database.url)
        if url.get_backend_name() != "sqlite":
            return self.database.url
        if url.database in (None, "", ":memory:") or Path(url.database).is_absolute():
            return self.database.url
        resolved = self.project_root / url.database
        return url.set(database=str(resolved)).render_as_string(hide_password=False)

    @property
    def local_plugin_dir(self) -> Path:
        return self.project_root / self.plugins.local_dir

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> WriteguardSettings:
        """Build settings for a CLI invocation.

        An explicit *config_path* that does not exist means "no config file";
        discovery is not attempted in that case.

        Raises:
            click.ClickException: If the config file cannot be used.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                toml_path = None
        else:
            toml_path = find_config(project_root)

        if project_root is None:
            project_root = toml_path.parent if toml_path else Path.cwd()

        token = _file_values.set(read_config_file(toml_path) if toml_path else {})
        try:
            return cls(project_root=project_root, config_path=toml_path, **cli_flags)
        finally:
            _file_values.reset(token)
