"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``MEMOBOOT_*`` prefix, nested sections via ``__``
  3. TOML file: ``memoboot.toml`` discovered via walk-up
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from memoboot.config.discovery import find_config
from memoboot.config.models import (
    ContainerConfig,
    MigrationConfig,
    PostgresConfig,
    ReadinessConfig,
    SmokeConfig,
    SqliteConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``memoboot.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class BootSettings(BaseSettings):
    """Unified settings for the memoboot CLI.

    Stored on :class:`~memoboot.commands._context.AppContext` at the CLI
    root level and handed to every service.

    Attributes:
        project_root: Directory the application command runs in (parent of
            ``memoboot.toml``, or CWD if no config found).  The migration
            working directory is resolved relative to it.
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MEMOBOOT_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False

    # --- TOML sections ---
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    sqlite: SqliteConfig = Field(default_factory=SqliteConfig)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    smoke: SmokeConfig = Field(default_factory=SmokeConfig)

    @property
    def migration_dir(self) -> Path:
        return self.project_root / self.migration.workdir

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> BootSettings:
        """Construct settings from a CLI invocation.

        Discovers ``memoboot.toml`` via walk-up (or explicit *config_path*),
        resolves *project_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
            toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                project_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        except ValidationError as exc:
            raise click.ClickException(f"Invalid configuration: {exc}") from exc
        finally:
            _tls.toml_path = None
