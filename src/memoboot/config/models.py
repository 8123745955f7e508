"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, memoboot.toml only contains
overrides.  The defaults reproduce the Smart Memo development setup, so a
project with no config file at all bootstraps the same database as before.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- memoboot.toml sections ---


class PostgresConfig(BaseModel):
    """[postgres] section: shared by the container and local backends."""

    model_config = {"frozen": True}

    user: str = "postgres"
    password: str = "mark42"
    database: str = "memo"
    host: str = "localhost"
    port: int = 5432


class SqliteConfig(BaseModel):
    """[sqlite] section.

    ``path`` goes into ``DATABASE_URL`` as written.  A relative path is
    resolved by each child against its own working directory, so with the
    default layout the migration runner (in ``migration/``) and the
    application (in the project root) open different files.  The setup run
    warns about it; use an absolute path to share one file.
    """

    model_config = {"frozen": True}

    path: str = "./memo.db"
    mode: str = "rwc"


class ContainerConfig(BaseModel):
    """[container] section."""

    model_config = {"frozen": True}

    runtime: str = "docker"
    name: str = "smartmemo-postgres"
    image: str = "postgres:15"
    reuse_existing: bool = True


class ReadinessConfig(BaseModel):
    """[readiness] section: bounded poll after the container starts.

    Delays are in seconds.  The delay between probes starts at
    ``initial_delay`` and is multiplied by ``backoff`` after every failed
    probe, capped at ``max_delay``.
    """

    model_config = {"frozen": True}

    max_wait: float = Field(default=30.0, gt=0)
    initial_delay: float = Field(default=0.5, gt=0)
    backoff: float = Field(default=2.0, ge=1.0)
    max_delay: float = Field(default=5.0, gt=0)


class MigrationConfig(BaseModel):
    """[migration] section."""

    model_config = {"frozen": True}

    command: list[str] = Field(default_factory=lambda: ["cargo", "run"], min_length=1)
    workdir: str = "migration"


class SmokeConfig(BaseModel):
    """[smoke] section.

    ``timeout`` of None waits for the application to exit.  With a timeout,
    an application still running at the deadline counts as started.
    """

    model_config = {"frozen": True}

    command: list[str] = Field(default_factory=lambda: ["cargo", "run"], min_length=1)
    timeout: float | None = Field(default=None, gt=0)
    required: bool = True
