"""Backend menu and connection descriptors.

The menu is fixed: three database configurations keyed ``1``-``3``.  A
selection produces exactly one :class:`ConnectionDescriptor`, which is the
``DATABASE_URL`` handed to the migration runner and the application.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import quote

from memoboot.config.models import PostgresConfig, SqliteConfig


class BackendKind(StrEnum):
    """Supported database configurations."""

    CONTAINER = "container"
    SQLITE = "sqlite"
    LOCAL = "local"


@dataclass(frozen=True)
class Backend:
    """One entry of the selection menu."""

    key: str
    kind: BackendKind
    label: str

    @property
    def needs_container(self) -> bool:
        return self.kind is BackendKind.CONTAINER


BACKENDS: tuple[Backend, ...] = (
    Backend("1", BackendKind.CONTAINER, "PostgreSQL in a Docker container"),
    Backend("2", BackendKind.SQLITE, "SQLite file"),
    Backend("3", BackendKind.LOCAL, "Locally installed PostgreSQL"),
)

_ALIASES: dict[str, str] = {
    "container": "1",
    "docker": "1",
    "sqlite": "2",
    "local": "3",
}


@dataclass(frozen=True)
class ConnectionDescriptor:
    """How to reach the chosen database.

    ``redacted`` replaces the password so the descriptor can be printed.
    """

    backend: Backend
    url: str
    redacted: str

    @property
    def kind(self) -> BackendKind:
        return self.backend.kind

    def as_env(self) -> dict[str, str]:
        """Environment overlay for child processes."""
        return {"DATABASE_URL": self.url}


class InvalidChoiceError(ValueError):
    """Raised when a menu selection is not one of the offered backends."""

    def __init__(self, choice: str) -> None:
        self.choice = choice
        valid = ", ".join(b.key for b in BACKENDS)
        super().__init__(f"Invalid choice {choice!r}; expected one of {valid}")


def postgres_url(cfg: PostgresConfig, *, redact: bool = False) -> str:
    password = "***" if redact else quote(cfg.password, safe="")
    user = quote(cfg.user, safe="")
    return f"postgres://{user}:{password}@{cfg.host}:{cfg.port}/{cfg.database}"


def sqlite_url(cfg: SqliteConfig) -> str:
    return f"sqlite://{cfg.path}?mode={cfg.mode}"


def find_backend(choice: str) -> Backend:
    """Resolve a menu key (or alias) to its :class:`Backend`.

    Surrounding whitespace is ignored, matching a shell ``read``.
    """
    key = choice.strip().lower()
    key = _ALIASES.get(key, key)
    for backend in BACKENDS:
        if backend.key == key:
            return backend
    raise InvalidChoiceError(choice)


def select_backend(
    choice: str,
    *,
    postgres: PostgresConfig,
    sqlite: SqliteConfig,
) -> ConnectionDescriptor:
    """Map a menu selection to its connection descriptor.

    ``1`` and ``3`` share the PostgreSQL credentials; they differ only in
    whether a container is provisioned.

    Raises:
        InvalidChoiceError: *choice* is not a menu key or alias.
    """
    backend = find_backend(choice)
    if backend.kind is BackendKind.SQLITE:
        url = sqlite_url(sqlite)
        return ConnectionDescriptor(backend=backend, url=url, redacted=url)
    return ConnectionDescriptor(
        backend=backend,
        url=postgres_url(postgres),
        redacted=postgres_url(postgres, redact=True),
    )


def render_menu() -> str:
    lines = ["Choose a database backend:"]
    lines.extend(f"  {b.key}) {b.label}" for b in BACKENDS)
    return "\n".join(lines)
