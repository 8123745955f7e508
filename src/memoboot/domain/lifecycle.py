"""Run phases of a bootstrap.

Linear lifecycle with one branch point::

    start -> menu_shown -> backend_selected
          -> {container_started | container_skipped}
          -> migrations_run -> smoke_tested -> done

Any fatal step moves the run to ``failed``.
"""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """Last phase a bootstrap run reached."""

    START = "start"
    MENU_SHOWN = "menu_shown"
    BACKEND_SELECTED = "backend_selected"
    CONTAINER_STARTED = "container_started"
    CONTAINER_SKIPPED = "container_skipped"
    MIGRATIONS_RUN = "migrations_run"
    SMOKE_TESTED = "smoke_tested"
    DONE = "done"
    FAILED = "failed"


class ErrorCode(StrEnum):
    """``ServiceError.code`` values produced by a bootstrap run."""

    INVALID_CHOICE = "INVALID_CHOICE"
    RUNTIME_UNAVAILABLE = "RUNTIME_UNAVAILABLE"
    CONTAINER_START_FAILED = "CONTAINER_START_FAILED"
    DATABASE_NOT_READY = "DATABASE_NOT_READY"
    MIGRATION_FAILED = "MIGRATION_FAILED"
    APPLICATION_START_FAILED = "APPLICATION_START_FAILED"
