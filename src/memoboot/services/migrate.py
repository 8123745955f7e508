"""MigrationService: run the project's migration runner.

The runner is an external program (``cargo run`` in ``migration/`` by
default).  It reads ``DATABASE_URL`` from the environment overlay built from
the chosen connection descriptor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from memoboot.domain.lifecycle import ErrorCode
from memoboot.services.base import BaseService
from memoboot.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from memoboot.domain.backends import ConnectionDescriptor

log = structlog.get_logger(__name__)


class MigrationService(BaseService):
    """Runs database migrations against the chosen backend."""

    def run(self, descriptor: ConnectionDescriptor) -> ServiceResult:
        op = "run_migrations"
        command = self._settings.migration.command
        workdir = self._settings.migration_dir
        data = {"command": " ".join(command), "workdir": str(workdir)}

        if not workdir.is_dir():
            return failure(
                op,
                ErrorCode.MIGRATION_FAILED,
                f"Migration directory not found: {workdir}",
                data=data,
            )

        log.info("migration.start", workdir=str(workdir), backend=descriptor.kind.value)
        try:
            outcome = self._runner.run(command, cwd=workdir, env=descriptor.as_env())
        except OSError as exc:
            return failure(
                op,
                ErrorCode.MIGRATION_FAILED,
                f"Could not launch migration runner '{command[0]}': {exc}",
                data=data,
            )

        if not outcome.ok:
            return failure(
                op,
                ErrorCode.MIGRATION_FAILED,
                f"Migrations failed (exit {outcome.returncode})",
                detail={"stderr": outcome.stderr_tail()},
                data=data,
            )
        log.info("migration.done")
        return ServiceResult(ok=True, op=op, data=data)
