"""SmokeTestService: run the application once to confirm it starts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from memoboot.domain.lifecycle import ErrorCode
from memoboot.services.base import BaseService
from memoboot.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from memoboot.domain.backends import ConnectionDescriptor

log = structlog.get_logger(__name__)


class SmokeTestService(BaseService):
    """Starts the application with the chosen ``DATABASE_URL``.

    With ``[smoke] timeout`` set, a long-running server that is still up at
    the deadline is stopped and counted as started.
    """

    def run(self, descriptor: ConnectionDescriptor) -> ServiceResult:
        op = "smoke_test"
        cfg = self._settings.smoke
        data = {"command": " ".join(cfg.command)}

        log.info("smoke.start", backend=descriptor.kind.value, timeout=cfg.timeout)
        try:
            outcome = self._runner.run(
                cfg.command,
                cwd=self._settings.project_root,
                env=descriptor.as_env(),
                timeout=cfg.timeout,
            )
        except OSError as exc:
            return failure(
                op,
                ErrorCode.APPLICATION_START_FAILED,
                f"Could not launch application '{cfg.command[0]}': {exc}",
                data=data,
            )

        if outcome.timed_out:
            log.info("smoke.still_running", timeout=cfg.timeout)
            return ServiceResult(ok=True, op=op, data={**data, "still_running": True})

        if not outcome.ok:
            return failure(
                op,
                ErrorCode.APPLICATION_START_FAILED,
                f"Application exited with code {outcome.returncode}",
                detail={"stderr": outcome.stderr_tail()},
                data=data,
            )
        return ServiceResult(ok=True, op=op, data={**data, "still_running": False})
