"""ContainerService: provision the PostgreSQL container.

Pipeline: CHECK RUNTIME → START (or reuse) → WAIT UNTIL READY

Readiness is a bounded poll of ``pg_isready`` inside the container with
exponential backoff, not a fixed sleep.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from memoboot.domain.lifecycle import ErrorCode
from memoboot.services.base import BaseService
from memoboot.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from memoboot.config.settings import BootSettings
    from memoboot.domain.backends import ConnectionDescriptor
    from memoboot.infrastructure.process import ProcessOutcome, ProcessRunner

log = structlog.get_logger(__name__)


class ContainerService(BaseService):
    """Drives the container runtime CLI (``docker`` by default)."""

    def __init__(
        self,
        settings: BootSettings,
        runner: ProcessRunner,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, runner)
        self._sleep = sleep
        self._clock = clock

    @property
    def _runtime(self) -> str:
        return self._settings.container.runtime

    @property
    def _name(self) -> str:
        return self._settings.container.name

    def _call(self, *args: str) -> ProcessOutcome:
        return self._runner.run([self._runtime, *args])

    # ------------------------------------------------------------------
    # Runtime check
    # ------------------------------------------------------------------

    def ensure_runtime(self) -> ServiceResult:
        """Check that the container runtime daemon is reachable."""
        op = "ensure_runtime"
        try:
            outcome = self._call("info")
        except OSError as exc:
            return failure(
                op,
                ErrorCode.RUNTIME_UNAVAILABLE,
                f"Container runtime '{self._runtime}' not found: {exc}",
            )
        if not outcome.ok:
            return failure(
                op,
                ErrorCode.RUNTIME_UNAVAILABLE,
                f"Container runtime '{self._runtime}' is not running",
                detail={"stderr": outcome.stderr_tail()},
            )
        log.debug("runtime.ok", runtime=self._runtime)
        return ServiceResult(ok=True, op=op, data={"runtime": self._runtime})

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def _container_state(self) -> bool | None:
        """True if running, False if stopped, None if it doesn't exist."""
        try:
            outcome = self._call(
                "container", "inspect", "--format", "{{.State.Running}}", self._name
            )
        except OSError:
            return None
        if not outcome.ok:
            return None
        return outcome.stdout.strip().lower() == "true"

    def _run_args(self) -> list[str]:
        cfg = self._settings.container
        pg = self._settings.postgres
        env = [f"POSTGRES_PASSWORD={pg.password}", f"POSTGRES_DB={pg.database}"]
        # The image creates "postgres" unless told otherwise.
        if pg.user != "postgres":
            env.insert(0, f"POSTGRES_USER={pg.user}")
        args = ["run", "-d", "--name", cfg.name]
        for pair in env:
            args += ["-e", pair]
        return [*args, "-p", f"{pg.port}:5432", cfg.image]

    def start_container(self, descriptor: ConnectionDescriptor) -> ServiceResult:
        """Launch the database container, or reuse an existing one."""
        op = "start_container"
        cfg = self._settings.container
        data = {"name": cfg.name, "image": cfg.image, "database_url": descriptor.redacted}

        state = self._container_state() if cfg.reuse_existing else None
        if state is True:
            log.info("container.reuse", name=cfg.name)
            return ServiceResult(ok=True, op=op, data={**data, "action": "reused"})

        if state is False:
            action = "started"
            args = ["start", cfg.name]
        else:
            action = "created"
            args = self._run_args()

        log.info("container.start", name=cfg.name, action=action)
        try:
            outcome = self._call(*args)
        except OSError as exc:
            return failure(
                op,
                ErrorCode.CONTAINER_START_FAILED,
                f"Could not run '{self._runtime}': {exc}",
                data=data,
            )
        if not outcome.ok:
            return failure(
                op,
                ErrorCode.CONTAINER_START_FAILED,
                f"Failed to start container '{cfg.name}' (exit {outcome.returncode})",
                detail={"stderr": outcome.stderr_tail()},
                data=data,
            )
        return ServiceResult(ok=True, op=op, data={**data, "action": action})

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def _probe(self) -> bool:
        pg = self._settings.postgres
        try:
            outcome = self._call(
                "exec", self._name, "pg_isready", "-U", pg.user, "-d", pg.database
            )
        except OSError:
            return False
        return outcome.ok

    def wait_until_ready(self) -> ServiceResult:
        """Poll the database until it accepts connections or time runs out."""
        op = "wait_until_ready"
        cfg = self._settings.readiness
        started = self._clock()
        deadline = started + cfg.max_wait
        delay = cfg.initial_delay
        attempts = 0

        while True:
            attempts += 1
            if self._probe():
                waited = round(self._clock() - started, 3)
                log.info("readiness.ok", attempts=attempts, waited_s=waited)
                return ServiceResult(
                    ok=True, op=op, data={"attempts": attempts, "waited_s": waited}
                )

            remaining = deadline - self._clock()
            if remaining <= 0:
                return failure(
                    op,
                    ErrorCode.DATABASE_NOT_READY,
                    f"Database in '{self._name}' not ready after {cfg.max_wait:g}s",
                    detail={"attempts": attempts},
                )
            pause = min(delay, remaining, cfg.max_delay)
            log.debug("readiness.attempt", attempt=attempts, retry_in_s=round(pause, 3))
            self._sleep(pause)
            delay = min(delay * cfg.backoff, cfg.max_delay)
