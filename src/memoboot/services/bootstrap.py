"""Bootstrapper: the end-to-end database setup run.

Pipeline: SELECT → [RUNTIME CHECK → START CONTAINER → WAIT] → MIGRATE → SMOKE TEST

The bracketed steps run only for the container backend.  Every step except
the smoke test is fatal: the run stops at the first failure and reports it.
The smoke test is fatal unless ``[smoke] required = false``, in which case a
failure becomes a warning.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from memoboot.config.logging import bind_run_context, run_context
from memoboot.domain.backends import (
    BACKENDS,
    BackendKind,
    ConnectionDescriptor,
    InvalidChoiceError,
    render_menu,
    select_backend,
)
from memoboot.domain.lifecycle import ErrorCode, Phase
from memoboot.services.base import BaseService
from memoboot.services.container import ContainerService
from memoboot.services.migrate import MigrationService
from memoboot.services.result import ServiceResult, failure
from memoboot.services.smoke import SmokeTestService

if TYPE_CHECKING:
    from memoboot.config.settings import BootSettings
    from memoboot.infrastructure.process import ProcessRunner

log = structlog.get_logger(__name__)


class _RunTracker:
    """Collects step records, warnings, and the phase of one run."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self.phase = Phase.START
        self.steps: list[dict[str, Any]] = []
        self.warnings: list[str] = []
        self.data: dict[str, Any] = {}

    def step(self, name: str, call: Callable[[], ServiceResult]) -> ServiceResult:
        started = self._clock()
        result = call()
        elapsed = (self._clock() - started) * 1000
        self.steps.append(
            {
                "name": name,
                "ok": result.ok,
                "duration_ms": round(elapsed, 2),
                "detail": _step_detail(result),
            }
        )
        self.warnings.extend(result.warnings)
        return result

    def payload(self) -> dict[str, Any]:
        return {**self.data, "phase": self.phase.value, "steps": list(self.steps)}

    def fail(self, op: str, result: ServiceResult) -> ServiceResult:
        self.data["failed_step"] = result.op
        self.phase = Phase.FAILED
        err = result.error
        log.error("setup.failed", step=result.op, code=err.code if err else None)
        return ServiceResult(
            ok=False,
            op=op,
            data=self.payload(),
            warnings=self.warnings,
            error=err,
        )


def _step_detail(result: ServiceResult) -> str:
    if result.error is not None:
        return result.error.message
    d = result.data
    if "database_url" in d and "action" not in d:
        return str(d["database_url"])
    if "action" in d:
        return f"{d['action']} {d.get('name', '')}".strip()
    if "attempts" in d:
        return f"ready after {d['attempts']} attempt(s)"
    if d.get("still_running"):
        return "still running at timeout"
    if "command" in d:
        return str(d["command"])
    return ""


class Bootstrapper(BaseService):
    """Choose a backend, provision it, migrate, and smoke-test the app.

    Usage::

        boot = Bootstrapper(settings, ProcessRunner())
        result = boot.run(prompt=lambda menu: input(menu + "\\n> "))
    """

    def __init__(
        self,
        settings: BootSettings,
        runner: ProcessRunner,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, runner)
        self._clock = clock
        self._containers = ContainerService(settings, runner, sleep=sleep, clock=clock)
        self._migrations = MigrationService(settings, runner)
        self._smoke = SmokeTestService(settings, runner)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def describe(self, choice: str) -> ConnectionDescriptor:
        """Resolve *choice* to a descriptor.  Raises InvalidChoiceError."""
        return select_backend(
            choice,
            postgres=self._settings.postgres,
            sqlite=self._settings.sqlite,
        )

    def select_backend(self, choice: str) -> ServiceResult:
        op = "select_backend"
        try:
            descriptor = self.describe(choice)
        except InvalidChoiceError as exc:
            return failure(op, ErrorCode.INVALID_CHOICE, str(exc), detail={"choice": choice})
        return ServiceResult(
            ok=True,
            op=op,
            data={"backend": descriptor.kind.value, "database_url": descriptor.redacted},
        )

    def ensure_container_runtime(self) -> ServiceResult:
        return self._containers.ensure_runtime()

    def start_database_container(self, descriptor: ConnectionDescriptor) -> ServiceResult:
        return self._containers.start_container(descriptor)

    def wait_for_database(self) -> ServiceResult:
        return self._containers.wait_until_ready()

    def run_migrations(self, descriptor: ConnectionDescriptor) -> ServiceResult:
        return self._migrations.run(descriptor)

    def smoke_test_application(self, descriptor: ConnectionDescriptor) -> ServiceResult:
        return self._smoke.run(descriptor)

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(
        self,
        choice: str | None = None,
        *,
        prompt: Callable[[str], str] | None = None,
    ) -> ServiceResult:
        """Run the whole setup.

        Every log event emitted during the run carries a short ``run_id``
        and, once selected, the ``backend``.

        Args:
            choice: Menu key or alias.  When None, *prompt* is called with
                the menu text and must return the user's answer.
            prompt: Interactive reader used when *choice* is None.
        """
        with run_context(run_id=uuid.uuid4().hex[:8]):
            return self._run(choice, prompt)

    def _run(self, choice: str | None, prompt: Callable[[str], str] | None) -> ServiceResult:
        op = "setup"
        tracker = _RunTracker(self._clock)

        if choice is None:
            if prompt is None:
                return tracker.fail(
                    op,
                    failure(
                        "select_backend",
                        ErrorCode.INVALID_CHOICE,
                        "No backend chosen (pass --backend in non-interactive mode)",
                    ),
                )
            tracker.phase = Phase.MENU_SHOWN
            choice = prompt(render_menu())

        selected = tracker.step("select_backend", lambda: self.select_backend(choice))
        if not selected.ok:
            return tracker.fail(op, selected)
        descriptor = self.describe(choice)
        tracker.phase = Phase.BACKEND_SELECTED
        tracker.data.update(
            backend=descriptor.kind.value,
            database_url=descriptor.redacted,
        )
        bind_run_context(backend=descriptor.kind.value)
        log.info("setup.backend")
        if warning := self._sqlite_location_warning(descriptor):
            tracker.warnings.append(warning)

        if descriptor.backend.needs_container:
            container_steps: tuple[tuple[str, Callable[[], ServiceResult]], ...] = (
                ("ensure_runtime", self.ensure_container_runtime),
                ("start_container", lambda: self.start_database_container(descriptor)),
                ("wait_until_ready", self.wait_for_database),
            )
            for name, call in container_steps:
                result = tracker.step(name, call)
                if not result.ok:
                    return tracker.fail(op, result)
            tracker.phase = Phase.CONTAINER_STARTED
        else:
            tracker.phase = Phase.CONTAINER_SKIPPED

        migrated = tracker.step("run_migrations", lambda: self.run_migrations(descriptor))
        if not migrated.ok:
            return tracker.fail(op, migrated)
        tracker.phase = Phase.MIGRATIONS_RUN

        smoke = tracker.step("smoke_test", lambda: self.smoke_test_application(descriptor))
        if not smoke.ok:
            if self._settings.smoke.required:
                return tracker.fail(op, smoke)
            msg = smoke.error.message if smoke.error else "unknown error"
            tracker.warnings.append(f"Smoke test failed: {msg}")
        tracker.phase = Phase.SMOKE_TESTED

        tracker.phase = Phase.DONE
        log.info("setup.done")
        return ServiceResult(ok=True, op=op, data=tracker.payload(), warnings=tracker.warnings)

    def _sqlite_location_warning(self, descriptor: ConnectionDescriptor) -> str | None:
        """Warn when migrations and the app would open different SQLite files.

        A relative ``[sqlite] path`` resolves against each child's working
        directory: the migration runner's is ``[migration] workdir``, the
        application's is the project root.
        """
        if descriptor.kind is not BackendKind.SQLITE:
            return None
        raw = self._settings.sqlite.path
        path = Path(raw)
        root = self._settings.project_root
        migration_dir = self._settings.migration_dir
        if path.is_absolute() or migration_dir.resolve() == root.resolve():
            return None
        return (
            f"SQLite path '{raw}' is relative: migrations write {migration_dir / path}, "
            f"the application opens {root / path}"
        )

    def list_backends(self) -> ServiceResult:
        """The menu with the descriptor each option would produce."""
        items: list[dict[str, Any]] = []
        for backend in BACKENDS:
            descriptor = self.describe(backend.key)
            items.append(
                {
                    "key": backend.key,
                    "backend": backend.kind.value,
                    "label": backend.label,
                    "database_url": descriptor.redacted,
                    "container": backend.needs_container,
                }
            )
        return ServiceResult(ok=True, op="backends", data={"items": items})
