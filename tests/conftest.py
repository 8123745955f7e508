"""Shared pytest fixtures and test helpers for memoboot tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import pytest
from click.testing import CliRunner

from memoboot.config.settings import BootSettings
from memoboot.infrastructure.process import ProcessOutcome
from memoboot.services.bootstrap import Bootstrapper

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Call:
    """One recorded ProcessRunner.run invocation."""

    args: tuple[str, ...]
    cwd: Path | None
    env: dict[str, str] | None
    timeout: float | None


Scripted = int | ProcessOutcome | BaseException


class FakeRunner:
    """Recording stand-in for ProcessRunner.

    Every command exits 0 unless scripted.  ``script(prefix, *results)``
    matches calls whose args start with *prefix*; results are consumed in
    order and the last one repeats.  An int is a return code, an exception
    is raised.
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._scripts: list[tuple[tuple[str, ...], list[Scripted]]] = []

    def script(self, prefix: tuple[str, ...], *results: Scripted) -> None:
        self._scripts.insert(0, (prefix, list(results)))

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ProcessOutcome:
        argv = tuple(args)
        self.calls.append(Call(argv, cwd, dict(env) if env is not None else None, timeout))

        result: Scripted = 0
        for prefix, results in self._scripts:
            if argv[: len(prefix)] == prefix:
                result = results.pop(0) if len(results) > 1 else results[0]
                break

        if isinstance(result, BaseException):
            raise result
        if isinstance(result, int):
            return ProcessOutcome(args=argv, returncode=result)
        return result

    # --- inspection helpers ---

    def runtime_calls(self, runtime: str = "docker") -> list[Call]:
        return [c for c in self.calls if c.args[0] == runtime]

    def start_calls(self, runtime: str = "docker") -> list[Call]:
        return [c for c in self.runtime_calls(runtime) if c.args[1] in {"run", "start"}]

    def calls_to(self, program: str) -> list[Call]:
        return [c for c in self.calls if c.args[0] == program]


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def outcome(returncode: int = 0, *, stdout: str = "", stderr: str = "") -> ProcessOutcome:
    return ProcessOutcome(args=(), returncode=returncode, stdout=stdout, stderr=stderr)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() so handlers never outlive a CliRunner stream."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    boot = logging.getLogger("memoboot")
    boot_level = boot.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    boot.setLevel(boot_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary project with a ``migration/`` directory, used as CWD."""
    (tmp_path / "migration").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MEMOBOOT_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> BootSettings:
    return BootSettings.from_cli(project_root=project_root)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """FakeRunner where the database container does not exist yet."""
    runner = FakeRunner()
    runner.script(("docker", "container", "inspect"), outcome(1, stderr="No such container"))
    return runner


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bootstrapper(settings: BootSettings, fake_runner: FakeRunner, clock: FakeClock) -> Bootstrapper:
    return Bootstrapper(settings, fake_runner, sleep=clock.sleep, clock=clock)


@pytest.fixture
def cli_fake_runner(
    fake_runner: FakeRunner, project_root: Path, monkeypatch: pytest.MonkeyPatch
) -> FakeRunner:
    """Route every process the CLI launches to ``fake_runner``."""
    monkeypatch.setattr(
        "memoboot.infrastructure.process.ProcessRunner", lambda **_: fake_runner
    )
    return fake_runner
