"""Blocking child-process execution.

Every external tool memoboot drives (container runtime, migration runner,
application) goes through :class:`ProcessRunner`, so tests can swap in a
recording fake.  The parent environment is never modified: an ``env``
overlay is merged into a copy for the one child that needs it.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

logger = logging.getLogger(__name__)
child_logger = logging.getLogger("memoboot.child")

# Grace period between SIGTERM and SIGKILL for a timed-out child.
_TERMINATE_GRACE = 5.0


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of one child process run."""

    args: tuple[str, ...]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def stderr_tail(self, lines: int = 20) -> str:
        """Last *lines* lines of stderr (stdout when stderr is empty)."""
        text = self.stderr.strip() or self.stdout.strip()
        return "\n".join(text.splitlines()[-lines:])


class ProcessRunner:
    """Run external commands to completion and capture their output.

    With ``echo=True`` each line the child writes is also logged at DEBUG
    on the ``memoboot.child`` logger as it arrives, so ``-v`` shows a
    long ``cargo run`` build live instead of only after it exits.
    """

    def __init__(self, *, echo: bool = False) -> None:
        self._echo = echo

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ProcessOutcome:
        """Run *args* and wait for it to exit.

        Args:
            args: Command and arguments.
            cwd: Working directory for the child.
            env: Variables added to (a copy of) the parent environment.
            timeout: Seconds to wait.  A child still running at the
                deadline is terminated and the outcome has ``timed_out``.

        Raises:
            OSError: The executable could not be launched.
        """
        child_env = {**os.environ, **env} if env else None
        logger.debug("exec: %s (cwd=%s)", " ".join(args), cwd or ".")

        proc = subprocess.Popen(
            list(args),
            cwd=cwd,
            env=child_env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=os.name == "posix",
        )
        if self._echo:
            stdout, stderr, timed_out = self._collect_echoed(proc, Path(args[0]).name, timeout)
        else:
            stdout, stderr, timed_out = self._collect(proc, timeout)

        if timed_out:
            logger.debug("exec timed out after %ss: %s", timeout, args[0])
        else:
            logger.debug("exit %s: %s", proc.returncode, args[0])
        return ProcessOutcome(
            args=tuple(args),
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            timed_out=timed_out,
        )

    def _collect(
        self, proc: subprocess.Popen[str], timeout: float | None
    ) -> tuple[str, str, bool]:
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            stdout, stderr = self._terminate(proc)
            return stdout, stderr, True
        return stdout, stderr, False

    def _collect_echoed(
        self, proc: subprocess.Popen[str], prog: str, timeout: float | None
    ) -> tuple[str, str, bool]:
        out: list[str] = []
        err: list[str] = []
        readers = [
            threading.Thread(target=_pump, args=(pipe, f"{prog}:{name}", sink), daemon=True)
            for pipe, name, sink in ((proc.stdout, "out", out), (proc.stderr, "err", err))
        ]
        for reader in readers:
            reader.start()

        timed_out = False
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            self._signal(proc, signal.SIGTERM)
            try:
                proc.wait(timeout=_TERMINATE_GRACE)
            except subprocess.TimeoutExpired:
                self._signal(proc, signal.SIGKILL if os.name == "posix" else signal.SIGTERM)
                proc.wait()

        for reader in readers:
            reader.join()
        return "".join(out), "".join(err), timed_out

    def _terminate(self, proc: subprocess.Popen[str]) -> tuple[str, str]:
        """Stop a child and its process group, then collect its output."""
        self._signal(proc, signal.SIGTERM)
        try:
            return proc.communicate(timeout=_TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            self._signal(proc, signal.SIGKILL if os.name == "posix" else signal.SIGTERM)
            return proc.communicate()

    @staticmethod
    def _signal(proc: subprocess.Popen[str], sig: int) -> None:
        try:
            if os.name == "posix":
                os.killpg(proc.pid, sig)
            else:
                proc.terminate()
        except ProcessLookupError:
            pass  # already gone


def _pump(pipe: IO[str] | None, label: str, sink: list[str]) -> None:
    """Copy *pipe* into *sink* line by line, logging each line."""
    if pipe is None:
        return
    with pipe:
        for line in pipe:
            sink.append(line)
            child_logger.debug("%s %s", label, line.rstrip("\n"))
