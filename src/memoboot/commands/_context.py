"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Builds services on demand and centralizes result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from memoboot.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from memoboot.config.settings import BootSettings
    from memoboot.infrastructure.process import ProcessRunner
    from memoboot.services.bootstrap import Bootstrapper
    from memoboot.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The process runner is created on first use so ``--help`` and
    ``--version`` never touch external tools.
    """

    def __init__(self, settings: BootSettings) -> None:
        self.settings = settings
        self._runner: ProcessRunner | None = None

        from memoboot.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def runner(self) -> ProcessRunner:
        if self._runner is None:
            from memoboot.infrastructure.process import ProcessRunner

            self._runner = ProcessRunner(echo=self.settings.verbose)
        return self._runner

    def bootstrapper(self) -> Bootstrapper:
        from memoboot.services.bootstrap import Bootstrapper

        return Bootstrapper(self.settings, self.runner)

    @property
    def interactive(self) -> bool:
        return not self.settings.no_interact

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
