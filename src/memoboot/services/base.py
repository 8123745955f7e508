"""BaseService: abstract foundation for all memoboot services.

Every service receives the resolved :class:`BootSettings` and a
:class:`ProcessRunner` at construction time.  All external commands are
issued through the runner, never through ``subprocess`` directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memoboot.config.settings import BootSettings
    from memoboot.infrastructure.process import ProcessRunner


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class MigrationService(BaseService):
            def run(self, descriptor) -> ServiceResult:
                outcome = self._runner.run([...], env=descriptor.as_env())
                ...
    """

    def __init__(self, settings: BootSettings, runner: ProcessRunner) -> None:
        self._settings = settings
        self._runner = runner

    @property
    def settings(self) -> BootSettings:
        return self._settings
