"""AppContext: per-invocation state handed to every command via ``@click.pass_obj``."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import click

from writeguard.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from writeguard.config.settings import WriteguardSettings
    from writeguard.infrastructure.store import Store
    from writeguard.services.result import ServiceResult


class AppContext:
    """Settings, the lazily opened Store, and result emission.

    Plugins are loaded and tables touched only when a command first asks
    for :attr:`store`, so ``--help``, ``--version`` and ``--examples`` work
    even when the project's type registrations are broken.
    """

    def __init__(self, settings: WriteguardSettings) -> None:
        from writeguard.config.logging import configure_logging
        from writeguard.services.telemetry import enable_telemetry

        self.settings = settings
        self._store: Store | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @cached_property
    def output(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    @property
    def store(self) -> Store:
        """Open the Store on first use.

        Raises:
            click.ClickException: If a plugin's type registration is invalid.
        """
        if self._store is None:
            from writeguard.bootstrap import open_store
            from writeguard.domain.errors import ConfigurationError

            try:
                self._store = open_store(self.settings)
            except ConfigurationError as exc:
                msg = f"Invalid type registration: {exc}"
                raise click.ClickException(msg) from exc
        return self._store

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; exit 1 if it failed.

        Successful output goes to stdout. Failures and, outside JSON mode,
        warnings go to stderr so piping stdout only ever carries results.
        """
        text = format_result(result, settings=self.output)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)
        click.echo(text)
        if not self.output.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
