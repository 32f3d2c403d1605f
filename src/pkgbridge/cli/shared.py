# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (context, logging, errors)."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import cached_property

import typer
from rich.console import Console

from ..console import detect_tty, get_console_manager, is_interactive
from ..distrobox import DistroboxClient
from ..errors import PkgBridgeError
from ..exporting import ExportEngine, ExportReport
from ..families import FamilyClassifier
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import warn as core_warn
from ..paths import HostLayout
from ..process_utils import ProcessRunner, SubprocessRunner
from ..selection import Prompter, TerminalPrompter

PACKAGE_LOGGER = logging.getLogger("pkgbridge")


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji settings."""

    use_emoji: bool

    def info(self, message: str) -> None:
        core_info(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        core_ok(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        core_warn(message, use_emoji=self.use_emoji)

    def fail(self, message: str) -> None:
        core_fail(message, use_emoji=self.use_emoji)

    def echo(self, message: str) -> None:
        typer.echo(message)


def build_cli_logger(*, emoji: bool) -> CLILogger:
    """Return a ``CLILogger`` configured for the provided emoji preference."""

    return CLILogger(use_emoji=emoji)


def configure_debug_logging(enabled: bool) -> None:
    """Stream ``pkgbridge`` debug records to stderr; idempotent."""

    if not enabled or getattr(PACKAGE_LOGGER, "_pkgbridge_verbose_configured", False):
        return
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    PACKAGE_LOGGER.addHandler(handler)
    PACKAGE_LOGGER.setLevel(logging.DEBUG)
    setattr(PACKAGE_LOGGER, "_pkgbridge_verbose_configured", True)


@dataclass
class CLIContext:
    """Collaborators shared by every command of one invocation.

    Tests pass a pre-built instance through ``CliRunner.invoke(obj=...)`` to
    substitute the process runner, host layout and prompts.
    """

    runner: ProcessRunner = field(default_factory=SubprocessRunner)
    layout: HostLayout = field(default_factory=HostLayout.from_env)
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    interactive: bool = field(default_factory=is_interactive)
    prompter: Prompter = field(default_factory=TerminalPrompter)
    emoji: bool = True

    @property
    def logger(self) -> CLILogger:
        return build_cli_logger(emoji=self.emoji)

    @property
    def console(self) -> Console:
        return get_console_manager().get(color=detect_tty(), emoji=self.emoji)

    @cached_property
    def client(self) -> DistroboxClient:
        return DistroboxClient(self.runner)

    @cached_property
    def classifier(self) -> FamilyClassifier:
        return FamilyClassifier(self.client)

    @cached_property
    def exporter(self) -> ExportEngine:
        return ExportEngine(self.client, self.layout)


def get_context(ctx: typer.Context) -> CLIContext:
    """Return the :class:`CLIContext` attached to ``ctx`` (creating one if needed)."""

    return ctx.ensure_object(CLIContext)


@contextmanager
def handle_errors(logger: CLILogger) -> Iterator[None]:
    """Turn domain and CLI errors into a single failure line and a non-zero exit."""

    try:
        yield
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    except PkgBridgeError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc


def render_export_report(report: ExportReport, logger: CLILogger) -> None:
    """Print one line per exported artefact followed by any warnings."""

    for name in report.exported:
        logger.ok(f"Exported {name}")
    for path in report.shims:
        logger.ok(f"Wrote shim {path.name} for '{report.container}'")
    for path in report.desktop_copies:
        logger.ok(f"App collision; exported as {path.name}")
    for name in report.removed:
        logger.info(f"Removed export {name}")
    for message in report.warnings:
        logger.warn(message)


__all__ = [
    "CLIContext",
    "CLIError",
    "CLILogger",
    "build_cli_logger",
    "configure_debug_logging",
    "get_context",
    "handle_errors",
    "render_export_report",
]
