# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation of package files into containers."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .constants import CONTAINER_TRANSFER_DIR, TRANSFER_PLACEHOLDER_NAME
from .distrobox import DistroboxClient
from .errors import IntegrityMismatch, NotFoundError, TransferFailure
from .escalation import ExecutionAttempt, execute_attempts, plan_attempts
from .exporting import ExportEngine, ExportReport, notify_host
from .manifest import scan_package_file
from .models import PackageFormat, PackageManifest, SelectedContainer
from .package_commands import install_script, size_script
from .process_utils import combined_output

LOGGER = logging.getLogger(__name__)

_UNSAFE_CHARS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(name: str) -> str:
    """Replace characters outside ``[A-Za-z0-9._-]`` with ``_``."""

    cleaned = _UNSAFE_CHARS.sub("_", name)
    return cleaned or TRANSFER_PLACEHOLDER_NAME


def transfer_destination(source: Path) -> str:
    return f"{CONTAINER_TRANSFER_DIR}/{sanitize_filename(source.name)}"


def parse_reported_size(text: str) -> int | None:
    """Return the first integer printed by the size query, if any."""

    for token in text.split():
        if token.isdigit():
            return int(token)
    return None


@dataclass(frozen=True, slots=True)
class InstallRequest:
    """Everything the pipeline needs to install one package file."""

    source: Path
    package_format: PackageFormat
    target: SelectedContainer
    binaries: tuple[str, ...] = ()
    desktop_entries: tuple[str, ...] = ()
    export: bool = True
    interactive: bool = False


@dataclass(slots=True)
class InstallResult:
    """Outcome of a successful installation."""

    container: str
    destination: str
    manifest: PackageManifest
    attempt: ExecutionAttempt
    export_report: ExportReport | None = None
    warnings: list[str] = field(default_factory=list)


class InstallPipeline:
    """Transfer, verify, pre-scan, install and export a single package."""

    def __init__(self, client: DistroboxClient, exporter: ExportEngine) -> None:
        self._client = client
        self._exporter = exporter

    def transfer(self, container: str, source: Path) -> str:
        """Stream ``source`` into the container and return its in-container path.

        Raises:
            NotFoundError: If ``source`` does not exist.
            TransferFailure: If the copy command fails or the pipe breaks.
        """

        if not source.is_file():
            raise NotFoundError(f"Package file not found: {source}")
        destination = transfer_destination(source)
        completed = self._client.pipe_into(container, destination, source)
        if completed.returncode != 0:
            detail = combined_output(completed) or f"exit status {completed.returncode}"
            raise TransferFailure(f"Copying {source.name} into '{container}' failed: {detail}")
        return destination

    def verify(self, container: str, destination: str, expected: int) -> None:
        """Compare the in-container size of ``destination`` with ``expected``.

        Raises:
            IntegrityMismatch: If the sizes differ or cannot be determined.
        """

        completed = self._client.run_in(container, size_script(destination))
        actual = parse_reported_size(completed.stdout or "") if completed.returncode == 0 else None
        if actual != expected:
            raise IntegrityMismatch(destination, expected=expected, actual=actual)

    def prescan(self, request: InstallRequest, destination: str) -> PackageManifest:
        scanned = scan_package_file(self._client, request.target.name, request.package_format, destination)
        return scanned.with_overrides(binaries=request.binaries, desktop_entries=request.desktop_entries)

    def execute(self, request: InstallRequest, destination: str) -> ExecutionAttempt:
        attempts = plan_attempts(
            self._client,
            request.target.name,
            install_script(request.package_format, destination),
            interactive=request.interactive,
        )
        return execute_attempts(self._client.runner, attempts, container=request.target.name)

    def run(self, request: InstallRequest) -> InstallResult:
        """Install ``request.source`` inside ``request.target``.

        Transfer, integrity and installation failures propagate; export
        problems are collected as warnings on the result.
        """

        container = request.target.name
        try:
            expected = request.source.stat().st_size
        except OSError as exc:
            raise NotFoundError(f"Package file not found: {request.source}") from exc
        destination = self.transfer(container, request.source)
        self.verify(container, destination, expected)
        manifest = self.prescan(request, destination)
        LOGGER.debug(
            "pre-scan of %s found %d binaries and %d desktop entries",
            destination,
            len(manifest.binaries),
            len(manifest.desktop_entries),
        )
        attempt = self.execute(request, destination)
        result = InstallResult(container=container, destination=destination, manifest=manifest, attempt=attempt)
        if request.export and not manifest.is_empty:
            report = self._exporter.export(container, manifest)
            result.export_report = report
            result.warnings.extend(report.warnings)
            notify_host(
                self._client.runner,
                f"Installed in {container}",
                f"Exported {len(manifest.binaries)} bins, {len(manifest.desktop_entries)} apps",
            )
        return result


__all__ = [
    "InstallPipeline",
    "InstallRequest",
    "InstallResult",
    "parse_reported_size",
    "sanitize_filename",
    "transfer_destination",
]
