# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Publishing container binaries and desktop entries onto the host."""

from __future__ import annotations

import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from subprocess import CompletedProcess  # nosec B404

from .constants import (
    CONTAINER_APPS_DIR,
    CONTAINER_BIN_DIR,
    DESKTOP_SUFFIX,
    DISTROBOX_EXPORT,
    EXPORT_HOST_MARKER,
    NOTIFY_SEND,
    SHIM_MARKER,
)
from .distrobox import DistroboxClient
from .errors import ExportFailure
from .models import PackageManifest, desktop_basename
from .paths import HostLayout
from .process_utils import OutputMode, ProcessRunner, combined_output

LOGGER = logging.getLogger(__name__)

_EXEC_PREFIX = "Exec="
_ENTER_MARKER = "distrobox enter"


def binary_path(binary: str) -> str:
    """Return the absolute in-container path of ``binary``."""

    return f"/{CONTAINER_BIN_DIR}/{binary}"


def desktop_entry_path(entry: str) -> str:
    """Return the absolute in-container path of a desktop entry."""

    return f"/{CONTAINER_APPS_DIR}/{entry.lstrip('/')}"


def _failure(item: str, completed: CompletedProcess[str]) -> ExportFailure:
    detail = combined_output(completed) or f"exit status {completed.returncode}"
    return ExportFailure(item, detail)


class ExportHelper(ABC):
    """Calling convention of the external export helper."""

    label: str = "helper"

    @abstractmethod
    def export_binary(self, container: str, binary: str) -> None:
        """Publish ``binary`` from ``container``; raise :class:`ExportFailure` on error."""

    @abstractmethod
    def export_app(self, container: str, entry_path: str) -> None:
        """Publish the desktop entry at ``entry_path``; raise :class:`ExportFailure` on error."""

    @abstractmethod
    def unexport_binary(self, container: str, binary: str) -> None:
        """Remove a previously published binary."""

    @abstractmethod
    def unexport_app(self, container: str, entry_path: str) -> None:
        """Remove a previously published desktop entry."""


class HostExportHelper(ExportHelper):
    """Helper releases that accept ``--container`` and run on the host."""

    label = "host"

    def __init__(self, runner: ProcessRunner, *, executable: str = DISTROBOX_EXPORT) -> None:
        self._runner = runner
        self._executable = executable

    def _run(self, container: str, *args: str) -> CompletedProcess[str]:
        return self._runner.run([self._executable, "--container", container, *args])

    def export_binary(self, container: str, binary: str) -> None:
        completed = self._run(container, "--bin", binary)
        if completed.returncode == 0:
            return
        LOGGER.debug("export of %s by name failed, retrying with absolute path", binary)
        completed = self._run(container, "--bin", binary_path(binary))
        if completed.returncode != 0:
            raise _failure(binary, completed)

    def export_app(self, container: str, entry_path: str) -> None:
        completed = self._run(container, "--app", entry_path)
        if completed.returncode != 0:
            raise _failure(entry_path, completed)

    def unexport_binary(self, container: str, binary: str) -> None:
        completed = self._run(container, "--delete", "--bin", binary_path(binary))
        if completed.returncode != 0:
            raise _failure(binary, completed)

    def unexport_app(self, container: str, entry_path: str) -> None:
        completed = self._run(container, "--delete", "--app", entry_path)
        if completed.returncode != 0:
            raise _failure(entry_path, completed)


class ContainerExportHelper(ExportHelper):
    """Older helper releases that must run inside the container with absolute paths."""

    label = "container"

    def __init__(self, client: DistroboxClient, *, executable: str = DISTROBOX_EXPORT) -> None:
        self._client = client
        self._executable = executable

    def _run(self, container: str, *args: str) -> CompletedProcess[str]:
        return self._client.exec_in(container, [self._executable, *args])

    def export_binary(self, container: str, binary: str) -> None:
        completed = self._run(container, "--bin", binary_path(binary))
        if completed.returncode != 0:
            raise _failure(binary, completed)

    def export_app(self, container: str, entry_path: str) -> None:
        completed = self._run(container, "--app", entry_path)
        if completed.returncode != 0:
            raise _failure(entry_path, completed)

    def unexport_binary(self, container: str, binary: str) -> None:
        completed = self._run(container, "--delete", "--bin", binary_path(binary))
        if completed.returncode != 0:
            raise _failure(binary, completed)

    def unexport_app(self, container: str, entry_path: str) -> None:
        completed = self._run(container, "--delete", "--app", entry_path)
        if completed.returncode != 0:
            raise _failure(entry_path, completed)


def select_export_helper(client: DistroboxClient, *, executable: str = DISTROBOX_EXPORT) -> ExportHelper:
    """Probe the helper's help text and return the matching calling convention."""

    probe = client.runner.run([executable, "--help"])
    if EXPORT_HOST_MARKER in combined_output(probe):
        LOGGER.debug("%s supports host-side export", executable)
        return HostExportHelper(client.runner, executable=executable)
    LOGGER.debug("%s requires in-container export", executable)
    return ContainerExportHelper(client, executable=executable)


def shim_marker_line(container: str) -> str:
    return f"{SHIM_MARKER} container={container}"


def render_shim(container: str, command: str) -> str:
    """Return a script that re-enters ``container`` and runs ``command``."""

    return (
        "#!/usr/bin/env sh\n"
        f"{shim_marker_line(container)}\n"
        f'exec distrobox enter -n {shlex.quote(container)} -- {shlex.quote(command)} "$@"\n'
    )


def is_own_shim(path: Path, container: str | None = None) -> bool:
    """Return ``True`` when ``path`` is a shim written by this tool (for ``container``)."""

    if not path.is_file():
        return False
    try:
        lines = path.read_text(encoding="utf-8").splitlines()[:5]
    except (OSError, UnicodeDecodeError):
        return False
    if container is None:
        return any(line.startswith(SHIM_MARKER) for line in lines)
    return shim_marker_line(container) in lines


def write_shim(path: Path, container: str, command: str) -> Path:
    """Write an executable shim at ``path``.

    An existing file is only replaced when it is already a shim for the same
    container.

    Raises:
        ExportFailure: If ``path`` belongs to something else or cannot be written.
    """

    if (path.exists() or path.is_symlink()) and not is_own_shim(path, container):
        raise ExportFailure(path.name, f"{path} exists and was not created by pkgbridge; leaving it untouched")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_shim(container, command), encoding="utf-8")
        path.chmod(0o755)
    except OSError as exc:
        raise ExportFailure(path.name, f"unable to write shim: {exc}") from exc
    return path


def rewrite_exec_lines(content: str, container: str) -> str:
    """Prefix every ``Exec=`` command with a container entry, unless already wrapped."""

    rewritten: list[str] = []
    for line in content.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        ending = line[len(body) :]
        if body.startswith(_EXEC_PREFIX) and _ENTER_MARKER not in body:
            command = body[len(_EXEC_PREFIX) :]
            body = f"{_EXEC_PREFIX}distrobox enter -n {shlex.quote(container)} -- {command}"
        rewritten.append(body + ending)
    return "".join(rewritten)


def desktop_copy_name(entry: str, container: str) -> str:
    """Return ``<stem>.<container>.desktop`` for a colliding desktop entry."""

    base = desktop_basename(entry)
    stem = base[: -len(DESKTOP_SUFFIX)] if base.endswith(DESKTOP_SUFFIX) else base
    return f"{stem}.{container}{DESKTOP_SUFFIX}"


def is_own_desktop_copy(path: Path, container: str) -> bool:
    if not path.is_file():
        return False
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    return f"{_ENTER_MARKER} -n {shlex.quote(container)} " in content


@dataclass(slots=True)
class ExportReport:
    """Outcome of an export or unexport batch."""

    container: str
    exported: list[str] = field(default_factory=list)
    shims: list[Path] = field(default_factory=list)
    desktop_copies: list[Path] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def warn(self, failure: ExportFailure) -> None:
        LOGGER.debug("export warning: %s", failure)
        self.warnings.append(str(failure))

    @property
    def binaries_count(self) -> int:
        return sum(1 for name in self.exported if not name.endswith(DESKTOP_SUFFIX)) + len(self.shims)

    @property
    def apps_count(self) -> int:
        return sum(1 for name in self.exported if name.endswith(DESKTOP_SUFFIX)) + len(self.desktop_copies)


class ExportEngine:
    """Export and unexport manifests with collision-safe naming.

    Host files created outside this tool are never overwritten: a colliding
    binary gets a ``<name>-<container>`` shim and a colliding desktop entry
    gets a ``<stem>.<container>.desktop`` copy with rewritten ``Exec=`` lines.
    Every per-item failure becomes a warning on the returned report.
    """

    def __init__(
        self,
        client: DistroboxClient,
        layout: HostLayout,
        *,
        helper: ExportHelper | None = None,
    ) -> None:
        self._client = client
        self._layout = layout
        self._helper = helper

    @property
    def helper(self) -> ExportHelper:
        if self._helper is None:
            self._helper = select_export_helper(self._client)
        return self._helper

    def export(self, container: str, manifest: PackageManifest) -> ExportReport:
        report = ExportReport(container=container)
        for binary in manifest.binaries:
            try:
                self._export_binary(container, binary, report)
            except ExportFailure as exc:
                report.warn(exc)
        for entry in manifest.desktop_entries:
            try:
                self._export_desktop(container, entry, report)
            except ExportFailure as exc:
                report.warn(exc)
        return report

    def _export_binary(self, container: str, binary: str, report: ExportReport) -> None:
        target = self._layout.bin_dir / binary
        if target.exists() or target.is_symlink():
            if is_own_shim(target, container):
                report.shims.append(write_shim(target, container, binary))
                return
            alternate = self._layout.bin_dir / f"{binary}-{container}"
            report.shims.append(write_shim(alternate, container, binary))
            LOGGER.debug("name collision for %s; exported as %s", binary, alternate.name)
            return
        try:
            self.helper.export_binary(container, binary)
        except ExportFailure as exc:
            report.shims.append(write_shim(target, container, binary))
            report.warn(ExportFailure(binary, f"export helper failed ({exc.reason}); wrote shim instead"))
            return
        report.exported.append(binary)

    def _export_desktop(self, container: str, entry: str, report: ExportReport) -> None:
        base = desktop_basename(entry)
        target = self._layout.apps_dir / base
        if not (target.exists() or target.is_symlink()):
            self.helper.export_app(container, desktop_entry_path(entry))
            report.exported.append(base)
            return
        copy = self._layout.apps_dir / desktop_copy_name(entry, container)
        if (copy.exists() or copy.is_symlink()) and not is_own_desktop_copy(copy, container):
            raise ExportFailure(base, f"{copy} exists and was not created by pkgbridge; leaving it untouched")
        completed = self._client.run_in(container, f"cat {shlex.quote(desktop_entry_path(entry))}")
        if completed.returncode != 0:
            raise _failure(base, completed)
        try:
            copy.parent.mkdir(parents=True, exist_ok=True)
            copy.write_text(rewrite_exec_lines(completed.stdout or "", container), encoding="utf-8")
        except OSError as exc:
            raise ExportFailure(base, f"unable to write {copy}: {exc}") from exc
        report.desktop_copies.append(copy)

    def unexport(self, container: str, manifest: PackageManifest) -> ExportReport:
        """Reverse :meth:`export`; failures are recorded and processing continues."""

        report = ExportReport(container=container)
        for binary in manifest.binaries:
            try:
                self.helper.unexport_binary(container, binary)
                report.removed.append(binary)
            except ExportFailure as exc:
                report.warn(exc)
            for candidate in (self._layout.bin_dir / binary, self._layout.bin_dir / f"{binary}-{container}"):
                self._remove_if(candidate, is_own_shim(candidate, container), report)
        for entry in manifest.desktop_entries:
            base = desktop_basename(entry)
            try:
                self.helper.unexport_app(container, desktop_entry_path(entry))
                report.removed.append(base)
            except ExportFailure as exc:
                report.warn(exc)
            copy = self._layout.apps_dir / desktop_copy_name(entry, container)
            self._remove_if(copy, is_own_desktop_copy(copy, container), report)
        return report

    @staticmethod
    def _remove_if(path: Path, owned: bool, report: ExportReport) -> None:
        if not owned:
            return
        try:
            path.unlink()
        except OSError as exc:
            report.warn(ExportFailure(path.name, f"unable to remove: {exc}"))
            return
        report.removed.append(path.name)


def notify_host(runner: ProcessRunner, summary: str, body: str) -> None:
    """Send a desktop notification; silently ignored when unavailable."""

    completed = runner.run([NOTIFY_SEND, summary, body], output=OutputMode.DISCARD)
    if completed.returncode != 0:
        LOGGER.debug("notification not delivered (status %s)", completed.returncode)


__all__ = [
    "ContainerExportHelper",
    "ExportEngine",
    "ExportHelper",
    "ExportReport",
    "HostExportHelper",
    "desktop_copy_name",
    "is_own_shim",
    "notify_host",
    "render_shim",
    "rewrite_exec_lines",
    "select_export_helper",
    "shim_marker_line",
    "write_shim",
]
