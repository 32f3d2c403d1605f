# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Host environment diagnostics."""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from .constants import APP_NAME, DISTROBOX, DISTROBOX_EXPORT, NOTIFY_SEND
from .paths import HostLayout

_TOOLS: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("distrobox", (DISTROBOX,)),
    ("container runtime", ("podman", "docker")),
    ("distrobox-export", (DISTROBOX_EXPORT,)),
    ("xdg-mime", ("xdg-mime",)),
    ("update-desktop-database", ("update-desktop-database",)),
    ("notify-send", (NOTIFY_SEND,)),
)


@dataclass(slots=True)
class EnvironmentCheck:
    """Represents the outcome of a doctor environment probe."""

    name: str
    ok: bool
    detail: str

    @property
    def status(self) -> str:
        return "yes" if self.ok else "no"


def _first_available(candidates: tuple[str, ...], which: Callable[[str], str | None]) -> str | None:
    for candidate in candidates:
        found = which(candidate)
        if found:
            return found
    return None


def is_writable(path: Path) -> bool:
    """Return ``True`` when ``path`` (or its nearest existing parent) is writable."""

    probe = path
    while not probe.exists():
        if probe.parent == probe:
            return False
        probe = probe.parent
    return os.access(probe, os.W_OK)


def path_contains(directory: Path, path_value: str) -> bool:
    target = directory.expanduser().resolve()
    for entry in path_value.split(os.pathsep):
        if entry and Path(entry).expanduser().resolve() == target:
            return True
    return False


def collect_checks(
    layout: HostLayout,
    *,
    env: Mapping[str, str] | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> list[EnvironmentCheck]:
    """Probe host tools and directories."""

    source = os.environ if env is None else env
    checks: list[EnvironmentCheck] = []
    for label, candidates in _TOOLS:
        found = _first_available(candidates, which)
        checks.append(EnvironmentCheck(label, found is not None, found or "not found on PATH"))
    for label, directory in (("binaries dir", layout.bin_dir), ("applications dir", layout.apps_dir)):
        checks.append(EnvironmentCheck(f"{label} exists", directory.is_dir(), str(directory)))
        checks.append(EnvironmentCheck(f"{label} writable", is_writable(directory), str(directory)))
    on_path = path_contains(layout.bin_dir, source.get("PATH", ""))
    checks.append(EnvironmentCheck("binaries dir on PATH", on_path, str(layout.bin_dir)))
    return checks


def run_doctor(layout: HostLayout, *, console: Console, checks: list[EnvironmentCheck] | None = None) -> int:
    """Render the diagnostics table; always returns ``0``."""

    console.print(Rule(f"[bold cyan]{APP_NAME} doctor[/bold cyan]"))
    table = Table(title="Environment", box=box.SIMPLE, expand=True)
    table.add_column("Check", style="bold")
    table.add_column("Status", style="bold")
    table.add_column("Details", overflow="fold")
    for check in checks if checks is not None else collect_checks(layout):
        style = "green" if check.ok else "red"
        table.add_row(check.name, f"[{style}]{check.status}[/]", check.detail or "-")
    console.print(table)
    return 0


__all__ = ["EnvironmentCheck", "collect_checks", "is_writable", "path_contains", "run_doctor"]
