# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Host wrappers that run a container's package manager with auto-export."""

from __future__ import annotations

import logging
import shlex
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from .constants import APP_NAME, PM_SHIM_MARKER
from .models import Family

LOGGER = logging.getLogger(__name__)

PACKAGE_MANAGERS: Final[dict[Family, tuple[str, ...]]] = {
    Family.DEBIAN: ("apt", "apt-get"),
    Family.FEDORA: ("dnf",),
    Family.OPENSUSE: ("zypper",),
    Family.ARCH: ("pacman",),
}

Which = Callable[[str], str | None]


class ShimStatus(str, Enum):
    WRITTEN = "written"
    SUFFIXED = "suffixed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class PmShimOutcome:
    manager: str
    container: str
    status: ShimStatus
    path: Path
    reason: str | None = None


def pm_shim_marker_line(container: str) -> str:
    return f"{PM_SHIM_MARKER} container={container}"


def is_own_pm_shim(path: Path, container: str) -> bool:
    """Return ``True`` when ``path`` is a package-manager wrapper written for ``container``."""

    if not path.is_file():
        return False
    try:
        lines = path.read_text(encoding="utf-8").splitlines()[:5]
    except (OSError, UnicodeDecodeError):
        return False
    return pm_shim_marker_line(container) in lines


def render_pm_shim(manager: str, container: str, family: Family) -> str:
    """Return a wrapper that snapshots, runs ``manager`` in ``container`` and exports changes."""

    box = shlex.quote(container)
    fam = shlex.quote(family.key)
    tool = shlex.quote(manager)
    return f"""#!/usr/bin/env sh
{pm_shim_marker_line(container)}
box={box}
fam={fam}
{APP_NAME} pm snapshot --family "$fam" --container "$box" >/dev/null 2>&1 || true
status=0
if distrobox enter --root -n "$box" -- true >/dev/null 2>&1; then
  distrobox enter --root -n "$box" -- {tool} "$@" || status=$?
elif distrobox enter -n "$box" -- sh -c 'command -v sudo' >/dev/null 2>&1; then
  distrobox enter -n "$box" -- sudo {tool} "$@" || status=$?
elif distrobox enter -n "$box" -- sh -c 'command -v doas' >/dev/null 2>&1; then
  distrobox enter -n "$box" -- doas {tool} "$@" || status=$?
else
  distrobox enter -n "$box" -- {tool} "$@" || status=$?
fi
{APP_NAME} pm post-transaction --family "$fam" --container "$box" >/dev/null 2>&1 || true
exit $status
"""


def _suffix(container: str) -> str:
    return "".join(char if char.isalnum() or char in "-_." else "_" for char in container)


def host_has_command(name: str, bin_dir: Path, which: Which) -> bool:
    """Return ``True`` when ``name`` resolves on ``PATH`` outside ``bin_dir``."""

    found = which(name)
    if found is None:
        return False
    resolved = Path(found).resolve()
    return not resolved.is_relative_to(bin_dir.resolve())


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(0o755)


def generate_manager_shim(
    manager: str,
    container: str,
    family: Family,
    bin_dir: Path,
    *,
    which: Which = shutil.which,
) -> PmShimOutcome:
    """Write one package-manager shim without shadowing host tools or foreign files."""

    content = render_pm_shim(manager, container, family)
    target = bin_dir / manager
    alternate = bin_dir / f"{manager}-{_suffix(container)}"
    if host_has_command(manager, bin_dir, which):
        reason = f"host already provides {manager}"
    elif target.exists() and not is_own_pm_shim(target, container):
        reason = f"{target} already exists"
    else:
        _write(target, content)
        return PmShimOutcome(manager, container, ShimStatus.WRITTEN, target)

    if alternate.exists() and not is_own_pm_shim(alternate, container):
        return PmShimOutcome(manager, container, ShimStatus.SKIPPED, alternate, f"{reason}; {alternate.name} exists")
    _write(alternate, content)
    LOGGER.debug("%s; wrote %s", reason, alternate)
    return PmShimOutcome(manager, container, ShimStatus.SUFFIXED, alternate, reason)


def generate_pm_shims(
    defaults: Mapping[str, str],
    bin_dir: Path,
    *,
    which: Which = shutil.which,
) -> list[PmShimOutcome]:
    """Generate shims for every family that has a default container."""

    outcomes: list[PmShimOutcome] = []
    for key, container in sorted(defaults.items()):
        try:
            family = Family.from_key(key)
        except ValueError:
            LOGGER.debug("ignoring unknown family key %s", key)
            continue
        for manager in PACKAGE_MANAGERS[family]:
            outcomes.append(generate_manager_shim(manager, container, family, bin_dir, which=which))
    return outcomes


__all__ = [
    "PACKAGE_MANAGERS",
    "PmShimOutcome",
    "ShimStatus",
    "generate_manager_shim",
    "generate_pm_shims",
    "host_has_command",
    "is_own_pm_shim",
    "pm_shim_marker_line",
    "render_pm_shim",
]
