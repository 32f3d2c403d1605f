# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installed-package snapshots and post-transaction auto-export."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .distrobox import DistroboxClient
from .errors import PkgBridgeError
from .exporting import ExportEngine, ExportReport
from .manifest import scan_installed_package
from .models import Family
from .package_commands import inventory_script
from .paths import HostLayout
from .process_utils import combined_output

LOGGER = logging.getLogger(__name__)

Inventory = dict[str, str]


class InventoryQueryError(PkgBridgeError):
    """Raised when the installed-package inventory cannot be listed."""


def parse_inventory(text: str) -> Inventory:
    """Parse ``name<TAB>version`` lines; whitespace-separated lines are accepted too."""

    inventory: Inventory = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if "\t" in line:
            name, _, version = line.partition("\t")
        else:
            name, _, version = line.partition(" ")
        name = name.strip()
        if name:
            inventory[name] = version.strip()
    return inventory


def render_inventory(inventory: Mapping[str, str]) -> str:
    return "".join(f"{name}\t{version}\n" for name, version in sorted(inventory.items()))


def query_inventory(client: DistroboxClient, container: str, family: Family) -> Inventory:
    """Return the installed packages of ``container`` as ``name -> version``.

    Raises:
        InventoryQueryError: If the package query fails.
    """

    completed = client.run_in(container, inventory_script(family))
    if completed.returncode != 0:
        detail = combined_output(completed) or f"exit status {completed.returncode}"
        raise InventoryQueryError(f"Listing installed packages in '{container}' failed: {detail}")
    return parse_inventory(completed.stdout or "")


@dataclass(frozen=True, slots=True)
class InventoryDiff:
    new: frozenset[str]
    upgraded: frozenset[str]

    @property
    def changed(self) -> frozenset[str]:
        return self.new | self.upgraded


def diff_inventories(before: Mapping[str, str], after: Mapping[str, str]) -> InventoryDiff:
    """Classify packages in ``after`` as new or upgraded relative to ``before``.

    Packages missing from ``after`` are not reported.
    """

    new = frozenset(name for name in after if name not in before)
    upgraded = frozenset(name for name, version in after.items() if name in before and before[name] != version)
    return InventoryDiff(new=new, upgraded=upgraded)


class SnapshotStore:
    """Per-container snapshot files under the host state directory."""

    def __init__(self, layout: HostLayout) -> None:
        self._layout = layout

    def path(self, container: str) -> Path:
        return self._layout.snapshot_path(container)

    def load(self, container: str) -> Inventory:
        path = self.path(container)
        try:
            return parse_inventory(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("ignoring unreadable snapshot %s: %s", path, exc)
            return {}

    def save(self, container: str, inventory: Mapping[str, str]) -> Path:
        path = self.path(container)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_inventory(inventory), encoding="utf-8")
        return path


@dataclass(slots=True)
class PostTransactionResult:
    container: str
    diff: InventoryDiff
    reports: dict[str, ExportReport] = field(default_factory=dict)
    snapshot: Path | None = None
    warnings: list[str] = field(default_factory=list)


class SnapshotDiffEngine:
    """Snapshot inventories and export whatever a transaction added or upgraded."""

    def __init__(self, client: DistroboxClient, exporter: ExportEngine, store: SnapshotStore) -> None:
        self._client = client
        self._exporter = exporter
        self._store = store

    def snapshot(self, container: str, family: Family) -> Path:
        """Record the current inventory of ``container``, replacing any previous one."""

        return self._store.save(container, query_inventory(self._client, container, family))

    def post_transaction(self, container: str, family: Family) -> PostTransactionResult:
        """Export every new or upgraded package, then persist the current inventory."""

        before = self._store.load(container)
        after = query_inventory(self._client, container, family)
        diff = diff_inventories(before, after)
        result = PostTransactionResult(container=container, diff=diff)
        try:
            for package in diff.changed:
                try:
                    manifest = scan_installed_package(self._client, container, family, package)
                    result.reports[package] = self._exporter.export(container, manifest)
                except (PkgBridgeError, OSError) as exc:
                    LOGGER.debug("export of %s from %s failed: %s", package, container, exc)
                    result.warnings.append(f"{package}: {exc}")
        finally:
            result.snapshot = self._store.save(container, after)
        return result


__all__ = [
    "InventoryDiff",
    "InventoryQueryError",
    "PostTransactionResult",
    "SnapshotDiffEngine",
    "SnapshotStore",
    "diff_inventories",
    "parse_inventory",
    "query_inventory",
    "render_inventory",
]
