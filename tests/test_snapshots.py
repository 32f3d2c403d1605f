# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for snapshots and post-transaction export."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from pkgbridge.errors import ExportFailure
from pkgbridge.exporting import ExportEngine, ExportReport, HostExportHelper
from pkgbridge.models import Family, PackageManifest
from pkgbridge.pm_shims import generate_manager_shim
from pkgbridge.snapshots import (
    InventoryQueryError,
    SnapshotDiffEngine,
    SnapshotStore,
    diff_inventories,
    parse_inventory,
    render_inventory,
)


class RecordingExporter:
    def __init__(self) -> None:
        self.calls: list[tuple[str, PackageManifest]] = []

    def export(self, container: str, manifest: PackageManifest) -> ExportReport:
        self.calls.append((container, manifest))
        return ExportReport(container=container)


def _inventory_output(pairs: Sequence[tuple[str, str]]) -> str:
    return "".join(f"{name}\t{version}\n" for name, version in pairs)


def test_diff_classifies_new_and_upgraded() -> None:
    diff = diff_inventories({"A": "1", "B": "2"}, {"A": "1", "B": "3", "C": "1"})
    assert diff.new == {"C"}
    assert diff.upgraded == {"B"}
    assert diff.changed == {"B", "C"}


def test_removed_packages_are_not_reported() -> None:
    diff = diff_inventories({"A": "1", "gone": "9"}, {"A": "1"})
    assert diff.changed == frozenset()


def test_parse_inventory_accepts_pacman_style_lines() -> None:
    assert parse_inventory("bash 5.2.026-2\nzlib\t1:1.3.1-1\n\n") == {"bash": "5.2.026-2", "zlib": "1:1.3.1-1"}


def test_post_transaction_exports_only_changed_packages(fake_runner, client, layout) -> None:
    store = SnapshotStore(layout)
    store.save("box", {"A": "1", "B": "2"})
    fake_runner.on("dpkg-query -W", stdout=_inventory_output([("A", "1"), ("B", "3"), ("C", "1")]))
    fake_runner.on("dpkg -L B", stdout="/usr/bin/bee\n")
    fake_runner.on("dpkg -L C", stdout="/usr/share/applications/cee.desktop\n")
    exporter = RecordingExporter()

    result = SnapshotDiffEngine(client, exporter, store).post_transaction("box", Family.DEBIAN)

    assert result.diff.new == {"C"}
    assert result.diff.upgraded == {"B"}
    assert {container for container, _ in exporter.calls} == {"box"}
    assert set(result.reports) == {"B", "C"}
    manifests = sorted((manifest.binaries, manifest.desktop_entries) for _, manifest in exporter.calls)
    assert manifests == [((), ("cee.desktop",)), (("bee",), ())]
    listed = sorted(argv[-1] for argv in fake_runner.commands("dpkg -L"))
    assert listed == ["dpkg -L B", "dpkg -L C"]
    assert store.load("box") == {"A": "1", "B": "3", "C": "1"}


def test_missing_snapshot_treats_everything_as_new(fake_runner, client, layout) -> None:
    fake_runner.on("rpm -qa", stdout=_inventory_output([("x", "1-1")]))
    exporter = RecordingExporter()
    result = SnapshotDiffEngine(client, exporter, SnapshotStore(layout)).post_transaction("fed", Family.FEDORA)
    assert result.diff.new == {"x"}
    assert len(exporter.calls) == 1


def test_snapshot_persists_verbatim_and_replaces(fake_runner, client, layout) -> None:
    store = SnapshotStore(layout)
    store.save("box", {"old": "0"})
    fake_runner.on("pacman -Q", stdout="bash 5.2-1\nvim 9.1-1\n")
    path = SnapshotDiffEngine(client, RecordingExporter(), store).snapshot("box", Family.ARCH)
    assert path == layout.snapshot_dir / "box.txt"
    assert path.read_text(encoding="utf-8") == "bash\t5.2-1\nvim\t9.1-1\n"


def test_failed_inventory_query_raises(fake_runner, client, layout) -> None:
    fake_runner.on("dpkg-query", returncode=1, stderr="boom")
    with pytest.raises(InventoryQueryError):
        SnapshotDiffEngine(client, RecordingExporter(), SnapshotStore(layout)).snapshot("box", Family.DEBIAN)


def test_render_round_trips_through_parse() -> None:
    inventory = {"b": "2", "a": "1"}
    assert render_inventory(inventory) == "a\t1\nb\t2\n"
    assert parse_inventory(render_inventory(inventory)) == inventory


class FailingExporter(RecordingExporter):
    def __init__(self, failing: str, error: Exception) -> None:
        super().__init__()
        self.failing = failing
        self.error = error

    def export(self, container: str, manifest: PackageManifest) -> ExportReport:
        if self.failing in manifest.binaries:
            raise self.error
        return super().export(container, manifest)


def _changed_inventory(fake_runner) -> None:
    fake_runner.on("dpkg-query -W", stdout=_inventory_output([("A", "1"), ("B", "3"), ("C", "1")]))
    fake_runner.on("dpkg -L B", stdout="/usr/bin/bee\n")
    fake_runner.on("dpkg -L C", stdout="/usr/bin/cee\n")


def test_failed_package_export_does_not_stop_the_batch(fake_runner, client, layout) -> None:
    store = SnapshotStore(layout)
    store.save("box", {"A": "1", "B": "2"})
    _changed_inventory(fake_runner)
    exporter = FailingExporter("bee", ExportFailure("bee", "helper exploded"))

    result = SnapshotDiffEngine(client, exporter, store).post_transaction("box", Family.DEBIAN)

    assert [manifest.binaries for _, manifest in exporter.calls] == [("cee",)]
    assert set(result.reports) == {"C"}
    assert len(result.warnings) == 1
    assert "helper exploded" in result.warnings[0]
    assert store.load("box") == {"A": "1", "B": "3", "C": "1"}


def test_snapshot_saved_even_when_export_raises_unexpectedly(fake_runner, client, layout) -> None:
    store = SnapshotStore(layout)
    store.save("box", {"A": "1"})
    fake_runner.on("dpkg-query -W", stdout=_inventory_output([("A", "1"), ("B", "1")]))
    fake_runner.on("dpkg -L B", stdout="/usr/bin/bee\n")
    exporter = FailingExporter("bee", RuntimeError("unexpected"))

    with pytest.raises(RuntimeError):
        SnapshotDiffEngine(client, exporter, store).post_transaction("box", Family.DEBIAN)

    assert store.load("box") == {"A": "1", "B": "1"}


def test_upgrading_the_package_manager_keeps_its_wrapper(fake_runner, client, layout) -> None:
    wrapper = generate_manager_shim("apt", "box", Family.DEBIAN, layout.bin_dir, which=lambda _: None).path
    before = wrapper.read_text(encoding="utf-8")
    store = SnapshotStore(layout)
    store.save("box", {"apt": "2.6.0"})
    fake_runner.on("dpkg-query -W", stdout="apt\t2.6.1\n")
    fake_runner.on("dpkg -L apt", stdout="/usr/bin/apt\n")
    exporter = ExportEngine(client, layout, helper=HostExportHelper(fake_runner))

    result = SnapshotDiffEngine(client, exporter, store).post_transaction("box", Family.DEBIAN)

    assert wrapper.read_text(encoding="utf-8") == before
    assert result.reports["apt"].shims == [layout.bin_dir / "apt-box"]
