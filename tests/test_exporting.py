# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the export engine."""

from __future__ import annotations

import os

import pytest

from pkgbridge.exporting import (
    ContainerExportHelper,
    ExportEngine,
    HostExportHelper,
    is_own_shim,
    render_shim,
    rewrite_exec_lines,
    select_export_helper,
)
from pkgbridge.models import Family, PackageManifest
from pkgbridge.pm_shims import generate_manager_shim

DESKTOP = """\
[Desktop Entry]
Name=Foo
Exec=foo %U
TryExec=foo

[Desktop Action new]
Exec=distrobox enter -n other -- foo --new
"""


@pytest.fixture
def engine(fake_runner, client, layout) -> ExportEngine:
    return ExportEngine(client, layout, helper=HostExportHelper(fake_runner))


def test_existing_host_binary_gets_suffixed_shim(engine, layout) -> None:
    layout.bin_dir.mkdir(parents=True)
    original = layout.bin_dir / "foo"
    original.write_bytes(b"#!/bin/sh\necho host foo\n")
    before = original.read_bytes()

    report = engine.export("box", PackageManifest(binaries=["foo"]))

    shim = layout.bin_dir / "foo-box"
    assert report.shims == [shim]
    assert original.read_bytes() == before
    assert "exec distrobox enter -n box -- foo \"$@\"" in shim.read_text(encoding="utf-8")
    assert os.access(shim, os.X_OK)


def test_repeated_export_reuses_shim_and_never_touches_foreign_file(engine, layout) -> None:
    layout.bin_dir.mkdir(parents=True)
    original = layout.bin_dir / "foo"
    original.write_text("host tool\n", encoding="utf-8")

    first = engine.export("box", PackageManifest(binaries=["foo"]))
    second = engine.export("box", PackageManifest(binaries=["foo"]))

    assert first.shims == second.shims == [layout.bin_dir / "foo-box"]
    assert second.warnings == []
    assert original.read_text(encoding="utf-8") == "host tool\n"


def test_foreign_suffixed_file_produces_warning(engine, layout) -> None:
    layout.bin_dir.mkdir(parents=True)
    (layout.bin_dir / "foo").write_text("host\n", encoding="utf-8")
    (layout.bin_dir / "foo-box").write_text("someone else\n", encoding="utf-8")

    report = engine.export("box", PackageManifest(binaries=["foo"]))

    assert report.shims == []
    assert len(report.warnings) == 1
    assert (layout.bin_dir / "foo-box").read_text(encoding="utf-8") == "someone else\n"


def test_helper_failure_falls_back_to_shim(fake_runner, engine, layout) -> None:
    fake_runner.on("distrobox-export --container box --bin", returncode=1, stderr="not found")

    report = engine.export("box", PackageManifest(binaries=["tool"]))

    assert report.exported == []
    assert report.shims == [layout.bin_dir / "tool"]
    assert is_own_shim(layout.bin_dir / "tool", "box")
    assert report.warnings
    names = [argv[-1] for argv in fake_runner.commands("--bin")]
    assert names == ["tool", "/usr/bin/tool"]


def test_colliding_desktop_entry_is_rewritten_copy(fake_runner, engine, layout) -> None:
    layout.apps_dir.mkdir(parents=True)
    (layout.apps_dir / "foo.desktop").write_text("[Desktop Entry]\nExec=foo\n", encoding="utf-8")
    fake_runner.on("cat /usr/share/applications/foo.desktop", stdout=DESKTOP)

    report = engine.export("box", PackageManifest(desktop_entries=["foo.desktop"]))

    copy = layout.apps_dir / "foo.box.desktop"
    assert report.desktop_copies == [copy]
    content = copy.read_text(encoding="utf-8")
    assert "Exec=distrobox enter -n box -- foo %U" in content
    assert "Exec=distrobox enter -n other -- foo --new" in content
    assert (layout.apps_dir / "foo.desktop").read_text(encoding="utf-8") == "[Desktop Entry]\nExec=foo\n"


def test_desktop_entry_exported_by_absolute_path(fake_runner, engine) -> None:
    report = engine.export("box", PackageManifest(desktop_entries=["org.example.App.desktop"]))
    assert report.exported == ["org.example.App.desktop"]
    (argv,) = fake_runner.commands("--app")
    assert argv[-1] == "/usr/share/applications/org.example.App.desktop"


def test_rewrite_exec_lines_preserves_other_lines() -> None:
    rewritten = rewrite_exec_lines(DESKTOP, "box")
    assert rewritten.splitlines()[0] == "[Desktop Entry]"
    assert "TryExec=foo" in rewritten
    assert rewritten.endswith("\n")


def test_probe_selects_host_convention(fake_runner, client) -> None:
    fake_runner.on("distrobox-export --help", stdout="Usage:\n  --container  name of the container\n")
    assert isinstance(select_export_helper(client), HostExportHelper)


def test_probe_falls_back_to_container_convention(fake_runner, client, layout) -> None:
    fake_runner.on("distrobox-export --help", returncode=127)
    helper = select_export_helper(client)
    assert isinstance(helper, ContainerExportHelper)

    ExportEngine(client, layout, helper=helper).export("box", PackageManifest(binaries=["tool"]))
    (argv,) = fake_runner.commands("--bin")
    assert argv == ["distrobox", "enter", "-n", "box", "--", "distrobox-export", "--bin", "/usr/bin/tool"]


def test_helper_is_probed_once_per_engine(fake_runner, client, layout) -> None:
    fake_runner.on("distrobox-export --help", stdout="--container")
    engine = ExportEngine(client, layout)
    engine.export("box", PackageManifest(binaries=["a", "b"]))
    engine.unexport("box", PackageManifest(binaries=["a"]))
    assert len(fake_runner.commands("--help")) == 1


def test_unexport_removes_own_artifacts_and_continues_on_failure(fake_runner, engine, layout) -> None:
    layout.bin_dir.mkdir(parents=True)
    layout.apps_dir.mkdir(parents=True)
    (layout.bin_dir / "foo-box").write_text(render_shim("box", "foo"), encoding="utf-8")
    (layout.bin_dir / "foo").write_text("host\n", encoding="utf-8")
    (layout.apps_dir / "foo.box.desktop").write_text(rewrite_exec_lines(DESKTOP, "box"), encoding="utf-8")
    fake_runner.on("--delete --bin", returncode=1, stderr="not exported")

    report = engine.unexport("box", PackageManifest(binaries=["foo"], desktop_entries=["foo.desktop"]))

    assert not (layout.bin_dir / "foo-box").exists()
    assert (layout.bin_dir / "foo").exists()
    assert not (layout.apps_dir / "foo.box.desktop").exists()
    assert "foo.desktop" in report.removed
    assert len(report.warnings) == 1


def test_package_manager_wrapper_is_never_replaced(engine, layout) -> None:
    wrapper = generate_manager_shim("apt", "box", Family.DEBIAN, layout.bin_dir, which=lambda _: None).path
    before = wrapper.read_text(encoding="utf-8")

    report = engine.export("box", PackageManifest(binaries=["apt"]))

    assert wrapper.read_text(encoding="utf-8") == before
    assert "pm post-transaction" in before
    assert report.shims == [layout.bin_dir / "apt-box"]


def test_exec_lines_quote_container_name() -> None:
    rewritten = rewrite_exec_lines("Exec=foo %U\n", "my box")
    assert rewritten == "Exec=distrobox enter -n 'my box' -- foo %U\n"
