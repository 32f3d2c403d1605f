# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for manifest extraction from package listings."""

from __future__ import annotations

from pkgbridge.manifest import (
    manifest_from_paths,
    parse_content_listing,
    scan_installed_package,
    scan_package_file,
)
from pkgbridge.models import Family, PackageFormat, PackageManifest

DPKG_CONTENTS = """\
drwxr-xr-x root/root         0 2024-05-01 10:00 ./
drwxr-xr-x root/root         0 2024-05-01 10:00 ./usr/bin/
-rwxr-xr-x root/root     84512 2024-05-01 10:00 ./usr/bin/hello
lrwxrwxrwx root/root         0 2024-05-01 10:00 ./usr/bin/hi -> hello
-rwxr-xr-x root/root      1024 2024-05-01 10:00 ./usr/bin/sub/nested
-rw-r--r-- root/root       300 2024-05-01 10:00 ./usr/share/applications/hello.desktop
-rw-r--r-- root/root       300 2024-05-01 10:00 ./usr/share/applications/README
-rw-r--r-- root/root      2000 2024-05-01 10:00 ./usr/share/doc/hello/copyright
"""

RPM_CONTENTS = """\
/usr/bin/zed
/usr/bin/zed
/usr/bin/alpha
/usr/share/applications/org.example.Zed.desktop
/usr/lib64/libzed.so
"""


def test_dpkg_listing() -> None:
    manifest = parse_content_listing(PackageFormat.DEB, DPKG_CONTENTS)
    assert manifest.binaries == ("hello", "hi")
    assert manifest.desktop_entries == ("hello.desktop",)


def test_rpm_listing_is_sorted_and_deduplicated() -> None:
    manifest = parse_content_listing(PackageFormat.RPM, RPM_CONTENTS)
    assert manifest.binaries == ("alpha", "zed")
    assert manifest.desktop_entries == ("org.example.Zed.desktop",)


def test_overrides_replace_rather_than_merge() -> None:
    scanned = manifest_from_paths(["/usr/bin/a", "/usr/bin/b", "/usr/share/applications/a.desktop"])
    overridden = scanned.with_overrides(binaries=["custom"])
    assert overridden.binaries == ("custom",)
    assert overridden.desktop_entries == ("a.desktop",)


def test_empty_manifest() -> None:
    assert PackageManifest().is_empty
    assert manifest_from_paths(["/etc/hello.conf"]).is_empty


def test_scan_package_file_runs_listing_in_container(fake_runner, client) -> None:
    fake_runner.on("rpm -qlp", stdout=RPM_CONTENTS)
    manifest = scan_package_file(client, "fed", PackageFormat.RPM, "/tmp/pkgbridge/zed.rpm")
    assert manifest.binaries == ("alpha", "zed")
    (argv,) = fake_runner.commands("rpm -qlp")
    assert argv[-1] == "rpm -qlp /tmp/pkgbridge/zed.rpm"


def test_scan_installed_package_uses_family_tool(fake_runner, client) -> None:
    fake_runner.on("pacman -Qlq", stdout="/usr/bin/htop\n/usr/share/applications/htop.desktop\n")
    manifest = scan_installed_package(client, "arch", Family.ARCH, "htop")
    assert manifest == PackageManifest(binaries=["htop"], desktop_entries=["htop.desktop"])
