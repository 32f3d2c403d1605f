# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Extraction of exportable binaries and desktop entries from file listings."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .constants import CONTAINER_APPS_DIR, CONTAINER_BIN_DIR, DESKTOP_SUFFIX
from .distrobox import DistroboxClient
from .models import Family, PackageFormat, PackageManifest
from .package_commands import content_listing_script, installed_files_script

LOGGER = logging.getLogger(__name__)

_BIN_PREFIX = f"{CONTAINER_BIN_DIR}/"
_APPS_PREFIX = f"{CONTAINER_APPS_DIR}/"
_SYMLINK_ARROW = " -> "


def _relative(path: str) -> str:
    text = path.strip()
    if text.startswith("./"):
        text = text[1:]
    return text.lstrip("/")


def manifest_from_paths(paths: Iterable[str]) -> PackageManifest:
    """Collect binaries directly under ``usr/bin`` and desktop entries under the apps dir."""

    binaries: list[str] = []
    desktop_entries: list[str] = []
    for raw in paths:
        path = _relative(raw)
        if path.startswith(_BIN_PREFIX):
            name = path[len(_BIN_PREFIX) :]
            if name and "/" not in name:
                binaries.append(name)
        elif path.startswith(_APPS_PREFIX):
            rest = path[len(_APPS_PREFIX) :]
            if rest.endswith(DESKTOP_SUFFIX):
                desktop_entries.append(rest)
    return PackageManifest(binaries=binaries, desktop_entries=desktop_entries)


def paths_from_dpkg_contents(text: str) -> list[str]:
    """Return member paths from ``dpkg -c`` output (a ``tar -tv`` style listing)."""

    paths: list[str] = []
    for line in text.splitlines():
        fields = line.split(None, 5)
        if len(fields) < 6:
            continue
        member = fields[5]
        if _SYMLINK_ARROW in member:
            member = member.split(_SYMLINK_ARROW, 1)[0]
        paths.append(member.strip())
    return paths


def parse_content_listing(package_format: PackageFormat, text: str) -> PackageManifest:
    """Build a manifest from the content listing of a package file."""

    if package_format is PackageFormat.DEB:
        return manifest_from_paths(paths_from_dpkg_contents(text))
    return manifest_from_paths(text.splitlines())


def scan_package_file(client: DistroboxClient, container: str, package_format: PackageFormat, path: str) -> PackageManifest:
    """List a package file inside ``container`` and return its exportable artefacts.

    A failing listing yields an empty manifest; the install itself decides
    whether the package is usable.
    """

    completed = client.run_in(container, content_listing_script(package_format, path))
    if completed.returncode != 0:
        LOGGER.debug("content listing failed for %s (status %s)", path, completed.returncode)
    return parse_content_listing(package_format, completed.stdout or "")


def scan_installed_package(client: DistroboxClient, container: str, family: Family, package: str) -> PackageManifest:
    """Return the exportable artefacts owned by an installed package."""

    completed = client.run_in(container, installed_files_script(family, package))
    if completed.returncode != 0:
        LOGGER.debug("file listing failed for %s in %s (status %s)", package, container, completed.returncode)
    return manifest_from_paths((completed.stdout or "").splitlines())


__all__ = [
    "manifest_from_paths",
    "parse_content_listing",
    "paths_from_dpkg_contents",
    "scan_installed_package",
    "scan_package_file",
]
