# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Removal of installed packages and their host exports."""

from __future__ import annotations

from dataclasses import dataclass

from .distrobox import DistroboxClient
from .exporting import ExportEngine, ExportReport
from .manifest import scan_installed_package
from .models import Family, PackageManifest
from .package_commands import uninstall_script
from .process_utils import OutputMode


@dataclass(slots=True)
class UninstallResult:
    container: str
    package: str
    manifest: PackageManifest
    script: str
    succeeded: bool
    export_report: ExportReport | None = None


def uninstall_package(
    client: DistroboxClient,
    exporter: ExportEngine,
    *,
    container: str,
    family: Family,
    package: str,
    dry_run: bool = False,
) -> UninstallResult:
    """Unexport everything ``package`` published, then remove it as root.

    On a dry run nothing is executed besides the file listing.
    """

    manifest = scan_installed_package(client, container, family, package)
    script = uninstall_script(family, package)
    result = UninstallResult(container=container, package=package, manifest=manifest, script=script, succeeded=True)
    if dry_run:
        return result
    if not manifest.is_empty:
        result.export_report = exporter.unexport(container, manifest)
    completed = client.run_in(container, script, as_root=True, output=OutputMode.INHERIT)
    result.succeeded = completed.returncode == 0
    return result


__all__ = ["UninstallResult", "uninstall_package"]
