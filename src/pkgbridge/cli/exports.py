# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Commands exporting and removing an installed package."""

from __future__ import annotations

import typer

from ..manifest import scan_installed_package
from ..uninstall import uninstall_package
from .options import (
    APP_OPTION,
    BIN_OPTION,
    DRY_RUN_OPTION,
    PACKAGE_NAME_ARGUMENT,
    REQUIRED_CONTAINER_OPTION,
    normalize_cli_values,
)
from .shared import CLIError, get_context, handle_errors, render_export_report


def export_command(
    ctx: typer.Context,
    package: PACKAGE_NAME_ARGUMENT,
    container: REQUIRED_CONTAINER_OPTION,
    bin_: BIN_OPTION = None,
    app_: APP_OPTION = None,
    dry_run: DRY_RUN_OPTION = False,
) -> None:
    """Export the binaries and desktop entries of an installed package."""

    context = get_context(ctx)
    logger = context.logger
    with handle_errors(logger):
        family = context.classifier.classify(container)
        manifest = scan_installed_package(context.client, container, family, package).with_overrides(
            binaries=normalize_cli_values(bin_),
            desktop_entries=normalize_cli_values(app_),
        )
        if dry_run:
            logger.info(
                f"--dry-run: would export bins={list(manifest.binaries)}, apps={list(manifest.desktop_entries)}",
            )
            return
        if manifest.is_empty:
            logger.info("No items detected to export. You can pass --bin or --app.")
            return
        render_export_report(context.exporter.export(container, manifest), logger)


def uninstall_command(
    ctx: typer.Context,
    package: PACKAGE_NAME_ARGUMENT,
    container: REQUIRED_CONTAINER_OPTION,
    dry_run: DRY_RUN_OPTION = False,
) -> None:
    """Remove a package's exports and uninstall it from the container."""

    context = get_context(ctx)
    logger = context.logger
    with handle_errors(logger):
        family = context.classifier.classify(container)
        result = uninstall_package(
            context.client,
            context.exporter,
            container=container,
            family=family,
            package=package,
            dry_run=dry_run,
        )
        if dry_run:
            names = [*result.manifest.binaries, *result.manifest.desktop_entries]
            if names:
                logger.info(f"--dry-run: would remove exports {names}")
            logger.info(f"--dry-run: would run inside '{container}': {result.script}")
            return
        if result.export_report is not None:
            logger.info(f"Removing exports for package '{package}'...")
            render_export_report(result.export_report, logger)
        if not result.succeeded:
            raise CLIError(f"Uninstall command reported failure inside '{container}'.")
    logger.ok("Uninstall completed.")


__all__ = ["export_command", "uninstall_command"]
