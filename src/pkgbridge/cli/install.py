# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the `pkgbridge install` and `pkgbridge open` commands."""

from __future__ import annotations

from pathlib import Path

import typer

from ..config import load_settings, save_settings
from ..discovery import discover_containers
from ..errors import ConfigIOError
from ..formats import detect_package_format
from ..install import InstallPipeline, InstallRequest
from ..models import Family
from ..selection import ContainerSelector, SelectionPolicy, record_created_default
from .options import (
    APP_OPTION,
    BIN_OPTION,
    CONTAINER_OPTION,
    CREATE_IMAGE_OPTION,
    CREATE_OPTION,
    DRY_RUN_OPTION,
    FAMILY_OPTION,
    NO_EXPORT_OPTION,
    PACKAGE_FILE_ARGUMENT,
    normalize_cli_values,
)
from .shared import CLIContext, get_context, handle_errors, render_export_report


def run_install(
    context: CLIContext,
    file: Path,
    *,
    container: str | None,
    family: Family | None,
    create: bool,
    create_image: str | None,
    no_export: bool,
    binaries: tuple[str, ...],
    apps: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Detect, select, transfer, install and export one package file."""

    logger = context.logger
    with handle_errors(logger):
        package_format = detect_package_format(file)
        logger.info(f"Detected format: {package_format.value}")

        containers = discover_containers(context.client)
        settings = load_settings(context.layout.config_file)
        selector = ContainerSelector(
            context.client,
            context.classifier,
            prompter=context.prompter,
            defaults=settings.pm_defaults,
        )
        policy = SelectionPolicy(
            container=container,
            family=family,
            create=create,
            create_image=create_image,
            interactive=context.interactive,
        )
        selected = selector.select(containers, policy, package_format)
        updated = record_created_default(settings, selected)
        if updated is not None:
            try:
                save_settings(context.layout.config_file, updated)
            except ConfigIOError as exc:
                logger.warn(str(exc))

        logger.info(f"Selected container: {selected.name} (family: {selected.family.value})")
        logger.info(f"Plan: install {file} inside '{selected.name}'")
        if dry_run:
            logger.info("--dry-run: stopping before any installation/export work.")
            return

        request = InstallRequest(
            source=file,
            package_format=package_format,
            target=selected,
            binaries=binaries,
            desktop_entries=apps,
            export=not no_export,
            interactive=context.interactive,
        )
        logger.info(f"Installing inside container '{selected.name}'...")
        result = InstallPipeline(context.client, context.exporter).run(request)

    logger.ok("Install completed.")
    if no_export:
        logger.info("--no-export: skipping export stage")
    elif result.export_report is None:
        logger.info("No items detected to export. You can pass --bin or --app.")
    else:
        render_export_report(result.export_report, logger)


def install_command(
    ctx: typer.Context,
    file: PACKAGE_FILE_ARGUMENT,
    container: CONTAINER_OPTION = None,
    family: FAMILY_OPTION = None,
    create: CREATE_OPTION = False,
    create_image: CREATE_IMAGE_OPTION = None,
    no_export: NO_EXPORT_OPTION = False,
    bin_: BIN_OPTION = None,
    app_: APP_OPTION = None,
    dry_run: DRY_RUN_OPTION = False,
) -> None:
    """Install a .deb or .rpm into a matching container and export its apps."""

    run_install(
        get_context(ctx),
        file,
        container=container,
        family=family,
        create=create,
        create_image=create_image,
        no_export=no_export,
        binaries=normalize_cli_values(bin_),
        apps=normalize_cli_values(app_),
        dry_run=dry_run,
    )


def open_command(
    ctx: typer.Context,
    file: PACKAGE_FILE_ARGUMENT,
    container: CONTAINER_OPTION = None,
    family: FAMILY_OPTION = None,
    create: CREATE_OPTION = False,
    create_image: CREATE_IMAGE_OPTION = None,
    no_export: NO_EXPORT_OPTION = False,
    bin_: BIN_OPTION = None,
    app_: APP_OPTION = None,
    dry_run: DRY_RUN_OPTION = False,
) -> None:
    """Open a package file from a file manager (same as install)."""

    run_install(
        get_context(ctx),
        file,
        container=container,
        family=family,
        create=create,
        create_image=create_image,
        no_export=no_export,
        binaries=normalize_cli_values(bin_),
        apps=normalize_cli_values(app_),
        dry_run=dry_run,
    )


__all__ = ["install_command", "open_command", "run_install"]
