# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""`pkgbridge pm` commands: defaults, package-manager shims and snapshots."""

from __future__ import annotations

from typing import Annotated

import typer

from ..config import load_settings, save_settings
from ..constants import CONTAINER_ENV_VAR
from ..models import Family
from ..pm_shims import ShimStatus, generate_pm_shims
from ..snapshots import SnapshotDiffEngine, SnapshotStore
from .options import CONTAINER_OPTION, FAMILY_OPTION
from .shared import CLIContext, CLIError, get_context, handle_errors, render_export_report

pm_app = typer.Typer(help="Package-manager integration.", no_args_is_help=True)


def resolve_pm_target(context: CLIContext, container: str | None, family: Family | None) -> tuple[str, Family]:
    """Resolve the container from the flag, the environment, then the family default.

    The returned family always comes from classifying the container; ``family``
    only selects which default to use when no container was named.
    """

    name = container or context.env.get(CONTAINER_ENV_VAR) or None
    if name is None and family is not None:
        name = load_settings(context.layout.config_file).default_for(family)
    if not name:
        raise CLIError(f"--container is required (or set {CONTAINER_ENV_VAR})")
    return name, context.classifier.classify(name)


def _engine(context: CLIContext) -> SnapshotDiffEngine:
    return SnapshotDiffEngine(context.client, context.exporter, SnapshotStore(context.layout))


@pm_app.command("set-default")
def set_default_command(
    ctx: typer.Context,
    family: Annotated[Family, typer.Argument(case_sensitive=False, help="Distribution family.")],
    container: Annotated[str, typer.Argument(help="Container serving this family.")],
) -> None:
    """Record the default container for a distribution family."""

    context = get_context(ctx)
    with handle_errors(context.logger):
        settings = load_settings(context.layout.config_file).with_default(family, container)
        save_settings(context.layout.config_file, settings)
    context.logger.ok(f"Default for {family.value} set to '{container}'")


@pm_app.command("show-defaults")
def show_defaults_command(ctx: typer.Context) -> None:
    """Print the family to container defaults."""

    context = get_context(ctx)
    defaults = load_settings(context.layout.config_file).pm_defaults
    if not defaults:
        context.logger.echo("No defaults set.")
        return
    for key, name in sorted(defaults.items()):
        context.logger.echo(f"{key} => {name}")


@pm_app.command("generate-shims")
def generate_shims_command(ctx: typer.Context) -> None:
    """Write host wrappers for each default container's package manager."""

    context = get_context(ctx)
    logger = context.logger
    defaults = load_settings(context.layout.config_file).pm_defaults
    if not defaults:
        logger.warn("No defaults set; run 'pkgbridge pm set-default FAMILY CONTAINER' first.")
        return
    try:
        outcomes = generate_pm_shims(defaults, context.layout.bin_dir)
    except OSError as exc:
        logger.fail(f"Unable to write package-manager shims: {exc}")
        raise typer.Exit(code=1) from exc
    for outcome in outcomes:
        if outcome.status is ShimStatus.WRITTEN:
            logger.ok(f"Wrote {outcome.path.name} for '{outcome.container}'")
        elif outcome.status is ShimStatus.SUFFIXED:
            logger.info(f"{outcome.reason}; created '{outcome.path.name}' instead")
        else:
            logger.warn(f"Skipped {outcome.manager}: {outcome.reason}")


@pm_app.command("snapshot")
def snapshot_command(
    ctx: typer.Context,
    container: CONTAINER_OPTION = None,
    family: FAMILY_OPTION = None,
) -> None:
    """Record the installed packages of a container before a transaction."""

    context = get_context(ctx)
    with handle_errors(context.logger):
        name, resolved_family = resolve_pm_target(context, container, family)
        try:
            path = _engine(context).snapshot(name, resolved_family)
        except OSError as exc:
            raise CLIError(f"Unable to write snapshot for '{name}': {exc}") from exc
    context.logger.ok(f"Snapshot written to {path}")


@pm_app.command("post-transaction")
def post_transaction_command(
    ctx: typer.Context,
    container: CONTAINER_OPTION = None,
    family: FAMILY_OPTION = None,
) -> None:
    """Export packages that are new or upgraded since the last snapshot."""

    context = get_context(ctx)
    logger = context.logger
    with handle_errors(logger):
        name, resolved_family = resolve_pm_target(context, container, family)
        try:
            result = _engine(context).post_transaction(name, resolved_family)
        except OSError as exc:
            raise CLIError(f"Unable to update snapshot for '{name}': {exc}") from exc
    if not result.diff.changed:
        logger.info("No new or upgraded packages.")
        return
    logger.info(f"Detected new: {sorted(result.diff.new)}, upgraded: {sorted(result.diff.upgraded)}")
    for report in result.reports.values():
        render_export_report(report, logger)
    for message in result.warnings:
        logger.warn(message)


__all__ = ["pm_app", "resolve_pm_target"]
