# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Commands describing containers and the host environment."""

from __future__ import annotations

import typer
from rich import box
from rich.table import Table

from ..discovery import discover_containers
from ..doctor import collect_checks, run_doctor
from .shared import get_context


def list_command(ctx: typer.Context) -> None:
    """List containers with their detected distribution family."""

    context = get_context(ctx)
    containers = discover_containers(context.client)
    if not containers:
        context.logger.info("No containers found. Create one with 'distrobox create' or install with --create.")
        return
    table = Table(box=box.SIMPLE)
    for column in ("NAME", "FAMILY", "RUNTIME", "IMAGE"):
        table.add_column(column)
    for record in containers:
        family = context.classifier.try_classify(record.name)
        table.add_row(record.name, family.value if family else "?", record.runtime, record.image or "-")
    context.console.print(table)


def doctor_command(ctx: typer.Context) -> None:
    """Report host tools and directories pkgbridge relies on."""

    context = get_context(ctx)
    checks = collect_checks(context.layout, env=context.env)
    raise typer.Exit(code=run_doctor(context.layout, console=context.console, checks=checks))


__all__ = ["doctor_command", "list_command"]
