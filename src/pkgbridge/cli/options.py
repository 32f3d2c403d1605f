# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Reusable Typer option declarations."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer

from ..models import Family

PACKAGE_FILE_ARGUMENT = Annotated[
    Path,
    typer.Argument(help="Path to a .deb or .rpm package file.", dir_okay=False),
]
PACKAGE_NAME_ARGUMENT = Annotated[str, typer.Argument(help="Installed package name.")]
CONTAINER_OPTION = Annotated[
    str | None,
    typer.Option("--container", "-c", help="Target container name."),
]
REQUIRED_CONTAINER_OPTION = Annotated[
    str,
    typer.Option("--container", "-c", help="Target container name."),
]
FAMILY_OPTION = Annotated[
    Family | None,
    typer.Option("--family", case_sensitive=False, help="Restrict selection to a distribution family."),
]
CREATE_OPTION = Annotated[
    bool,
    typer.Option("--create", help="Create a default container when none matches."),
]
CREATE_IMAGE_OPTION = Annotated[
    str | None,
    typer.Option("--create-image", help="Base image used with --create."),
]
NO_EXPORT_OPTION = Annotated[
    bool,
    typer.Option("--no-export", help="Skip exporting binaries and desktop entries."),
]
BIN_OPTION = Annotated[
    list[str] | None,
    typer.Option("--bin", help="Binary to export (repeatable or comma separated); replaces the scan."),
]
APP_OPTION = Annotated[
    list[str] | None,
    typer.Option("--app", help="Desktop entry to export (repeatable or comma separated); replaces the scan."),
]
DRY_RUN_OPTION = Annotated[
    bool,
    typer.Option("--dry-run", help="Show the plan without changing anything."),
]
EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji output."),
]
VERBOSE_OPTION = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log every external command to stderr."),
]


def normalize_cli_values(values: Sequence[str] | None) -> tuple[str, ...]:
    """Return comma-split, stripped CLI values preserving order."""

    if not values:
        return ()
    cleaned: list[str] = []
    for entry in values:
        for part in entry.split(","):
            stripped = part.strip()
            if stripped:
                cleaned.append(stripped)
    return tuple(cleaned)


__all__ = [
    "APP_OPTION",
    "BIN_OPTION",
    "CONTAINER_OPTION",
    "CREATE_IMAGE_OPTION",
    "CREATE_OPTION",
    "DRY_RUN_OPTION",
    "EMOJI_OPTION",
    "FAMILY_OPTION",
    "NO_EXPORT_OPTION",
    "PACKAGE_FILE_ARGUMENT",
    "PACKAGE_NAME_ARGUMENT",
    "REQUIRED_CONTAINER_OPTION",
    "VERBOSE_OPTION",
    "normalize_cli_values",
]
