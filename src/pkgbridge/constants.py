# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants used across pkgbridge modules."""

from __future__ import annotations

from typing import Final

APP_NAME: Final[str] = "pkgbridge"

DISTROBOX: Final[str] = "distrobox"
DISTROBOX_EXPORT: Final[str] = "distrobox-export"
NOTIFY_SEND: Final[str] = "notify-send"

# Marker printed by ``distrobox-export --help`` on releases that can be driven from the host.
EXPORT_HOST_MARKER: Final[str] = "--container"

CONTAINER_TRANSFER_DIR: Final[str] = "/tmp/pkgbridge"
TRANSFER_PLACEHOLDER_NAME: Final[str] = "package"

CONTAINER_BIN_DIR: Final[str] = "usr/bin"
CONTAINER_APPS_DIR: Final[str] = "usr/share/applications"
DESKTOP_SUFFIX: Final[str] = ".desktop"

OS_RELEASE_SCRIPT: Final[str] = "cat /etc/os-release 2>/dev/null || cat /usr/lib/os-release 2>/dev/null || true"
COUNT_APPS_SCRIPT: Final[str] = f"ls -1 /{CONTAINER_APPS_DIR}/*{DESKTOP_SUFFIX} 2>/dev/null | wc -l"
LIST_APPS_SCRIPT: Final[str] = f"ls -1 /{CONTAINER_APPS_DIR}/*{DESKTOP_SUFFIX} 2>/dev/null"

CONTAINER_ENV_VAR: Final[str] = "PKGBRIDGE_CONTAINER"
CONFIG_FILE_NAME: Final[str] = "config.json"
STATE_FILE_NAME: Final[str] = "state.json"
SNAPSHOT_DIR_NAME: Final[str] = "snapshots"
SNAPSHOT_SUFFIX: Final[str] = ".txt"

SHIM_MARKER: Final[str] = "# pkgbridge shim"
PM_SHIM_MARKER: Final[str] = "# pkgbridge pm-shim"

MISSING_EXECUTABLE_STATUS: Final[int] = 127
