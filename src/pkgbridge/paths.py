# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for resolving host-side pkgbridge locations."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .constants import APP_NAME, CONFIG_FILE_NAME, SNAPSHOT_DIR_NAME, SNAPSHOT_SUFFIX, STATE_FILE_NAME


def _base_dir(env: Mapping[str, str], key: str, home: Path, *fallback: str) -> Path:
    value = env.get(key, "").strip()
    if value:
        return Path(value).expanduser()
    return home.joinpath(*fallback)


def _home(env: Mapping[str, str]) -> Path:
    value = env.get("HOME", "").strip()
    return Path(value) if value else Path.home()


@dataclass(frozen=True, slots=True)
class HostLayout:
    """Directories on the host that pkgbridge reads and writes."""

    config_dir: Path
    state_dir: Path
    bin_dir: Path
    apps_dir: Path

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> HostLayout:
        """Resolve the layout from XDG variables with conventional fallbacks.

        Args:
            env: Environment mapping to consult; defaults to ``os.environ``.

        Returns:
            HostLayout: Resolved host directories (not created).
        """

        source = os.environ if env is None else env
        home = _home(source)
        config_base = _base_dir(source, "XDG_CONFIG_HOME", home, ".config")
        state_base = _base_dir(source, "XDG_STATE_HOME", home, ".local", "state")
        data_base = _base_dir(source, "XDG_DATA_HOME", home, ".local", "share")
        bin_dir = _base_dir(source, "XDG_BIN_HOME", home, ".local", "bin")
        return cls(
            config_dir=config_base / APP_NAME,
            state_dir=state_base / APP_NAME,
            bin_dir=bin_dir,
            apps_dir=data_base / "applications",
        )

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def state_file(self) -> Path:
        return self.state_dir / STATE_FILE_NAME

    @property
    def snapshot_dir(self) -> Path:
        return self.state_dir / SNAPSHOT_DIR_NAME

    def snapshot_path(self, container: str) -> Path:
        """Return the snapshot file used for ``container``."""

        safe = container.replace("/", "_") or "_"
        return self.snapshot_dir / f"{safe}{SNAPSHOT_SUFFIX}"


__all__ = ["HostLayout"]
