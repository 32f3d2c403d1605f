# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persisted defaults and first-run state records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigIOError
from .models import Family

LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class Settings(BaseModel):
    """User defaults: which container serves each distribution family."""

    model_config = ConfigDict(validate_assignment=True)

    pm_defaults: dict[str, str] = Field(default_factory=dict)

    def default_for(self, family: Family) -> str | None:
        """Return the default container recorded for ``family``, if any."""

        return self.pm_defaults.get(family.key)

    def with_default(self, family: Family, container: str) -> Settings:
        """Return a copy recording ``container`` as the default for ``family``."""

        updated = dict(self.pm_defaults)
        updated[family.key] = container
        return self.model_copy(update={"pm_defaults": updated})


class State(BaseModel):
    """Small persisted flags describing tool lifecycle."""

    first_run_done: bool = False


def _load(path: Path, model: type[_ModelT]) -> _ModelT:
    if not path.is_file():
        return model()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return model.model_validate(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        LOGGER.warning("ignoring unreadable %s: %s", path, exc)
        return model()


def _save(path: Path, record: BaseModel) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(record.model_dump(mode="json"), indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ConfigIOError(f"Unable to write {path}: {exc}") from exc


def load_settings(path: Path) -> Settings:
    """Load settings from ``path``; missing or corrupt files yield defaults."""

    return _load(path, Settings)


def save_settings(path: Path, settings: Settings) -> None:
    """Persist ``settings`` to ``path``.

    Raises:
        ConfigIOError: If the file cannot be written.
    """

    _save(path, settings)


def load_state(path: Path) -> State:
    """Load lifecycle state from ``path``; missing or corrupt files yield defaults."""

    return _load(path, State)


def save_state(path: Path, state: State) -> None:
    """Persist ``state`` to ``path``.

    Raises:
        ConfigIOError: If the file cannot be written.
    """

    _save(path, state)


__all__ = [
    "Settings",
    "State",
    "load_settings",
    "load_state",
    "save_settings",
    "save_state",
]
