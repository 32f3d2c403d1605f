# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the pkgbridge package."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Family(str, Enum):
    """Distribution lineage of a container."""

    DEBIAN = "debian"
    FEDORA = "fedora"
    OPENSUSE = "opensuse"
    ARCH = "arch"

    @property
    def key(self) -> str:
        """Return the string used for this family in the defaults record."""
        return self.value

    @classmethod
    def from_key(cls, value: str) -> Family:
        """Return the family named by ``value`` (case-insensitive)."""
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(value)


class PackageFormat(str, Enum):
    """Binary package formats understood by the install pipeline."""

    DEB = "deb"
    RPM = "rpm"

    def candidate_families(self) -> tuple[Family, ...]:
        """Return the families able to install this format, in preference order."""
        if self is PackageFormat.DEB:
            return (Family.DEBIAN,)
        return (Family.FEDORA, Family.OPENSUSE)


class ContainerRecord(BaseModel):
    """A container reported by the listing tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    image: str | None = None
    runtime: str = "unknown"


class SelectedContainer(BaseModel):
    """The single container an operation targets."""

    model_config = ConfigDict(frozen=True)

    name: str
    family: Family
    created: bool = False


def _normalise_names(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[object] = (value,)
    elif isinstance(value, Iterable):
        items = value
    else:
        raise TypeError("manifest entries must be strings")
    cleaned = {str(item).strip() for item in items}
    return tuple(sorted(entry for entry in cleaned if entry))


class PackageManifest(BaseModel):
    """Exportable artefacts discovered in a package.

    Entries are relative names: bare executable names for binaries and paths
    relative to the applications directory for desktop entries. Both
    collections are deduplicated and sorted.
    """

    model_config = ConfigDict(frozen=True)

    binaries: tuple[str, ...] = Field(default_factory=tuple)
    desktop_entries: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("binaries", "desktop_entries", mode="before")
    @classmethod
    def _coerce_names(cls, value: object) -> tuple[str, ...]:
        return _normalise_names(value)

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when nothing is exportable."""
        return not self.binaries and not self.desktop_entries

    def with_overrides(
        self,
        *,
        binaries: Iterable[str] | None = None,
        desktop_entries: Iterable[str] | None = None,
    ) -> PackageManifest:
        """Return a manifest where non-empty overrides replace scanned entries."""

        override_bins = _normalise_names(binaries)
        override_apps = _normalise_names(desktop_entries)
        return PackageManifest(
            binaries=override_bins or self.binaries,
            desktop_entries=override_apps or self.desktop_entries,
        )


def desktop_basename(entry: str) -> str:
    """Return the file name of a desktop entry given as a relative path."""

    return PurePosixPath(entry).name or entry


__all__ = [
    "ContainerRecord",
    "Family",
    "PackageFormat",
    "PackageManifest",
    "SelectedContainer",
    "desktop_basename",
]
