# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy raised by the pkgbridge orchestration pipeline."""

from __future__ import annotations

from collections.abc import Sequence


class PkgBridgeError(RuntimeError):
    """Base class for failures surfaced at the command boundary."""


class NotFoundError(PkgBridgeError, FileNotFoundError):
    """Raised when a package file or a named container does not exist."""


class FormatUnknownError(PkgBridgeError):
    """Raised when a file is neither a Debian nor an RPM package."""


class ClassificationFailure(PkgBridgeError):
    """Raised when a container's distribution family cannot be determined."""


class NoMatchFound(PkgBridgeError):
    """Raised when container selection cannot settle on a single target."""


class TransferFailure(PkgBridgeError):
    """Raised when copying the package into the container fails."""


class IntegrityMismatch(PkgBridgeError):
    """Raised when the in-container copy differs in size from the local file."""

    def __init__(self, path: str, *, expected: int, actual: int | None) -> None:
        reported = "unknown" if actual is None else str(actual)
        super().__init__(
            f"Size mismatch for {path}: expected {expected} bytes, container reports {reported}",
        )
        self.path = path
        self.expected = expected
        self.actual = actual


class InstallFailure(PkgBridgeError):
    """Raised when every installation command variant failed.

    The message concatenates the captured output of each attempt so a single
    error carries the full diagnostic picture.
    """

    def __init__(self, container: str, diagnostics: Sequence[tuple[str, str]]) -> None:
        sections = [f"--- {label} ---\n{output.strip() or '<no output>'}" for label, output in diagnostics]
        body = "\n".join(sections)
        super().__init__(f"Installation failed inside container '{container}'\n{body}")
        self.container = container
        self.diagnostics = tuple(diagnostics)


class ExportFailure(PkgBridgeError):
    """Raised for a single artefact that could not be exported or unexported."""

    def __init__(self, item: str, reason: str) -> None:
        super().__init__(f"{item}: {reason}")
        self.item = item
        self.reason = reason


class ContainerCreationError(PkgBridgeError):
    """Raised when a new container could not be created."""


class ConfigIOError(PkgBridgeError):
    """Raised when defaults or state cannot be persisted."""


__all__ = [
    "ClassificationFailure",
    "ConfigIOError",
    "ContainerCreationError",
    "ExportFailure",
    "FormatUnknownError",
    "InstallFailure",
    "IntegrityMismatch",
    "NoMatchFound",
    "NotFoundError",
    "PkgBridgeError",
    "TransferFailure",
]
