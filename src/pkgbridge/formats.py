# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Package format detection by extension and content sniffing."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from .errors import FormatUnknownError, NotFoundError
from .models import PackageFormat

_EXTENSIONS: Final[dict[str, PackageFormat]] = {
    ".deb": PackageFormat.DEB,
    ".rpm": PackageFormat.RPM,
}
RPM_LEAD: Final[bytes] = b"\xed\xab\xee\xdb"
AR_MAGIC: Final[bytes] = b"!<arch>\n"
DEBIAN_TOKEN: Final[bytes] = b"debian-binary"
_SCAN_LIMIT: Final[int] = 2048


def sniff_format(head: bytes) -> PackageFormat | None:
    """Return the package format implied by the leading bytes of a file."""

    if head.startswith(RPM_LEAD):
        return PackageFormat.RPM
    if head.startswith(AR_MAGIC):
        return PackageFormat.DEB
    if DEBIAN_TOKEN in head[:_SCAN_LIMIT]:
        return PackageFormat.DEB
    return None


def detect_package_format(path: Path) -> PackageFormat:
    """Classify ``path`` as a Debian or RPM package.

    The extension wins when it is recognised; otherwise the first bytes are
    sniffed for the RPM lead or the ``ar`` archive signature, and finally the
    first couple of kilobytes are scanned for ``debian-binary``.

    Raises:
        NotFoundError: If ``path`` is not a regular file.
        FormatUnknownError: If no heuristic matches.
    """

    if not path.is_file():
        raise NotFoundError(f"Package file not found: {path}")
    by_extension = _EXTENSIONS.get(path.suffix.lower())
    if by_extension is not None:
        return by_extension
    try:
        with path.open("rb") as handle:
            head = handle.read(_SCAN_LIMIT)
    except OSError as exc:
        raise FormatUnknownError(f"Unable to read {path}: {exc}") from exc
    detected = sniff_format(head)
    if detected is None:
        raise FormatUnknownError(f"Unable to determine package format for {path}")
    return detected


__all__ = ["AR_MAGIC", "RPM_LEAD", "detect_package_format", "sniff_format"]
