# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Discovery of existing containers from the listing tool."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Final

from .distrobox import DistroboxClient
from .models import ContainerRecord

LOGGER = logging.getLogger(__name__)

_UNKNOWN_RUNTIME: Final[str] = "unknown"
_LEGACY_HEADER_PREFIXES: Final[tuple[str, ...]] = ("NAME", "+---")
_SKIPPED_FIRST_TOKENS: Final[frozenset[str]] = frozenset({"name", "created"})
_ID_TOKEN_MIN_LENGTH: Final[int] = 6


def discover_containers(client: DistroboxClient) -> list[ContainerRecord]:
    """Return every container known to the listing tool.

    JSON output is preferred; plain output is parsed when the structured call
    fails, prints nothing, or prints something unparseable. A missing tool or a
    failing listing yields an empty list.
    """

    structured = client.list_containers(structured=True)
    if structured.returncode == 0 and (structured.stdout or "").strip():
        try:
            return parse_listing_json(structured.stdout)
        except ValueError as exc:
            LOGGER.debug("structured listing unusable, falling back to text: %s", exc)

    plain = client.list_containers(structured=False)
    if plain.returncode != 0:
        LOGGER.debug("container listing exited with status %s", plain.returncode)
        return []
    return parse_listing_plain(plain.stdout or "")


def _record_from_mapping(entry: Mapping[str, Any]) -> ContainerRecord:
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("container entry without a name")
    image = entry.get("image")
    engine = entry.get("engine")
    return ContainerRecord(
        name=name.strip(),
        image=image if isinstance(image, str) and image else None,
        runtime=engine if isinstance(engine, str) and engine else _UNKNOWN_RUNTIME,
    )


def parse_listing_json(payload: str) -> list[ContainerRecord]:
    """Parse a JSON listing given as an array or a ``{"containers": [...]}`` object.

    Raises:
        ValueError: If ``payload`` is not a recognised JSON listing.
    """

    data = json.loads(payload)
    entries: Iterable[Any]
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict) and isinstance(data.get("containers"), list):
        entries = data["containers"]
    else:
        raise ValueError("unexpected JSON listing shape")
    records: list[ContainerRecord] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ValueError("container entry is not an object")
        records.append(_record_from_mapping(entry))
    return records


def _is_separator(columns: list[str]) -> bool:
    return all(set(column) <= {"-", "+"} for column in columns)


def _parse_pipe_row(columns: list[str]) -> ContainerRecord | None:
    if len(columns) < 2:
        return None
    name = columns[1]
    if not name or name.upper() == "NAME":
        return None
    image = columns[3] if len(columns) > 3 and columns[3] else None
    return ContainerRecord(name=name, image=image)


def _parse_whitespace_row(line: str, *, saw_pipe_header: bool) -> ContainerRecord | None:
    if line.startswith(_LEGACY_HEADER_PREFIXES) or "CONTAINER ID" in line or line.lower() == "id":
        return None
    if set(line) <= {"-", "+", " "}:
        return None
    parts = line.split()
    if saw_pipe_header and len(parts) > 1 and len(parts[0]) >= _ID_TOKEN_MIN_LENGTH:
        image = parts[3] if len(parts) > 3 else None
        return ContainerRecord(name=parts[1], image=image)
    if parts[0].lower() in _SKIPPED_FIRST_TOKENS:
        return None
    return ContainerRecord(name=parts[0], image=parts[1] if len(parts) > 1 else None)


def parse_listing_plain(text: str) -> list[ContainerRecord]:
    """Parse the human-oriented table printed by ``distrobox list``.

    Handles the ``ID | NAME | STATUS | IMAGE`` pipe table as well as the
    whitespace-separated layout of older releases.
    """

    records: list[ContainerRecord] = []
    saw_pipe_header = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if "|" in line:
            columns = [column.strip() for column in line.split("|")]
            upper = {column.upper() for column in columns}
            if "NAME" in upper and "ID" in upper:
                saw_pipe_header = True
                continue
            if _is_separator(columns):
                continue
            if len(columns) >= 2:
                record = _parse_pipe_row(columns)
                if record is not None:
                    records.append(record)
                continue
        record = _parse_whitespace_row(line, saw_pipe_header=saw_pipe_header)
        if record is not None:
            records.append(record)
    return records


__all__ = ["discover_containers", "parse_listing_json", "parse_listing_plain"]
