# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Classification of containers into distribution families."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from .constants import OS_RELEASE_SCRIPT
from .distrobox import DistroboxClient
from .errors import ClassificationFailure
from .models import Family
from .process_utils import combined_output

LOGGER = logging.getLogger(__name__)

_FAMILY_TOKENS: Final[tuple[tuple[Family, frozenset[str]], ...]] = (
    (Family.DEBIAN, frozenset({"debian", "ubuntu"})),
    (Family.FEDORA, frozenset({"fedora", "rhel", "centos"})),
    (Family.OPENSUSE, frozenset({"opensuse", "sles", "suse"})),
    (Family.ARCH, frozenset({"arch", "manjaro", "endeavouros"})),
)


@dataclass(frozen=True, slots=True)
class DefaultContainer:
    """Container name and base image created when a family has no container."""

    name: str
    image: str


DEFAULT_CONTAINERS: Final[dict[Family, DefaultContainer]] = {
    Family.DEBIAN: DefaultContainer("debian-stable", "docker.io/library/debian:stable"),
    Family.FEDORA: DefaultContainer("fedora-latest", "registry.fedoraproject.org/fedora:latest"),
    Family.OPENSUSE: DefaultContainer(
        "opensuse-tumbleweed",
        "registry.opensuse.org/opensuse/tumbleweed:latest",
    ),
    Family.ARCH: DefaultContainer("arch", "docker.io/library/archlinux:latest"),
}


def _unquote(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1]
    return text


def parse_os_release(text: str) -> tuple[str | None, list[str]]:
    """Return the lower-cased ``ID`` and tokenised ``ID_LIKE`` from os-release text."""

    identifier: str | None = None
    id_like: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("ID="):
            identifier = _unquote(line[len("ID=") :]).lower()
        elif line.startswith("ID_LIKE="):
            id_like.extend(_unquote(line[len("ID_LIKE=") :]).lower().split())
    return identifier, id_like


def classify_tokens(tokens: Iterable[str]) -> Family | None:
    """Map os-release tokens to a family; the first matching family wins."""

    token_set = {token for token in tokens if token}
    for family, markers in _FAMILY_TOKENS:
        if token_set & markers:
            return family
    return None


def classify_os_release(text: str) -> Family | None:
    """Classify raw os-release content."""

    identifier, id_like = parse_os_release(text)
    tokens = [*id_like]
    if identifier:
        tokens.insert(0, identifier)
    return classify_tokens(tokens)


class FamilyClassifier:
    """Determine a container's family by reading its os-release file."""

    def __init__(self, client: DistroboxClient) -> None:
        self._client = client

    def classify(self, name: str) -> Family:
        """Return the family of container ``name``.

        Raises:
            ClassificationFailure: If the container cannot be entered or its
                release file names no known family.
        """

        completed = self._client.run_in(name, OS_RELEASE_SCRIPT)
        if completed.returncode != 0:
            detail = combined_output(completed) or f"exit status {completed.returncode}"
            raise ClassificationFailure(f"Unable to enter container '{name}' to read os-release: {detail}")
        family = classify_os_release(completed.stdout or "")
        if family is None:
            raise ClassificationFailure(f"Could not classify the distribution family of container '{name}'")
        LOGGER.debug("container %s classified as %s", name, family.value)
        return family

    def try_classify(self, name: str) -> Family | None:
        """Classify ``name`` returning ``None`` instead of raising."""

        try:
            return self.classify(name)
        except ClassificationFailure as exc:
            LOGGER.debug("%s", exc)
            return None


__all__ = [
    "DEFAULT_CONTAINERS",
    "DefaultContainer",
    "FamilyClassifier",
    "classify_os_release",
    "classify_tokens",
    "parse_os_release",
]
