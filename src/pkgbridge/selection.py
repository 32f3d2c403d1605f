# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolution of the single container an operation targets."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

import typer

from .config import Settings
from .distrobox import DistroboxClient
from .errors import ContainerCreationError, NoMatchFound, NotFoundError
from .families import DEFAULT_CONTAINERS, DefaultContainer, FamilyClassifier
from .models import ContainerRecord, Family, PackageFormat, SelectedContainer
from .process_utils import combined_output

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SelectionPolicy:
    """Caller intent steering container selection."""

    container: str | None = None
    family: Family | None = None
    create: bool = False
    create_image: str | None = None
    interactive: bool = False


class Prompter(Protocol):
    """Interactive questions asked during selection."""

    def choose(self, matches: Sequence[SelectedContainer]) -> int | None:
        """Return the 1-based index picked by the user, or ``None``."""
        ...

    def confirm_create(self, default: DefaultContainer) -> bool:
        """Return ``True`` when the user accepts creating ``default``."""
        ...


class TerminalPrompter:
    """:class:`Prompter` that asks on the controlling terminal via ``typer``."""

    def choose(self, matches: Sequence[SelectedContainer]) -> int | None:
        typer.echo("Multiple matching containers found:")
        for index, match in enumerate(matches, start=1):
            typer.echo(f"  [{index}] {match.name} ({match.family.value})")
        answer = typer.prompt(f"Select a container [1-{len(matches)}]", default="", show_default=False)
        try:
            return int(str(answer).strip())
        except ValueError:
            return None

    def confirm_create(self, default: DefaultContainer) -> bool:
        return typer.confirm(
            f"No matching container found. Create '{default.name}' from '{default.image}'?",
            default=False,
        )


class ContainerSelector:
    """Combine discovery, classification and caller intent into one container."""

    def __init__(
        self,
        client: DistroboxClient,
        classifier: FamilyClassifier,
        *,
        prompter: Prompter | None = None,
        defaults: Mapping[str, str] | None = None,
    ) -> None:
        self._client = client
        self._classifier = classifier
        self._prompter = prompter or TerminalPrompter()
        self._defaults = dict(defaults or {})

    def select(
        self,
        containers: Sequence[ContainerRecord],
        policy: SelectionPolicy,
        package_format: PackageFormat | None = None,
    ) -> SelectedContainer:
        """Return exactly one container for ``package_format`` under ``policy``.

        Raises:
            NotFoundError: If an explicitly named container does not exist.
            ClassificationFailure: If an explicitly named container cannot be classified.
            NoMatchFound: If no unambiguous container exists and none may be created.
            ContainerCreationError: If creating a new container fails.
        """

        if policy.container is not None:
            return self._select_named(containers, policy.container)

        candidates = candidate_families(policy, package_format)
        matches = self._matching(containers, candidates)
        if len(matches) == 1:
            return matches[0]
        if matches:
            return self._resolve_ambiguous(matches, candidates, policy)
        return self._create_or_fail(candidates[0], policy)

    def _select_named(self, containers: Sequence[ContainerRecord], name: str) -> SelectedContainer:
        if not any(record.name == name for record in containers):
            raise NotFoundError(f"Container '{name}' not found")
        return SelectedContainer(name=name, family=self._classifier.classify(name))

    def _matching(
        self,
        containers: Sequence[ContainerRecord],
        candidates: Sequence[Family],
    ) -> list[SelectedContainer]:
        matches: list[SelectedContainer] = []
        for record in containers:
            family = self._classifier.try_classify(record.name)
            if family is not None and family in candidates:
                matches.append(SelectedContainer(name=record.name, family=family))
        return matches

    def _resolve_ambiguous(
        self,
        matches: Sequence[SelectedContainer],
        candidates: Sequence[Family],
        policy: SelectionPolicy,
    ) -> SelectedContainer:
        for family in candidates:
            preferred = self._defaults.get(family.key)
            for match in matches:
                if match.name == preferred and match.family is family:
                    LOGGER.debug("using default container %s for %s", match.name, family.value)
                    return match
        if policy.interactive:
            choice = self._prompter.choose(matches)
            if choice is not None and 1 <= choice <= len(matches):
                return matches[choice - 1]
        names = ", ".join(match.name for match in matches)
        raise NoMatchFound(
            f"Several containers match ({names}); rerun with --container NAME or --family FAMILY",
        )

    def _create_or_fail(self, family: Family, policy: SelectionPolicy) -> SelectedContainer:
        default = DEFAULT_CONTAINERS[family]
        image = policy.create_image or default.image
        target = DefaultContainer(default.name, image)
        if policy.create or (policy.interactive and self._prompter.confirm_create(target)):
            return self._create(target, family)
        raise NoMatchFound(
            "No matching container found; rerun with --create or specify --container/--family",
        )

    def _create(self, target: DefaultContainer, family: Family) -> SelectedContainer:
        completed = self._client.create(target.name, target.image)
        if completed.returncode != 0:
            detail = combined_output(completed) or f"exit status {completed.returncode}"
            raise ContainerCreationError(f"Creating '{target.name}' from '{target.image}' failed: {detail}")
        return SelectedContainer(name=target.name, family=family, created=True)


def candidate_families(policy: SelectionPolicy, package_format: PackageFormat | None) -> tuple[Family, ...]:
    """Return the families acceptable for this selection, in preference order."""

    if policy.family is not None:
        return (policy.family,)
    if package_format is None:
        raise NoMatchFound("A package format or --family is required to choose a container")
    return package_format.candidate_families()


def record_created_default(settings: Settings, selected: SelectedContainer) -> Settings | None:
    """Return updated settings when a newly created container should become a default."""

    if not selected.created or settings.default_for(selected.family) is not None:
        return None
    return settings.with_default(selected.family, selected.name)


__all__ = [
    "ContainerSelector",
    "Prompter",
    "SelectionPolicy",
    "TerminalPrompter",
    "candidate_families",
    "record_created_default",
]
