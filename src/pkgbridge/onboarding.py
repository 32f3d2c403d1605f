# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""First-run setup offered on the first interactive invocation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .config import load_settings, load_state, save_settings, save_state
from .console import detect_tty
from .constants import COUNT_APPS_SCRIPT, LIST_APPS_SCRIPT
from .discovery import discover_containers
from .distrobox import DistroboxClient
from .errors import ConfigIOError
from .exporting import ExportEngine, ExportReport
from .families import FamilyClassifier
from .logging import info, ok, section, warn
from .models import ContainerRecord, Family, PackageManifest, desktop_basename
from .paths import HostLayout
from .pm_shims import generate_pm_shims

LOGGER = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


@dataclass(slots=True)
class OnboardingSurvey:
    """Families and desktop entries found across existing containers."""

    families: dict[Family, str] = field(default_factory=dict)
    app_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_apps(self) -> int:
        return sum(self.app_counts.values())

    @property
    def is_empty(self) -> bool:
        return not self.families and self.total_apps == 0


def _parse_count(text: str) -> int:
    stripped = text.strip()
    return int(stripped) if stripped.isdigit() else 0


def survey_containers(
    client: DistroboxClient,
    classifier: FamilyClassifier,
    containers: Sequence[ContainerRecord],
) -> OnboardingSurvey:
    """Record the first container of each family and count desktop entries per container."""

    survey = OnboardingSurvey()
    for record in containers:
        family = classifier.try_classify(record.name)
        if family is None:
            continue
        survey.families.setdefault(family, record.name)
        completed = client.run_in(record.name, COUNT_APPS_SCRIPT)
        survey.app_counts[record.name] = _parse_count(completed.stdout or "") if completed.returncode == 0 else 0
    return survey


def list_container_apps(client: DistroboxClient, container: str) -> list[str]:
    completed = client.run_in(container, LIST_APPS_SCRIPT)
    if completed.returncode != 0:
        return []
    return [desktop_basename(line.strip()) for line in (completed.stdout or "").splitlines() if line.strip()]


def export_existing_apps(
    client: DistroboxClient,
    exporter: ExportEngine,
    containers: Sequence[str],
) -> list[ExportReport]:
    """Export every desktop entry already present in ``containers``."""

    reports: list[ExportReport] = []
    for container in containers:
        entries = list_container_apps(client, container)
        if entries:
            reports.append(exporter.export(container, PackageManifest(desktop_entries=entries)))
    return reports


class Onboarding:
    """Offer defaults, package-manager shims and app export once per user."""

    def __init__(
        self,
        client: DistroboxClient,
        classifier: FamilyClassifier,
        exporter: ExportEngine,
        layout: HostLayout,
        *,
        confirm: Confirm,
        use_emoji: bool = False,
    ) -> None:
        self._client = client
        self._classifier = classifier
        self._exporter = exporter
        self._layout = layout
        self._confirm = confirm
        self._use_emoji = use_emoji

    def maybe_run(self, *, interactive: bool) -> bool:
        """Run onboarding when it has not completed yet; return ``True`` if it ran.

        Non-interactive sessions leave the flag untouched so the offer is made
        on the next interactive invocation.
        """

        state = load_state(self._layout.state_file)
        if state.first_run_done or not interactive:
            return False
        containers = discover_containers(self._client)
        survey = survey_containers(self._client, self._classifier, containers)
        if not survey.is_empty:
            self._offer(survey, [record.name for record in containers])
        self._mark_done()
        return True

    def _offer(self, survey: OnboardingSurvey, containers: list[str]) -> None:
        section("pkgbridge first-run setup", use_color=detect_tty())
        if survey.families:
            names = ", ".join(family.value for family in survey.families)
            info(f"- Found families: {names}", use_emoji=False)
        if survey.total_apps:
            info(f"- Found ~{survey.total_apps} desktop apps across containers", use_emoji=False)

        settings = load_settings(self._layout.config_file)
        for family, container in survey.families.items():
            if settings.default_for(family) is None:
                settings = settings.with_default(family, container)
        try:
            save_settings(self._layout.config_file, settings)
        except ConfigIOError as exc:
            warn(str(exc), use_emoji=self._use_emoji)

        if not self._confirm("Generate package-manager shims and export existing desktop apps now?"):
            return
        try:
            for outcome in generate_pm_shims(settings.pm_defaults, self._layout.bin_dir):
                LOGGER.debug("pm shim %s: %s", outcome.path, outcome.status.value)
        except OSError as exc:
            warn(f"Unable to write package-manager shims: {exc}", use_emoji=self._use_emoji)
        classified = [name for name in containers if name in survey.app_counts]
        for report in export_existing_apps(self._client, self._exporter, classified):
            for message in report.warnings:
                warn(message, use_emoji=self._use_emoji)
        ok("First-run export completed.", use_emoji=self._use_emoji)

    def _mark_done(self) -> None:
        state = load_state(self._layout.state_file)
        state.first_run_done = True
        try:
            save_state(self._layout.state_file, state)
        except ConfigIOError as exc:
            warn(str(exc), use_emoji=self._use_emoji)


__all__ = [
    "Onboarding",
    "OnboardingSurvey",
    "export_existing_apps",
    "list_container_apps",
    "survey_containers",
]
