# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line construction for the Distrobox container tool."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from subprocess import CompletedProcess  # nosec B404

from .constants import DISTROBOX
from .process_utils import OutputMode, ProcessRunner

LOGGER = logging.getLogger(__name__)


class DistroboxClient:
    """Build and run ``distrobox`` invocations through a :class:`ProcessRunner`."""

    def __init__(self, runner: ProcessRunner, *, executable: str = DISTROBOX) -> None:
        self._runner = runner
        self._executable = executable

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    def list_argv(self, *, structured: bool) -> list[str]:
        argv = [self._executable, "list"]
        if structured:
            argv.append("--json")
        return argv

    def list_containers(self, *, structured: bool) -> CompletedProcess[str]:
        """Run the listing command, requesting JSON when ``structured``."""

        return self._runner.run(self.list_argv(structured=structured))

    def enter_argv(self, name: str, command: list[str], *, as_root: bool = False) -> list[str]:
        """Return the argv that runs ``command`` inside container ``name``."""

        argv = [self._executable, "enter"]
        if as_root:
            argv.append("--root")
        argv.extend(["-n", name, "--", *command])
        return argv

    def shell_argv(self, name: str, script: str, *, as_root: bool = False) -> list[str]:
        """Return the argv that runs ``script`` through a login shell in ``name``."""

        return self.enter_argv(name, ["sh", "-lc", script], as_root=as_root)

    def run_in(
        self,
        name: str,
        script: str,
        *,
        as_root: bool = False,
        output: OutputMode = OutputMode.CAPTURE,
    ) -> CompletedProcess[str]:
        """Run a shell ``script`` inside container ``name``."""

        return self._runner.run(self.shell_argv(name, script, as_root=as_root), output=output)

    def exec_in(
        self,
        name: str,
        command: list[str],
        *,
        output: OutputMode = OutputMode.CAPTURE,
    ) -> CompletedProcess[str]:
        """Run ``command`` directly (no shell) inside container ``name``."""

        return self._runner.run(self.enter_argv(name, command), output=output)

    def create(self, name: str, image: str) -> CompletedProcess[str]:
        """Create container ``name`` from ``image``; output goes to the terminal."""

        LOGGER.debug("creating container %s from %s", name, image)
        argv = [self._executable, "create", "--name", name, "--image", image, "--yes"]
        return self._runner.run(argv, output=OutputMode.INHERIT)

    def pipe_into(self, name: str, destination: str, source: Path) -> CompletedProcess[str]:
        """Stream ``source`` into ``destination`` inside container ``name``."""

        parent = destination.rsplit("/", 1)[0] or "/"
        script = f"mkdir -p {shlex.quote(parent)} && cat > {shlex.quote(destination)}"
        return self._runner.pipe_file(self.shell_argv(name, script), source)


__all__ = ["DistroboxClient"]
