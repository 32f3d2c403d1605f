# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess

import pytest

from pkgbridge.constants import OS_RELEASE_SCRIPT
from pkgbridge.distrobox import DistroboxClient
from pkgbridge.paths import HostLayout
from pkgbridge.process_utils import OutputMode

Responder = Callable[[list[str]], CompletedProcess[str]]

OS_RELEASES: dict[str, str] = {
    "debian": 'PRETTY_NAME="Debian GNU/Linux 12"\nID=debian\n',
    "ubuntu": 'NAME="Ubuntu"\nID=ubuntu\nID_LIKE=debian\n',
    "fedora": 'NAME="Fedora Linux"\nID=fedora\n',
    "opensuse": 'NAME="openSUSE Tumbleweed"\nID="opensuse-tumbleweed"\nID_LIKE="opensuse suse"\n',
    "arch": "NAME=\"Arch Linux\"\nID=arch\n",
}


def completed(args: Sequence[str], returncode: int = 0, stdout: str = "", stderr: str = "") -> CompletedProcess[str]:
    return CompletedProcess(args=list(args), returncode=returncode, stdout=stdout, stderr=stderr)


@dataclass
class _Rule:
    fragment: str
    responder: Responder


class FakeRunner:
    """Recording process runner; responses are chosen by argv substring.

    Rules are matched in registration order against the space-joined argv.
    Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], OutputMode]] = []
        self.piped: list[tuple[list[str], bytes]] = []
        self._rules: list[_Rule] = []

    def on(
        self,
        fragment: str,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        responder: Responder | None = None,
    ) -> None:
        def _static(args: list[str]) -> CompletedProcess[str]:
            return completed(args, returncode, stdout, stderr)

        self._rules.append(_Rule(fragment, responder or _static))

    def _respond(self, args: list[str]) -> CompletedProcess[str]:
        joined = " ".join(args)
        for rule in self._rules:
            if rule.fragment in joined:
                return rule.responder(args)
        return completed(args)

    def run(self, args: Sequence[str], *, output: OutputMode = OutputMode.CAPTURE) -> CompletedProcess[str]:
        argv = list(args)
        self.calls.append((argv, output))
        return self._respond(argv)

    def pipe_file(self, args: Sequence[str], source: Path) -> CompletedProcess[str]:
        argv = list(args)
        self.piped.append((argv, source.read_bytes()))
        return self._respond(argv)

    def commands(self, fragment: str = "") -> list[list[str]]:
        return [argv for argv, _ in self.calls if fragment in " ".join(argv)]

    def set_os_release(self, container: str, distro: str) -> None:
        self.on(f"-n {container} -- sh -lc {OS_RELEASE_SCRIPT}", stdout=OS_RELEASES[distro])


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def client(fake_runner: FakeRunner) -> DistroboxClient:
    return DistroboxClient(fake_runner)


@pytest.fixture
def layout(tmp_path: Path) -> HostLayout:
    home = tmp_path / "home"
    return HostLayout.from_env({"HOME": str(home), "PATH": "/usr/bin"})
