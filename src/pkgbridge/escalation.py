# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Privilege-escalation plans for commands run inside containers."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .distrobox import DistroboxClient
from .errors import InstallFailure
from .process_utils import OutputMode, ProcessRunner, combined_output, format_argv

LOGGER = logging.getLogger(__name__)


class Privilege(str, Enum):
    """Identity an execution attempt runs under inside the container."""

    ROOT = "root"
    USER = "user"


@dataclass(frozen=True, slots=True)
class EscalationStep:
    """One rung of the in-container elevation chain.

    ``probe`` is a shell condition deciding whether the step applies; a step
    without a probe always applies and terminates the chain.
    """

    label: str
    prefix: tuple[str, ...]
    probe: str | None = None
    interactive: bool = False
    noninteractive_prefix: tuple[str, ...] | None = None

    def for_session(self, *, interactive: bool) -> EscalationStep | None:
        """Return the variant of this step usable in the given session, if any."""

        if interactive or not self.interactive:
            return self
        if self.noninteractive_prefix is None:
            return None
        return EscalationStep(
            label=f"{self.label} (non-interactive)",
            prefix=self.noninteractive_prefix,
            probe=self.probe,
        )


ESCALATION_CHAIN: Final[tuple[EscalationStep, ...]] = (
    EscalationStep(
        label="sudo -n",
        prefix=("sudo", "-n"),
        probe="command -v sudo >/dev/null 2>&1 && sudo -n true >/dev/null 2>&1",
    ),
    EscalationStep(
        label="sudo",
        prefix=("sudo",),
        probe="command -v sudo >/dev/null 2>&1",
        interactive=True,
    ),
    EscalationStep(
        label="doas",
        prefix=("doas",),
        probe="command -v doas >/dev/null 2>&1",
        interactive=True,
        noninteractive_prefix=("doas", "-n"),
    ),
    EscalationStep(label="plain", prefix=()),
)


@dataclass(frozen=True, slots=True)
class ExecutionAttempt:
    """A fully built command variant together with the identity it uses."""

    label: str
    argv: tuple[str, ...]
    privilege: Privilege
    output: OutputMode = OutputMode.INHERIT


def session_chain(*, interactive: bool, chain: Sequence[EscalationStep] = ESCALATION_CHAIN) -> list[EscalationStep]:
    """Return the escalation steps usable in an (non-)interactive session."""

    steps: list[EscalationStep] = []
    for step in chain:
        variant = step.for_session(interactive=interactive)
        if variant is not None:
            steps.append(variant)
    return steps


def wrap_with_escalation(script: str, steps: Sequence[EscalationStep]) -> str:
    """Return a shell conditional running ``script`` through the first applicable step."""

    inner = shlex.quote(script)
    branches: list[str] = []
    fallback: str | None = None
    for step in steps:
        command = " ".join([*step.prefix, "sh", "-c", inner])
        if step.probe is None:
            fallback = command
            break
        keyword = "if" if not branches else "elif"
        branches.append(f"{keyword} {step.probe}; then {command}")
    if not branches:
        return fallback or f"sh -c {inner}"
    tail = f"; else {fallback}" if fallback is not None else ""
    return "; ".join(branches) + f"{tail}; fi"


def plan_attempts(
    client: DistroboxClient,
    container: str,
    script: str,
    *,
    interactive: bool,
) -> list[ExecutionAttempt]:
    """Return the ordered command variants for running ``script`` with elevation.

    Interactive sessions try the user variant first so that password prompts
    reach the terminal; non-interactive sessions start with the root identity
    and fall back to a user variant that never prompts.
    """

    root = ExecutionAttempt(
        label="root",
        argv=tuple(client.shell_argv(container, script, as_root=True)),
        privilege=Privilege.ROOT,
    )
    user_script = wrap_with_escalation(script, session_chain(interactive=interactive))
    if interactive:
        user = ExecutionAttempt(
            label="user",
            argv=tuple(client.shell_argv(container, user_script)),
            privilege=Privilege.USER,
        )
        return [user, root]
    user = ExecutionAttempt(
        label="user (non-interactive)",
        argv=tuple(client.shell_argv(container, user_script)),
        privilege=Privilege.USER,
    )
    return [root, user]


def execute_attempts(
    runner: ProcessRunner,
    attempts: Sequence[ExecutionAttempt],
    *,
    container: str,
) -> ExecutionAttempt:
    """Run ``attempts`` in order and return the first one that succeeds.

    Raises:
        InstallFailure: When every attempt fails; each attempt is re-run with
            captured output and the results are concatenated.
    """

    for attempt in attempts:
        LOGGER.debug("attempting %s variant: %s", attempt.label, format_argv(attempt.argv))
        completed = runner.run(attempt.argv, output=attempt.output)
        if completed.returncode == 0:
            return attempt
        LOGGER.debug("%s variant exited with status %s", attempt.label, completed.returncode)

    diagnostics: list[tuple[str, str]] = []
    for attempt in attempts:
        rerun = runner.run(attempt.argv, output=OutputMode.CAPTURE)
        output = combined_output(rerun) or f"exit status {rerun.returncode}"
        diagnostics.append((attempt.label, output))
    raise InstallFailure(container, diagnostics)


__all__ = [
    "ESCALATION_CHAIN",
    "EscalationStep",
    "ExecutionAttempt",
    "Privilege",
    "execute_attempts",
    "plan_attempts",
    "session_chain",
    "wrap_with_escalation",
]
