# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for privilege-escalation planning and execution."""

from __future__ import annotations

import pytest

from pkgbridge.errors import InstallFailure
from pkgbridge.escalation import (
    Privilege,
    execute_attempts,
    plan_attempts,
    session_chain,
    wrap_with_escalation,
)
from pkgbridge.process_utils import OutputMode


def test_interactive_plan_tries_user_first(client) -> None:
    attempts = plan_attempts(client, "box", "dpkg -i /tmp/x.deb", interactive=True)
    assert [attempt.privilege for attempt in attempts] == [Privilege.USER, Privilege.ROOT]
    assert "--root" in attempts[1].argv
    assert "--root" not in attempts[0].argv


def test_non_interactive_plan_tries_root_first(client) -> None:
    attempts = plan_attempts(client, "box", "true", interactive=False)
    assert [attempt.privilege for attempt in attempts] == [Privilege.ROOT, Privilege.USER]
    user_script = attempts[1].argv[-1]
    assert "sudo -n sh -c" in user_script
    assert "doas -n sh -c" in user_script
    assert "then sudo sh -c" not in user_script


def test_interactive_chain_order() -> None:
    labels = [step.label for step in session_chain(interactive=True)]
    assert labels == ["sudo -n", "sudo", "doas", "plain"]


def test_wrapped_script_structure() -> None:
    script = wrap_with_escalation("echo hi", session_chain(interactive=True))
    assert script.startswith("if command -v sudo")
    assert script.endswith("else sh -c 'echo hi'; fi")
    assert script.count("elif") == 2


def test_first_success_stops_execution(fake_runner, client) -> None:
    attempts = plan_attempts(client, "box", "install-it", interactive=True)
    chosen = execute_attempts(fake_runner, attempts, container="box")
    assert chosen is attempts[0]
    assert len(fake_runner.calls) == 1
    assert fake_runner.calls[0][1] is OutputMode.INHERIT


def test_falls_back_to_second_attempt(fake_runner, client) -> None:
    fake_runner.on("enter -n box", returncode=1)
    attempts = plan_attempts(client, "box", "install-it", interactive=True)
    chosen = execute_attempts(fake_runner, attempts, container="box")
    assert chosen.privilege is Privilege.ROOT


def test_all_failures_rerun_with_capture(fake_runner, client) -> None:
    fake_runner.on("--root", returncode=100, stderr="root: permission denied")
    fake_runner.on("enter -n box", returncode=1, stdout="E: Unable to locate package")
    attempts = plan_attempts(client, "box", "install-it", interactive=False)
    with pytest.raises(InstallFailure) as excinfo:
        execute_attempts(fake_runner, attempts, container="box")
    outputs = [mode for _, mode in fake_runner.calls]
    assert outputs == [OutputMode.INHERIT, OutputMode.INHERIT, OutputMode.CAPTURE, OutputMode.CAPTURE]
    message = str(excinfo.value)
    assert "root: permission denied" in message
    assert "E: Unable to locate package" in message
    assert [label for label, _ in excinfo.value.diagnostics] == ["root", "user (non-interactive)"]
