# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import logging
import shlex
import shutil

# Bandit: subprocess usage is intentional; every call passes an argument list
# without ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from subprocess import CompletedProcess  # nosec B404
from typing import Final, Protocol

from .constants import MISSING_EXECUTABLE_STATUS

LOGGER = logging.getLogger(__name__)

_PIPE_CHUNK_SIZE: Final[int] = 64 * 1024


class OutputMode(str, Enum):
    """How a child process's output streams are wired."""

    CAPTURE = "capture"
    INHERIT = "inherit"
    DISCARD = "discard"


def format_argv(args: Sequence[str]) -> str:
    """Return ``args`` rendered as a copy-pasteable shell command."""

    return " ".join(shlex.quote(arg) for arg in args)


def _normalize_args(args: Sequence[str]) -> list[str]:
    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    capture_output: bool = False,
    discard_output: bool = False,
) -> CompletedProcess[str]:
    """Execute *args* after normalising the executable path.

    Args:
        args: Command and arguments; the executable is resolved on ``PATH``.
        capture_output: Collect stdout/stderr instead of inheriting them.
        discard_output: Send stdout/stderr to ``/dev/null``.

    Returns:
        CompletedProcess[str]: Result of the finished process; a non-zero exit
        status is returned, not raised.

    Raises:
        FileNotFoundError: If the executable cannot be located.
    """

    normalized = _normalize_args(args)
    LOGGER.debug("CMD %s", format_argv(args))
    stream = subprocess.DEVNULL if discard_output and not capture_output else None
    # Bandit: argument lists are built internally and never shell-expanded.
    return subprocess.run(  # nosec B603
        normalized,
        check=False,
        capture_output=capture_output,
        stdout=stream,
        stderr=stream,
        text=True,
    )


def pipe_file_to_command(args: Sequence[str], source: Path) -> CompletedProcess[str]:
    """Stream the bytes of ``source`` into the standard input of ``args``.

    Flow control is left to the OS pipe buffer. A child that exits early
    surfaces as a non-zero result rather than an exception.
    """

    normalized = _normalize_args(args)
    LOGGER.debug("PIPE %s < %s", format_argv(args), source)
    # Bandit: argument lists are built internally and never shell-expanded.
    process = subprocess.Popen(normalized, stdin=subprocess.PIPE)  # nosec B603
    stdin = process.stdin
    if stdin is None:  # pragma: no cover - Popen always provides a pipe here
        process.kill()
        process.wait()
        return CompletedProcess(list(args), 1, "", "failed to open stdin to child process")
    broken = False
    try:
        with source.open("rb") as handle:
            while chunk := handle.read(_PIPE_CHUNK_SIZE):
                stdin.write(chunk)
    except BrokenPipeError:
        broken = True
    finally:
        try:
            stdin.close()
        except BrokenPipeError:
            broken = True
    returncode = process.wait()
    if broken:
        return CompletedProcess(list(args), returncode or 1, "", "broken pipe while streaming file")
    return CompletedProcess(list(args), returncode, "", "")


class ProcessRunner(Protocol):
    """Process-execution capability used by every container operation."""

    def run(self, args: Sequence[str], *, output: OutputMode = OutputMode.CAPTURE) -> CompletedProcess[str]:
        """Run ``args`` to completion and return its result."""
        ...

    def pipe_file(self, args: Sequence[str], source: Path) -> CompletedProcess[str]:
        """Run ``args`` with the contents of ``source`` on its stdin."""
        ...


def _missing_executable(args: Sequence[str], exc: FileNotFoundError) -> CompletedProcess[str]:
    return CompletedProcess(list(args), MISSING_EXECUTABLE_STATUS, "", str(exc))


class SubprocessRunner:
    """:class:`ProcessRunner` backed by real subprocesses.

    A missing executable is reported as exit status 127, mirroring the shell,
    so callers can treat "tool absent" like any other failed command.
    """

    def run(self, args: Sequence[str], *, output: OutputMode = OutputMode.CAPTURE) -> CompletedProcess[str]:
        try:
            return run_command(
                args,
                capture_output=output is OutputMode.CAPTURE,
                discard_output=output is OutputMode.DISCARD,
            )
        except FileNotFoundError as exc:
            LOGGER.debug("missing executable: %s", exc)
            return _missing_executable(args, exc)

    def pipe_file(self, args: Sequence[str], source: Path) -> CompletedProcess[str]:
        try:
            return pipe_file_to_command(args, source)
        except FileNotFoundError as exc:
            LOGGER.debug("missing executable: %s", exc)
            return _missing_executable(args, exc)


def combined_output(completed: CompletedProcess[str]) -> str:
    """Return stdout and stderr of ``completed`` joined into one string."""

    parts = [part for part in (completed.stdout, completed.stderr) if isinstance(part, str) and part]
    return "\n".join(part.rstrip("\n") for part in parts)


__all__ = [
    "OutputMode",
    "ProcessRunner",
    "SubprocessRunner",
    "combined_output",
    "format_argv",
    "pipe_file_to_command",
    "run_command",
]
