# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared services."""

from __future__ import annotations

import typer

from ..onboarding import Onboarding
from .containers import doctor_command, list_command
from .exports import export_command, uninstall_command
from .install import install_command, open_command
from .options import EMOJI_OPTION, VERBOSE_OPTION
from .pm import pm_app
from .shared import configure_debug_logging, get_context

app = typer.Typer(
    name="pkgbridge",
    help="Install .deb and .rpm packages into Distrobox containers and export them to the host.",
    no_args_is_help=True,
)

_SKIP_ONBOARDING = frozenset({"doctor", "pm"})


@app.callback()
def main_callback(
    ctx: typer.Context,
    emoji: EMOJI_OPTION = True,
    verbose: VERBOSE_OPTION = False,
) -> None:
    """Configure output and offer first-run setup."""

    context = get_context(ctx)
    context.emoji = emoji
    configure_debug_logging(verbose)
    if ctx.resilient_parsing or ctx.invoked_subcommand in _SKIP_ONBOARDING:
        return
    onboarding = Onboarding(
        context.client,
        context.classifier,
        context.exporter,
        context.layout,
        confirm=lambda message: typer.confirm(message, default=True),
        use_emoji=emoji,
    )
    onboarding.maybe_run(interactive=context.interactive)


app.command("install")(install_command)
app.command("open")(open_command)
app.command("export")(export_command)
app.command("uninstall")(uninstall_command)
app.command("list")(list_command)
app.command("doctor")(doctor_command)
app.add_typer(pm_app, name="pm")


def main() -> None:
    """Console-script entry point."""

    app(prog_name="pkgbridge")


__all__ = ["app", "main"]
