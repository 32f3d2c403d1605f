# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line interface for pkgbridge."""

from __future__ import annotations

from .app import app, main

__all__ = ["app", "main"]
