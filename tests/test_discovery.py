# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for container discovery."""

from __future__ import annotations

import json

import pytest

from pkgbridge.discovery import discover_containers, parse_listing_json, parse_listing_plain
from pkgbridge.models import ContainerRecord


def test_json_array_listing() -> None:
    payload = json.dumps([{"name": "deb", "image": "debian:stable", "engine": "podman"}, {"name": "fed"}])
    assert parse_listing_json(payload) == [
        ContainerRecord(name="deb", image="debian:stable", runtime="podman"),
        ContainerRecord(name="fed", image=None, runtime="unknown"),
    ]


def test_json_object_listing() -> None:
    payload = json.dumps({"containers": [{"name": "arch", "image": "archlinux", "engine": "docker"}]})
    assert parse_listing_json(payload) == [ContainerRecord(name="arch", image="archlinux", runtime="docker")]


def test_json_listing_rejects_other_shapes() -> None:
    with pytest.raises(ValueError):
        parse_listing_json('{"boxes": []}')


def test_pipe_table_listing() -> None:
    text = (
        "ID           | NAME        | STATUS             | IMAGE\n"
        "-------------+-------------+--------------------+---------------------------\n"
        "a1b2c3d4e5f6 | debian-box  | Up 2 hours         | docker.io/library/debian:stable\n"
        "0f9e8d7c6b5a | fedora-box  | Exited (0) 1 day   | registry.fedoraproject.org/fedora:latest\n"
    )
    records = parse_listing_plain(text)
    assert [record.name for record in records] == ["debian-box", "fedora-box"]
    assert records[0].image == "docker.io/library/debian:stable"
    assert all(record.runtime == "unknown" for record in records)


def test_whitespace_legacy_listing() -> None:
    text = "NAME IMAGE\nmybox docker.io/library/ubuntu:22.04\nother\n"
    records = parse_listing_plain(text)
    assert records == [
        ContainerRecord(name="mybox", image="docker.io/library/ubuntu:22.04"),
        ContainerRecord(name="other", image=None),
    ]


def test_whitespace_rows_after_pipe_header_use_id_column() -> None:
    text = "ID | NAME | STATUS | IMAGE\n" "a1b2c3d4e5f6 archbox Up archlinux:latest\n"
    assert parse_listing_plain(text) == [ContainerRecord(name="archbox", image="archlinux:latest")]


def test_discovery_prefers_json(fake_runner, client) -> None:
    fake_runner.on("distrobox list --json", stdout=json.dumps([{"name": "box"}]))
    assert [record.name for record in discover_containers(client)] == ["box"]
    assert len(fake_runner.calls) == 1


def test_discovery_falls_back_to_plain_text(fake_runner, client) -> None:
    fake_runner.on("distrobox list --json", returncode=1, stderr="unknown flag")
    fake_runner.on("distrobox list", stdout="ID | NAME | STATUS | IMAGE\nabcdef123456 | box | Up | img\n")
    assert [record.name for record in discover_containers(client)] == ["box"]


def test_discovery_falls_back_on_empty_json(fake_runner, client) -> None:
    fake_runner.on("distrobox list --json", stdout="  \n")
    fake_runner.on("distrobox list", stdout="plainbox image\n")
    assert [record.name for record in discover_containers(client)] == ["plainbox"]


def test_missing_tool_yields_no_containers(fake_runner, client) -> None:
    fake_runner.on("distrobox list", returncode=127, stderr="not found")
    assert discover_containers(client) == []
