# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shell scripts driving the package managers inside containers."""

from __future__ import annotations

import shlex
from typing import Final

from .models import Family, PackageFormat


def _q(value: str) -> str:
    return shlex.quote(value)


def install_script(package_format: PackageFormat, path: str) -> str:
    """Return the script installing the package file at ``path``.

    Debian refreshes indexes when ``apt-get`` exists, installs with ``dpkg``
    and repairs missing dependencies with ``apt-get -f``. RPM prefers
    ``dnf``, then ``yum``, then ``zypper`` and finally bare ``rpm``.
    """

    target = _q(path)
    if package_format is PackageFormat.DEB:
        return (
            "if command -v apt-get >/dev/null 2>&1; then apt-get -y update || true; fi; "
            f"dpkg -i {target} || apt-get -y -f install"
        )
    return (
        f"if command -v dnf >/dev/null 2>&1; then dnf -y install {target}; "
        f"elif command -v yum >/dev/null 2>&1; then yum -y install {target}; "
        "elif command -v zypper >/dev/null 2>&1; then "
        f"zypper --non-interactive install --allow-unsigned-rpm {target}; "
        f"else rpm -i {target}; fi"
    )


def content_listing_script(package_format: PackageFormat, path: str) -> str:
    """Return the script listing the files inside an uninstalled package."""

    if package_format is PackageFormat.DEB:
        return f"dpkg -c {_q(path)}"
    return f"rpm -qlp {_q(path)}"


_INSTALLED_FILES: Final[dict[Family, str]] = {
    Family.DEBIAN: "dpkg -L",
    Family.FEDORA: "rpm -ql",
    Family.OPENSUSE: "rpm -ql",
    Family.ARCH: "pacman -Qlq",
}

_INVENTORY: Final[dict[Family, str]] = {
    Family.DEBIAN: "dpkg-query -W -f='${Package}\\t${Version}\\n'",
    Family.FEDORA: "rpm -qa --qf '%{NAME}\\t%{VERSION}-%{RELEASE}\\n'",
    Family.OPENSUSE: "rpm -qa --qf '%{NAME}\\t%{VERSION}-%{RELEASE}\\n'",
    Family.ARCH: "pacman -Q",
}


def installed_files_script(family: Family, package: str) -> str:
    """Return the script listing the files owned by an installed package."""

    return f"{_INSTALLED_FILES[family]} {_q(package)}"


def inventory_script(family: Family) -> str:
    """Return the script printing ``name<TAB>version`` for every installed package."""

    return _INVENTORY[family]


def uninstall_script(family: Family, package: str) -> str:
    """Return the script removing ``package``; meant to run as root."""

    target = _q(package)
    if family is Family.DEBIAN:
        return f"if command -v apt-get >/dev/null 2>&1; then apt-get -y remove {target}; else dpkg -r {target}; fi"
    if family is Family.FEDORA:
        return f"if command -v dnf >/dev/null 2>&1; then dnf -y remove {target}; else rpm -e {target}; fi"
    if family is Family.OPENSUSE:
        return (
            f"if command -v zypper >/dev/null 2>&1; then zypper --non-interactive rm {target}; "
            f"else rpm -e {target}; fi"
        )
    return (
        f"if command -v pacman >/dev/null 2>&1; then pacman -R --noconfirm {target}; "
        "else echo 'pacman not found' >&2; exit 1; fi"
    )


def size_script(path: str) -> str:
    """Return the script printing the byte size of ``path``."""

    target = _q(path)
    return f"stat -c %s {target} 2>/dev/null || wc -c < {target}"


__all__ = [
    "content_listing_script",
    "install_script",
    "installed_files_script",
    "inventory_script",
    "size_script",
    "uninstall_script",
]
