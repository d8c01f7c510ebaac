# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0


"""Shared leaf-level types used across licensefinder.

This module must have **zero** imports from other ``licensefinder``
modules to avoid circular-import chains.  It is safe to import from
any module in the project.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Union

__all__ = [
    'EnvironmentInfo',
    'Found',
    'InstalledPackage',
    'LicenseSourceResult',
    'LockLookup',
    'LockRecord',
    'NotFound',
    'ResolutionStep',
]


@dataclass(frozen=True)
class LockRecord:
    """A single ``[[package]]`` entry from a lockfile.

    Attributes:
        name: Package name as spelled in the lockfile.
        version: Pinned version. Empty string when the entry has none.
        dependencies: Names of the declared sub-dependencies.
    """

    name: str
    version: str = ''
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class Found:
    """A lockfile lookup that matched a record."""

    record: LockRecord


@dataclass(frozen=True)
class NotFound:
    """A lockfile lookup for a name the lockfile does not list."""

    name: str


LockLookup = Union[Found, NotFound]


class ResolutionStep(str, enum.Enum):
    """Which fallback step produced a package's license data."""

    INSTALLED = 'installed'
    GITHUB = 'github'
    SPEC = 'spec'


@dataclass(frozen=True)
class LicenseSourceResult:
    """Transient output of one resolution step, merged into a package.

    Attributes:
        step: The step that produced this result.
        licenses: Raw license names, not yet canonicalized.
        authors: Author string from the source, if any.
        description: Description from the source, if any.
        homepage: Homepage URL from the source, if any.
        install_path: Local ``.dist-info`` directory (installed step only).
    """

    step: ResolutionStep
    licenses: tuple[str, ...] = ()
    authors: str = ''
    description: str = ''
    homepage: str = ''
    install_path: Path | None = None


@dataclass(frozen=True)
class InstalledPackage:
    """One row of the installed-package listing."""

    name: str
    version: str
    summary: str = ''


@dataclass(frozen=True)
class EnvironmentInfo:
    """The active virtualenv, as reported by the package manager.

    Attributes:
        python_version: ``major.minor`` of the interpreter (e.g. ``"3.12"``).
        root: Root directory of the virtualenv.
    """

    python_version: str
    root: Path

    def site_packages(self) -> Path:
        """Return the environment's ``site-packages`` directory."""
        return self.root / 'lib' / f'python{self.python_version}' / 'site-packages'
