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


"""The :class:`Package` data model.

A package is identified by ``(name, version)``. It is created once by the
reconciler, then enriched exactly once by the orchestrator with the
result of whichever resolution step succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from licensefinder._types import LicenseSourceResult, ResolutionStep
from licensefinder.licenses import UNKNOWN, License, find_by_name

__all__ = [
    'Package',
    'canonical_version',
]

_EXACT_OPERATORS = ('===', '==')


def canonical_version(version: str) -> str:
    """Strip a leading exact-match operator (``==``/``===``) from *version*."""
    stripped = version.strip()
    for op in _EXACT_OPERATORS:
        if stripped.startswith(op):
            return stripped[len(op) :].strip()
    return stripped


@dataclass(eq=False)
class Package:
    """A third-party package and its resolved license metadata.

    Attributes:
        name: Package name as spelled in the lockfile.
        version: Pinned version with any ``==`` prefix removed.
        groups: Dependency groups this package belongs to.
        authors: Author string from the terminating resolution step.
        description: Description from the terminating resolution step.
        homepage: Homepage URL from the terminating resolution step.
        install_path: Local ``.dist-info`` directory, when the installed
            metadata step succeeded.
        spec_licenses: Raw license names, in source order.
        resolution_step: Which step produced the license data, or
            ``None`` before resolution.
    """

    name: str
    version: str
    groups: set[str] = field(default_factory=set)
    authors: str = ''
    description: str = ''
    homepage: str = ''
    install_path: Path | None = None
    spec_licenses: list[str] = field(default_factory=list)
    resolution_step: ResolutionStep | None = None

    def __post_init__(self) -> None:
        self.version = canonical_version(self.version)

    @property
    def key(self) -> tuple[str, str]:
        """The ``(name, version)`` identity of this package."""
        return (self.name, self.version)

    @property
    def sorted_groups(self) -> list[str]:
        """Groups in a stable, sorted order for display and diffs."""
        return sorted(self.groups)

    @property
    def resolved(self) -> bool:
        """``True`` once license data has been applied."""
        return self.resolution_step is not None

    @property
    def licenses(self) -> list[License]:
        """Canonical licenses derived from :attr:`spec_licenses`.

        Never empty: a package with no license names reports
        ``[UNKNOWN]``. Repeated entities are dropped, first one wins.
        """
        seen: dict[str, License] = {}
        for raw in self.spec_licenses:
            lic = find_by_name(raw)
            seen.setdefault(lic.name, lic)
        return list(seen.values()) or [UNKNOWN]

    def apply(self, result: LicenseSourceResult) -> None:
        """Merge the output of a resolution step into this package.

        A result without a description keeps the one already set (the
        installed-package listing's summary).

        Raises:
            ValueError: If the package was already resolved.
        """
        if self.resolved:
            raise ValueError(f'{self.name} {self.version} was already resolved by {self.resolution_step}')
        self.spec_licenses = list(result.licenses)
        self.resolution_step = result.step
        self.install_path = result.install_path
        self.authors = result.authors
        self.description = result.description or self.description
        self.homepage = result.homepage

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f'Package(name={self.name!r}, version={self.version!r}, groups={self.sorted_groups!r})'
