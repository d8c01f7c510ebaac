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


"""Error taxonomy for licensefinder.

Only :class:`MalformedLockfile` and :class:`PackageListingFailed` are
meant to abort a whole scan. :class:`RemoteLookupFailed` aborts unless
the scan runs in best-effort mode. The remaining errors are always
recovered per package by the orchestrator.
"""

from __future__ import annotations

__all__ = [
    'ConfigError',
    'EnvironmentUnavailable',
    'LicenseFinderError',
    'MalformedLockfile',
    'PackageIndexUnavailable',
    'PackageListingFailed',
    'RemoteLookupFailed',
]


class LicenseFinderError(Exception):
    """Base class for all licensefinder errors."""


class ConfigError(LicenseFinderError):
    """Raised when ``[tool.licensefinder]`` holds an invalid value."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f'Invalid configuration for {key!r}: {message}')


class MalformedLockfile(LicenseFinderError):
    """Raised when a lockfile cannot be used for reconciliation.

    Attributes:
        package: The offending package name, or ``''`` when the whole
            file is unreadable.
        path: Path of the lockfile, when known.
    """

    def __init__(self, message: str, *, package: str = '', path: str = '') -> None:
        self.package = package
        self.path = path
        super().__init__(message)


class PackageListingFailed(LicenseFinderError):
    """Raised when the installed-package lister's process fails."""

    def __init__(self, command: str, stderr: str = '') -> None:
        self.command = command
        self.stderr = stderr
        detail = f': {stderr.strip()}' if stderr.strip() else ''
        super().__init__(f'{command!r} failed{detail}')


class EnvironmentUnavailable(LicenseFinderError):
    """Raised when no local environment descriptor can be produced."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f'{command!r} gave no usable environment: {reason}')


class RemoteLookupFailed(LicenseFinderError):
    """Raised on a connectivity or protocol failure against the source host.

    Attributes:
        url: The API URL that was being fetched when the failure happened.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f'Unsuccessful calling {url}: {reason}')


class PackageIndexUnavailable(LicenseFinderError):
    """Raised when the package index has no usable record for a release."""

    def __init__(self, package: str, version: str, reason: str) -> None:
        self.package = package
        self.version = version
        self.reason = reason
        super().__init__(f'No package index data for {package}=={version}: {reason}')
