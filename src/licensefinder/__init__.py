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


"""Resolve licenses, authors and dependency groups for Poetry projects.

licensefinder reads a project's ``poetry.lock`` and ``pyproject.toml``,
works out which dependency groups reach each locked package, and finds
each package's license by trying, in order, the locally installed
metadata, GitHub's license API, and the PyPI release metadata.

Usage::

    from pathlib import Path

    from licensefinder import load_config, scan

    for pkg in scan(load_config(Path('.'))):
        print(pkg.name, pkg.version, [str(l) for l in pkg.licenses])
"""

from licensefinder.config import ScanConfig, load_config
from licensefinder.errors import (
    LicenseFinderError,
    MalformedLockfile,
    PackageIndexUnavailable,
    PackageListingFailed,
    RemoteLookupFailed,
)
from licensefinder.package import Package
from licensefinder.scan import scan, scan_project

__all__ = [
    'LicenseFinderError',
    'MalformedLockfile',
    'Package',
    'PackageIndexUnavailable',
    'PackageListingFailed',
    'RemoteLookupFailed',
    'ScanConfig',
    'load_config',
    'scan',
    'scan_project',
]
