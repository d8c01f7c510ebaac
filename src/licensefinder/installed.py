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


"""Find licenses in a package's installed ``.dist-info`` directory.

Given the virtualenv descriptor, a release installs to::

    {root}/lib/python{X.Y}/site-packages/{name_with_underscores}-{version}.dist-info

License files are looked for at the top of that directory (``LICENSE*``,
``LICENCE*``, ``COPYING*``) and anywhere below its ``licenses/``
subdirectory, where PEP 639 wheels put them. A file only counts when its
text is recognized.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

from licensefinder._types import EnvironmentInfo
from licensefinder.licenses import find_by_text
from licensefinder.logging import get_logger

log = get_logger('licensefinder.installed')

__all__ = [
    'dist_info_path',
    'find_license_files',
    'license_names_at',
]

_LICENSE_FILE_PREFIXES: Final[tuple[str, ...]] = ('license', 'licence', 'copying')

# Skip anything larger; real license files are a few tens of KB.
_MAX_LICENSE_BYTES: Final[int] = 512 * 1024


def dist_info_path(env: EnvironmentInfo, name: str, version: str) -> Path:
    """Return the ``.dist-info`` directory for ``name==version`` in *env*."""
    return env.site_packages() / f'{name.replace("-", "_")}-{version}.dist-info'


def find_license_files(install_path: Path) -> list[Path]:
    """List candidate license files under *install_path*, sorted by path.

    An unreadable directory yields no files.
    """
    try:
        if not install_path.is_dir():
            return []
        found: list[Path] = [
            p for p in install_path.iterdir() if p.is_file() and p.name.lower().startswith(_LICENSE_FILE_PREFIXES)
        ]
        licenses_dir = install_path / 'licenses'
        if licenses_dir.is_dir():
            found.extend(p for p in licenses_dir.rglob('*') if p.is_file())
    except OSError as exc:
        log.debug('license_dir_unreadable', path=str(install_path), error=str(exc))
        return []
    return sorted(found)


def license_names_at(install_path: Path) -> list[str]:
    """Return the recognized license names found under *install_path*.

    Names are de-duplicated in file order. Unreadable or unrecognized
    files are ignored.
    """
    names: list[str] = []
    for path in find_license_files(install_path):
        try:
            if path.stat().st_size > _MAX_LICENSE_BYTES:
                continue
            text = path.read_text(encoding='utf-8', errors='replace')
        except OSError as exc:
            log.debug('license_file_unreadable', path=str(path), error=str(exc))
            continue
        lic = find_by_text(text)
        if lic is not None and lic.name not in names:
            names.append(lic.name)
    return names
