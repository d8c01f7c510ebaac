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


"""License catalogue and name/text matching.

Turns free-text license strings into canonical :class:`License`
entities. Matching runs in three stages:

    1. **Exact**: case-insensitive match on the display name or SPDX id.
    2. **Alias**: case-insensitive match on a known alias (legacy names,
       PyPI classifier names, abbreviations).
    3. **Normalized**: punctuation and whitespace stripped, then compared.

A string that matches nothing becomes an *unrecognized* entity that keeps
the raw string as its name. An empty string becomes :data:`UNKNOWN`.

Usage::

    from licensefinder.licenses import find_by_name

    find_by_name('Apache License, Version 2.0').name  # 'Apache 2.0'
    find_by_name('BSD').name                          # 'Simplified BSD'
    find_by_name('Frobnicate License').unrecognized   # True
"""

from __future__ import annotations

import functools
import re
import unicodedata
from dataclasses import dataclass
from typing import Final

__all__ = [
    'CATALOGUE',
    'UNKNOWN',
    'License',
    'find_by_name',
    'find_by_text',
]


@dataclass(frozen=True)
class License:
    """A canonical license entity.

    Attributes:
        name: Display name (e.g. ``"Apache 2.0"``).
        spdx_id: SPDX identifier, ``""`` for unrecognized entities.
        aliases: Other spellings that resolve to this license.
        unrecognized: ``True`` when the entity was synthesized from a
            string the catalogue does not know.
    """

    name: str
    spdx_id: str = ''
    aliases: tuple[str, ...] = ()
    unrecognized: bool = False

    def __str__(self) -> str:
        return self.name


UNKNOWN: Final[License] = License(name='unknown', unrecognized=True)

CATALOGUE: Final[tuple[License, ...]] = (
    License(
        'MIT',
        'MIT',
        ('MIT License', 'The MIT License', 'Expat', 'Expat License', 'MIT/X11', 'MIT-style'),
    ),
    License(
        'Apache 2.0',
        'Apache-2.0',
        (
            'Apache License, Version 2.0',
            'Apache License Version 2.0',
            'Apache License 2.0',
            'Apache Software License',
            'Apache Software License 2.0',
            'Apache License',
            'Apache 2',
            'Apache2',
            'ASL 2.0',
            'ASF 2.0',
        ),
    ),
    License(
        'New BSD',
        'BSD-3-Clause',
        (
            'BSD 3-Clause',
            'BSD 3-Clause License',
            'BSD-3',
            '3-clause BSD',
            '3-Clause BSD License',
            'Modified BSD',
            'Modified BSD License',
            'New BSD License',
            'Revised BSD',
        ),
    ),
    License(
        'Simplified BSD',
        'BSD-2-Clause',
        (
            'BSD',
            'BSD License',
            'BSD 2-Clause',
            'BSD 2-Clause License',
            'BSD-2',
            '2-clause BSD',
            'FreeBSD',
            'Simplified BSD License',
        ),
    ),
    License('0BSD', '0BSD', ('BSD Zero Clause License', 'Zero-Clause BSD')),
    License('ISC', 'ISC', ('ISC License', 'ISC License (ISCL)', 'ISCL')),
    License(
        'Python Software Foundation License',
        'PSF-2.0',
        ('PSF', 'PSFL', 'PSF License', 'Python Software Foundation', 'Python-2.0', 'Python License'),
    ),
    License(
        'Mozilla Public License 2.0',
        'MPL-2.0',
        ('MPL 2.0', 'MPL2', 'Mozilla Public License 2.0 (MPL 2.0)', 'Mozilla Public License, Version 2.0'),
    ),
    License(
        'GPLv2',
        'GPL-2.0-only',
        ('GPL-2.0', 'GPL 2', 'GPL v2', 'GNU GPL v2', 'GNU General Public License v2 (GPLv2)'),
    ),
    License(
        'GPLv3',
        'GPL-3.0-only',
        ('GPL-3.0', 'GPL 3', 'GPL v3', 'GNU GPL v3', 'GNU General Public License v3 (GPLv3)'),
    ),
    License(
        'LGPL',
        'LGPL-3.0-only',
        ('LGPL-3.0', 'LGPLv3', 'LGPL 3', 'GNU Lesser General Public License v3 (LGPLv3)'),
    ),
    License(
        'LGPL2.1',
        'LGPL-2.1-only',
        ('LGPL-2.1', 'LGPLv2.1', 'LGPL 2.1', 'GNU Lesser General Public License v2.1'),
    ),
    License(
        'GNU Affero GPL',
        'AGPL-3.0-only',
        ('AGPL-3.0', 'AGPLv3', 'GNU Affero General Public License v3'),
    ),
    License('Eclipse Public License 1.0', 'EPL-1.0', ('EPL 1.0', 'Eclipse Public License')),
    License('Eclipse Public License 2.0', 'EPL-2.0', ('EPL 2.0',)),
    License('The Unlicense', 'Unlicense', ('Unlicense', 'The Unlicense (Unlicense)')),
    License('CC0 1.0 Universal', 'CC0-1.0', ('CC0', 'CC0 1.0', 'CC0 1.0 Universal (CC0 1.0) Public Domain Dedication')),
    License('zlib/libpng license', 'Zlib', ('zlib', 'zlib License', 'zlib/libpng')),
    License('Boost Software License 1.0', 'BSL-1.0', ('Boost', 'Boost Software License')),
    License('Historical Permission Notice and Disclaimer', 'HPND', ('HPND',)),
)

_NORMALIZE_RE = re.compile(r'[^a-z0-9]')


def _normalize(s: str) -> str:
    """Lowercase, strip accents and drop every non-alphanumeric character."""
    s = unicodedata.normalize('NFKD', s.lower().strip())
    s = ''.join(c for c in s if not unicodedata.combining(c))
    return _NORMALIZE_RE.sub('', s)


def _build_tables() -> tuple[dict[str, License], dict[str, License], dict[str, License]]:
    exact: dict[str, License] = {}
    alias: dict[str, License] = {}
    normalized: dict[str, License] = {}
    for lic in CATALOGUE:
        exact.setdefault(lic.name.lower(), lic)
        exact.setdefault(lic.spdx_id.lower(), lic)
        for a in lic.aliases:
            alias.setdefault(a.lower(), lic)
    # Names and SPDX ids win over aliases when normalized forms collide.
    for lic in CATALOGUE:
        normalized.setdefault(_normalize(lic.name), lic)
        normalized.setdefault(_normalize(lic.spdx_id), lic)
    for lic in CATALOGUE:
        for a in lic.aliases:
            normalized.setdefault(_normalize(a), lic)
    return exact, alias, normalized


_EXACT, _ALIASES, _NORMALIZED = _build_tables()


@functools.lru_cache(maxsize=512)
def find_by_name(raw: str | None) -> License:
    """Return the canonical license for a free-text name.

    Args:
        raw: A license name, SPDX id or alias. ``None`` and blank strings
            map to :data:`UNKNOWN`.

    Returns:
        A catalogue :class:`License`, or an unrecognized entity named
        after the stripped input.
    """
    if raw is None or not raw.strip():
        return UNKNOWN
    stripped = raw.strip()
    lower = stripped.lower()
    if lower == UNKNOWN.name:
        return UNKNOWN
    if lower in _EXACT:
        return _EXACT[lower]
    if lower in _ALIASES:
        return _ALIASES[lower]
    norm = _normalize(stripped)
    if norm and norm in _NORMALIZED:
        return _NORMALIZED[norm]
    return License(name=stripped, unrecognized=True)


# License file content → catalogue name. First match wins, so more
# specific texts come before the generic ones they contain.
_LICENSE_TEXT_PATTERNS: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (re.compile(r'Apache License[\s\S]*?Version 2\.0', re.IGNORECASE), 'Apache 2.0'),
    (re.compile(r'GNU AFFERO GENERAL PUBLIC LICENSE', re.IGNORECASE), 'GNU Affero GPL'),
    (re.compile(r'GNU LESSER GENERAL PUBLIC LICENSE[\s\S]*?Version 2\.1', re.IGNORECASE), 'LGPL2.1'),
    (re.compile(r'GNU LESSER GENERAL PUBLIC LICENSE[\s\S]*?Version 3', re.IGNORECASE), 'LGPL'),
    (re.compile(r'GNU GENERAL PUBLIC LICENSE[\s\S]*?Version 3', re.IGNORECASE), 'GPLv3'),
    (re.compile(r'GNU GENERAL PUBLIC LICENSE[\s\S]*?Version 2', re.IGNORECASE), 'GPLv2'),
    (re.compile(r'Mozilla Public License[\s\S]*?2\.0', re.IGNORECASE), 'Mozilla Public License 2.0'),
    (re.compile(r'Eclipse Public License[\s\S]*?2\.0', re.IGNORECASE), 'Eclipse Public License 2.0'),
    (re.compile(r'Eclipse Public License[\s\S]*?1\.0', re.IGNORECASE), 'Eclipse Public License 1.0'),
    (re.compile(r'PYTHON SOFTWARE FOUNDATION LICENSE', re.IGNORECASE), 'Python Software Foundation License'),
    (re.compile(r'This is free and unencumbered software released into the public domain', re.IGNORECASE), 'The Unlicense'),
    (re.compile(r'Boost Software License', re.IGNORECASE), 'Boost Software License 1.0'),
    (re.compile(r'CC0 1\.0 Universal', re.IGNORECASE), 'CC0 1.0 Universal'),
    (re.compile(r'Permission is hereby granted, free of charge', re.IGNORECASE), 'MIT'),
    (re.compile(r'Permission to use, copy, modify, and(/or)? distribute this software for any', re.IGNORECASE), 'ISC'),
    (re.compile(r'Neither the name of', re.IGNORECASE), 'New BSD'),
    (re.compile(r'Redistribution and use in source and binary forms', re.IGNORECASE), 'Simplified BSD'),
    (re.compile(r'provided[\s\S]*?as-is[\s\S]*?altered source versions must be plainly marked', re.IGNORECASE), 'zlib/libpng license'),
)


def find_by_text(text: str) -> License | None:
    """Detect a license from the content of a license file.

    Only the first 4000 characters are inspected.

    Returns:
        The catalogue :class:`License`, or ``None`` if the text is not
        recognized.
    """
    head = text[:4000]
    for pattern, name in _LICENSE_TEXT_PATTERNS:
        if pattern.search(head):
            return find_by_name(name)
    return None
