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


"""Reconcile a Poetry lockfile with the manifest's dependency groups.

The lockfile is a flat list of pinned packages; the manifest says which
packages each group (``default``, ``dev``, ``test``, ...) asks for. This
module joins the two into one :class:`~licensefinder.package.Package`
per ``(name, version)``, each carrying every group that reaches it.

Group propagation is exactly one level deep::

    manifest                 lockfile                    index
    ─────────────────        ─────────────────────       ───────────────────
    dev  → [pytest]          pytest → [pluggy, ...]      pytest → {dev}
                             pluggy → [...]              pluggy → {dev}
                                                         (pluggy's own deps
                                                          get nothing from dev)

Usage::

    from licensefinder.lockfile import (
        load_lock_table,
        load_manifest_groups,
        reconcile,
    )

    table = load_lock_table(Path('poetry.lock'))
    groups = load_manifest_groups(Path('pyproject.toml'))
    packages = reconcile(table, groups)
"""

from __future__ import annotations

import re
import sys
from collections.abc import Collection, Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, Final

from licensefinder._types import Found, LockLookup, LockRecord, NotFound
from licensefinder.errors import MalformedLockfile
from licensefinder.logging import get_logger
from licensefinder.package import Package, canonical_version

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

log = get_logger('licensefinder.lockfile')

__all__ = [
    'DEFAULT_GROUP',
    'LockTable',
    'build_group_index',
    'load_lock_table',
    'load_manifest_groups',
    'lookup',
    'normalize_name',
    'reconcile',
]

#: Name of the implicit group holding the manifest's top-level dependencies.
DEFAULT_GROUP: Final[str] = 'default'

#: Normalized package name → lockfile record.
LockTable = Mapping[str, LockRecord]

_NAME_SEPARATORS_RE: Final[re.Pattern[str]] = re.compile(r'[-_.]+')
_REQUIREMENT_NAME_RE: Final[re.Pattern[str]] = re.compile(r'^\s*([A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)')


def normalize_name(name: str) -> str:
    """Normalize a distribution name (PEP 503)."""
    return _NAME_SEPARATORS_RE.sub('-', name).lower().strip()


def lookup(table: LockTable, name: str) -> LockLookup:
    """Look *name* up in *table*, tolerating any name spelling."""
    record = table.get(normalize_name(name))
    if record is None:
        return NotFound(name)
    return Found(record)


# ── Loading ──────────────────────────────────────────────────────────


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open('rb') as f:
            return tomllib.load(f)
    except OSError as exc:
        raise MalformedLockfile(f'Cannot read {path}: {exc}', path=str(path)) from exc
    except tomllib.TOMLDecodeError as exc:
        raise MalformedLockfile(f'Invalid TOML in {path}: {exc}', path=str(path)) from exc


def _dependency_names(raw: object) -> tuple[str, ...]:
    """Sub-dependency names from a ``[package.dependencies]`` value.

    Poetry writes a table keyed by name; uv-style lockfiles write a list
    of ``{ name = "..." }`` tables. Both are accepted.
    """
    if isinstance(raw, dict):
        return tuple(str(k) for k in raw)
    if isinstance(raw, list):
        return tuple(str(d['name']) for d in raw if isinstance(d, dict) and d.get('name'))
    return ()


def load_lock_table(lock_path: Path) -> dict[str, LockRecord]:
    """Parse the ``[[package]]`` sections of a lockfile.

    Args:
        lock_path: Path to ``poetry.lock``.

    Returns:
        Mapping of normalized package name to :class:`LockRecord`. When a
        name appears more than once (platform-specific pins) the first
        entry wins.

    Raises:
        MalformedLockfile: If the file is unreadable or not valid TOML.
    """
    data = _load_toml(lock_path)
    raw_packages = data.get('package', [])
    if not isinstance(raw_packages, list):
        raise MalformedLockfile(f'{lock_path}: [[package]] must be an array of tables', path=str(lock_path))

    table: dict[str, LockRecord] = {}
    for raw in raw_packages:
        if not isinstance(raw, dict) or not raw.get('name'):
            log.debug('lock_entry_without_name', path=str(lock_path))
            continue
        name = str(raw['name'])
        key = normalize_name(name)
        if key in table:
            log.debug('lock_entry_duplicate', package=name, kept=table[key].version)
            continue
        table[key] = LockRecord(
            name=name,
            version=str(raw.get('version', '') or ''),
            dependencies=_dependency_names(raw.get('dependencies')),
        )

    log.debug('parsed_lockfile', path=str(lock_path), packages=len(table))
    return table


def _requirement_name(requirement: str) -> str:
    """Distribution name at the start of a PEP 508 requirement string."""
    match = _REQUIREMENT_NAME_RE.match(requirement)
    return match.group(1) if match else ''


def _add_names(groups: dict[str, list[str]], group: str, names: Iterable[str]) -> None:
    bucket = groups.setdefault(group, [])
    for name in names:
        if name and name not in bucket:
            bucket.append(name)


def load_manifest_groups(manifest_path: Path) -> dict[str, list[str]]:
    """Read the dependency groups declared in ``pyproject.toml``.

    Recognized declarations, in the order they are merged:

    - ``[tool.poetry.dependencies]`` (without ``python``) and
      ``[project].dependencies`` → the synthesized ``default`` group.
    - ``[tool.poetry.group.<name>.dependencies]`` → group ``<name>``.
    - ``[tool.poetry.dev-dependencies]`` (Poetry < 1.2) → ``dev``.
    - ``[dependency-groups]`` (PEP 735) → one group per key.

    Returns:
        Group name → declared package names, in declaration order.

    Raises:
        MalformedLockfile: If the file is unreadable or not valid TOML.
    """
    data = _load_toml(manifest_path)
    poetry: dict[str, Any] = data.get('tool', {}).get('poetry', {})
    project: dict[str, Any] = data.get('project', {})
    groups: dict[str, list[str]] = {}

    default_names = [n for n in poetry.get('dependencies', {}) if n.lower() != 'python']
    default_names += [_requirement_name(r) for r in project.get('dependencies', []) if isinstance(r, str)]
    _add_names(groups, DEFAULT_GROUP, default_names)

    for group, body in poetry.get('group', {}).items():
        if isinstance(body, dict):
            _add_names(groups, group, list(body.get('dependencies', {})))

    if poetry.get('dev-dependencies'):
        _add_names(groups, 'dev', list(poetry['dev-dependencies']))

    for group, entries in data.get('dependency-groups', {}).items():
        if isinstance(entries, list):
            _add_names(groups, group, [_requirement_name(e) for e in entries if isinstance(e, str)])

    log.debug('parsed_manifest', path=str(manifest_path), groups=list(groups))
    return groups


# ── Reconciliation ───────────────────────────────────────────────────


def _walk(
    table: LockTable,
    manifest_groups: Mapping[str, Collection[str]],
    allowed_groups: Collection[str] | None,
) -> Iterator[tuple[str, LockRecord]]:
    """Yield ``(group, record)`` for every allowed declaration path.

    Direct declarations come first, each followed by its lockfile
    sub-dependencies. Names missing from the lockfile are skipped.

    Raises:
        MalformedLockfile: If a directly declared package has no version.
    """
    for group, names in manifest_groups.items():
        if allowed_groups is not None and group not in allowed_groups:
            continue
        for name in names:
            found = lookup(table, name)
            if isinstance(found, NotFound):
                log.debug('lock_entry_missing', package=name, group=group)
                continue
            record = found.record
            if not record.version:
                raise MalformedLockfile(
                    f'{record.name} is declared in group {group!r} but its lockfile entry has no version',
                    package=record.name,
                )
            yield group, record
            for sub_name in record.dependencies:
                sub = lookup(table, sub_name)
                if isinstance(sub, Found):
                    yield group, sub.record


def build_group_index(
    table: LockTable,
    manifest_groups: Mapping[str, Collection[str]],
    allowed_groups: Collection[str] | None = None,
) -> dict[str, set[str]]:
    """Map each normalized package name to the groups that reach it.

    Args:
        table: Lockfile records keyed by normalized name.
        manifest_groups: Group name → directly declared package names.
        allowed_groups: Groups to consider. ``None`` means all of them.

    Returns:
        Normalized name → set of group names.
    """
    index: dict[str, set[str]] = {}
    for group, record in _walk(table, manifest_groups, allowed_groups):
        index.setdefault(normalize_name(record.name), set()).add(group)
    return index


def reconcile(
    table: LockTable,
    manifest_groups: Mapping[str, Collection[str]],
    allowed_groups: Collection[str] | None = None,
) -> list[Package]:
    """Build one :class:`Package` per ``(name, version)`` reachable from a group.

    Args:
        table: Lockfile records keyed by normalized name.
        manifest_groups: Group name → directly declared package names.
            The ``default`` group must already be present if wanted.
        allowed_groups: Groups whose declarations are considered at all.
            ``None`` means every declared group.

    Returns:
        Packages in order of first encounter, each with the union of its
        groups.

    Raises:
        MalformedLockfile: If a directly declared package's lockfile
            entry has no version.
    """
    packages: dict[tuple[str, str], Package] = {}
    for group, record in _walk(table, manifest_groups, allowed_groups):
        key = (record.name, canonical_version(record.version))
        pkg = packages.get(key)
        if pkg is None:
            pkg = Package(name=record.name, version=record.version)
            packages[key] = pkg
        pkg.groups.add(group)

    log.debug('reconciled', packages=len(packages))
    return list(packages.values())
