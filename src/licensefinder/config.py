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


"""Scan configuration.

A :class:`ScanConfig` is built once at startup and passed explicitly to
every client that needs it. Nothing reads configuration from module
state, so the best-effort flag cannot change while a scan is running.

Sources, lowest precedence first:

1. Dataclass defaults.
2. ``[tool.licensefinder]`` in the project's ``pyproject.toml``.
3. ``LICENSEFINDER_*`` environment variables.
4. Keyword overrides passed to :func:`load_config`.

Example ``pyproject.toml``::

    [tool.licensefinder]
    best_effort = true
    ignored_groups = ["dev", "docs"]
    concurrency = 4
"""

from __future__ import annotations

import dataclasses
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from licensefinder.errors import ConfigError
from licensefinder.logging import get_logger

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

log = get_logger('licensefinder.config')

__all__ = [
    'DEFAULT_CONCURRENCY',
    'DEFAULT_MAX_REDIRECTS',
    'DEFAULT_MAX_RETRIES',
    'DEFAULT_TIMEOUT',
    'ScanConfig',
    'load_config',
]

DEFAULT_CONCURRENCY: Final[int] = 8
DEFAULT_TIMEOUT: Final[float] = 10.0
DEFAULT_MAX_REDIRECTS: Final[int] = 10
DEFAULT_MAX_RETRIES: Final[int] = 3

_TRUTHY: Final[frozenset[str]] = frozenset({'1', 'true', 'yes', 'on'})


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one license scan.

    Attributes:
        project_path: Directory holding ``pyproject.toml`` and ``poetry.lock``.
        best_effort: Swallow source-host connectivity failures instead of
            aborting the scan.
        ignored_groups: Packages whose groups all fall in this set are
            skipped.
        only_groups: When non-empty, only these groups' declarations are
            reconciled at all.
        concurrency: Maximum number of packages resolved at once.
        timeout: Per-request timeout in seconds.
        max_redirects: Redirect bound for the source-host client.
        max_retries: Retry attempts for package-index requests.
        pypi_url: Package index base URL.
        github_api_url: Source-host API base URL.
        github_token: Optional API token sent as a bearer token.
        list_installed: Run the installed-package lister.
        use_installed_metadata: Look for license files in the local
            virtualenv before going to the network.
    """

    project_path: Path = field(default_factory=Path.cwd)
    best_effort: bool = False
    ignored_groups: frozenset[str] = frozenset()
    only_groups: frozenset[str] = frozenset()
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    max_retries: int = DEFAULT_MAX_RETRIES
    pypi_url: str = 'https://pypi.org'
    github_api_url: str = 'https://api.github.com'
    github_token: str = field(default='', repr=False)
    list_installed: bool = True
    use_installed_metadata: bool = True

    @property
    def lockfile_path(self) -> Path:
        """Path of the project's ``poetry.lock``."""
        return self.project_path / 'poetry.lock'

    @property
    def manifest_path(self) -> Path:
        """Path of the project's ``pyproject.toml``."""
        return self.project_path / 'pyproject.toml'


_BOOL_KEYS = frozenset({'best_effort', 'list_installed', 'use_installed_metadata'})
_INT_KEYS = frozenset({'concurrency', 'max_redirects', 'max_retries'})
_STR_KEYS = frozenset({'pypi_url', 'github_api_url', 'github_token'})
_GROUP_KEYS = frozenset({'ignored_groups', 'only_groups'})


def _coerce(key: str, value: Any) -> Any:  # noqa: ANN401
    """Validate and convert one raw config value for *key*."""
    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        raise ConfigError(key, f'expected a boolean, got {value!r}')
    if key in _INT_KEYS:
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(key, f'expected an integer, got {value!r}') from None
        if isinstance(value, bool) or number < 0:
            raise ConfigError(key, f'expected a non-negative integer, got {value!r}')
        if key == 'concurrency' and number < 1:
            raise ConfigError(key, 'must be at least 1')
        return number
    if key == 'timeout':
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            raise ConfigError(key, f'expected a number of seconds, got {value!r}') from None
        if seconds <= 0:
            raise ConfigError(key, 'must be positive')
        return seconds
    if key in _STR_KEYS:
        if not isinstance(value, str):
            raise ConfigError(key, f'expected a string, got {value!r}')
        return value
    if key in _GROUP_KEYS:
        if isinstance(value, str):
            value = value.split(',')
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ConfigError(key, f'expected a list of group names, got {value!r}')
        return frozenset(str(g).strip() for g in value if str(g).strip())
    if key == 'project_path':
        return Path(value)
    raise ConfigError(key, 'unknown setting')


def _read_pyproject_table(manifest: Path) -> dict[str, Any]:
    """Return ``[tool.licensefinder]`` from *manifest*, or ``{}``."""
    if not manifest.is_file():
        return {}
    try:
        with manifest.open('rb') as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        log.warning('config_read_failed', path=str(manifest), error=str(exc))
        return {}
    table = data.get('tool', {}).get('licensefinder', {})
    return table if isinstance(table, dict) else {}


def _env_settings(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect settings from ``LICENSEFINDER_*`` environment variables."""
    settings: dict[str, Any] = {}
    for key in ('best_effort', 'ignored_groups', 'only_groups', 'concurrency', 'timeout'):
        env_name = f'LICENSEFINDER_{key.upper()}'
        if environ.get(env_name):
            settings[key] = environ[env_name]
    token = environ.get('LICENSEFINDER_GITHUB_TOKEN') or environ.get('GITHUB_TOKEN') or environ.get('GH_TOKEN')
    if token:
        settings['github_token'] = token
    return settings


def load_config(
    project_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,  # noqa: ANN401
) -> ScanConfig:
    """Build a :class:`ScanConfig` for the project at *project_path*.

    Args:
        project_path: Project directory. Defaults to the current directory.
        environ: Environment mapping to read ``LICENSEFINDER_*`` variables
            from. Defaults to :data:`os.environ`.
        **overrides: Explicit settings that win over every other source.

    Returns:
        The merged configuration.

    Raises:
        ConfigError: If a setting has the wrong type or an explicit
            override names an unknown setting.
    """
    root = Path(project_path) if project_path is not None else Path.cwd()
    known = {f.name for f in dataclasses.fields(ScanConfig)} - {'project_path'}

    merged: dict[str, Any] = {}
    for key, value in _read_pyproject_table(root / 'pyproject.toml').items():
        if key.replace('-', '_') not in known:
            log.warning('config_unknown_key', key=key)
            continue
        merged[key.replace('-', '_')] = value
    merged.update(_env_settings(os.environ if environ is None else environ))
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(key, 'unknown setting')
        merged[key] = value

    settings = {key: _coerce(key, value) for key, value in merged.items()}
    config = ScanConfig(project_path=root, **settings)
    log.debug(
        'config_loaded',
        project=str(root),
        best_effort=config.best_effort,
        ignored_groups=sorted(config.ignored_groups),
        concurrency=config.concurrency,
    )
    return config
