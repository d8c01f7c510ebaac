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


"""Collaborators backed by the ``poetry`` command line.

- :meth:`PoetryCli.list_installed` runs ``poetry show`` and parses its
  ``name version summary...`` rows.
- :meth:`PoetryCli.env_info` runs ``poetry env info`` and extracts the
  virtualenv's Python ``major.minor`` and root path.

The command runner is injectable so tests never spawn processes.
"""

from __future__ import annotations

import re
import subprocess  # noqa: S404 - poetry is invoked intentionally
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Final

from licensefinder._types import EnvironmentInfo, InstalledPackage
from licensefinder.errors import EnvironmentUnavailable, PackageListingFailed
from licensefinder.logging import get_logger

log = get_logger('licensefinder.poetry')

__all__ = [
    'CommandRunner',
    'PoetryCli',
    'parse_env_info',
    'parse_show_output',
    'run_command',
]

SHOW_COMMAND: Final[tuple[str, ...]] = ('poetry', 'show', '--no-ansi')
ENV_INFO_COMMAND: Final[tuple[str, ...]] = ('poetry', 'env', 'info', '--no-ansi')

#: Marker ``poetry show`` puts between name and version for packages
#: that are locked but not installed.
_NOT_INSTALLED_MARKER: Final[str] = '(!)'

_PYTHON_RE: Final[re.Pattern[str]] = re.compile(r'Python:\s+(.+)')
_PATH_RE: Final[re.Pattern[str]] = re.compile(r'Path:\s+(.+)')

#: ``(argv, cwd) → CompletedProcess`` with text output.
CommandRunner = Callable[[Sequence[str], Path], 'subprocess.CompletedProcess[str]']


def run_command(argv: Sequence[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    """Run *argv* in *cwd*, capturing text output."""
    return subprocess.run(  # noqa: S603 - argv is a fixed poetry command
        list(argv),
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=120,
        check=False,
    )


def parse_show_output(text: str) -> list[InstalledPackage]:
    """Parse ``poetry show`` output into :class:`InstalledPackage` rows.

    Blank or one-word lines are ignored; duplicates are kept as they come.
    """
    packages: list[InstalledPackage] = []
    for row in text.splitlines():
        fields = [f for f in row.split() if f != _NOT_INSTALLED_MARKER]
        if len(fields) < 2:
            continue
        packages.append(InstalledPackage(name=fields[0], version=fields[1], summary=' '.join(fields[2:])))
    return packages


def parse_env_info(text: str) -> EnvironmentInfo:
    """Parse the ``Virtualenv`` section of ``poetry env info`` output.

    Raises:
        EnvironmentUnavailable: If no virtualenv Python version or path
            is reported.
    """
    virtualenv = text.split('\nBase\n')[0]
    python = _PYTHON_RE.search(virtualenv)
    path = _PATH_RE.search(virtualenv)
    if python is None or path is None:
        raise EnvironmentUnavailable(' '.join(ENV_INFO_COMMAND), 'no virtualenv section')
    root = path.group(1).strip()
    if root in ('NA', 'N/A', ''):
        raise EnvironmentUnavailable(' '.join(ENV_INFO_COMMAND), 'no virtualenv is active')
    python_version = '.'.join(python.group(1).strip().split('.')[:2])
    return EnvironmentInfo(python_version=python_version, root=Path(root))


class PoetryCli:
    """Runs ``poetry`` in a project directory.

    Args:
        project_path: Directory holding ``pyproject.toml``.
        runner: Command runner, :func:`run_command` by default.
    """

    def __init__(self, project_path: Path, runner: CommandRunner = run_command) -> None:
        self._project_path = project_path
        self._runner = runner

    def _run(self, argv: Sequence[str]) -> subprocess.CompletedProcess[str]:
        log.debug('poetry_run', command=' '.join(argv), cwd=str(self._project_path))
        return self._runner(argv, self._project_path)

    def list_installed(self) -> list[InstalledPackage]:
        """Return the packages ``poetry show`` reports.

        Raises:
            PackageListingFailed: If ``poetry`` is missing, times out or
                exits non-zero.
        """
        command = ' '.join(SHOW_COMMAND)
        try:
            proc = self._run(SHOW_COMMAND)
        except (OSError, subprocess.SubprocessError) as exc:
            raise PackageListingFailed(command, str(exc)) from exc
        if proc.returncode != 0:
            raise PackageListingFailed(command, proc.stderr or '')
        packages = parse_show_output(proc.stdout)
        log.debug('poetry_show', packages=len(packages))
        return packages

    def env_info(self) -> EnvironmentInfo:
        """Describe the project's virtualenv.

        Raises:
            EnvironmentUnavailable: If the command fails or reports no
                virtualenv.
        """
        command = ' '.join(ENV_INFO_COMMAND)
        try:
            proc = self._run(ENV_INFO_COMMAND)
        except (OSError, subprocess.SubprocessError) as exc:
            raise EnvironmentUnavailable(command, str(exc)) from exc
        if proc.returncode != 0:
            raise EnvironmentUnavailable(command, (proc.stderr or '').strip() or f'exit status {proc.returncode}')
        return parse_env_info(proc.stdout)
