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


"""Tests for the poetry command-line collaborators."""

from __future__ import annotations

import subprocess  # noqa: S404
from collections.abc import Sequence
from pathlib import Path

import pytest
from licensefinder._types import InstalledPackage
from licensefinder.errors import EnvironmentUnavailable, PackageListingFailed
from licensefinder.poetry import (
    ENV_INFO_COMMAND,
    SHOW_COMMAND,
    PoetryCli,
    parse_env_info,
    parse_show_output,
)

_SHOW_OUTPUT = """\
colorama              0.4.6         colorama desc
iniconfig             2.0.0         iniconfig desc
packaging             24.2          packaging desc
pluggy                1.5.0         pluggy des
pytest                8.3.4         pytest desc
six                   1.17.0        six desc
"""

_ENV_INFO_OUTPUT = """\

Virtualenv
Python:         3.12.7
Implementation: CPython
Path:           /Users/ed/Library/Caches/pypoetry/virtualenvs/epa-insights-o1nysRTv-py3.12
Executable:     /Users/ed/Library/Caches/pypoetry/virtualenvs/epa-insights-o1nysRTv-py3.12/bin/python
Valid:          True

Base
Platform:   darwin
OS:         posix
Python:     3.12.7
Path:       /Users/ed/.asdf/installs/python/3.12.7
Executable: /Users/ed/.asdf/installs/python/3.12.7/bin/python3.12

"""


class _FakeRunner:
    """Records calls and answers with canned process results."""

    def __init__(self, stdout: str = '', returncode: int = 0, stderr: str = '', error: Exception | None = None) -> None:
        self.calls: list[tuple[tuple[str, ...], Path]] = []
        self._stdout = stdout
        self._returncode = returncode
        self._stderr = stderr
        self._error = error

    def __call__(self, argv: Sequence[str], cwd: Path) -> subprocess.CompletedProcess[str]:
        self.calls.append((tuple(argv), cwd))
        if self._error is not None:
            raise self._error
        return subprocess.CompletedProcess(list(argv), self._returncode, self._stdout, self._stderr)


# ── Parsing ──────────────────────────────────────────────────────────


class TestParseShowOutput:
    """Tests for parse_show_output()."""

    def test_rows(self) -> None:
        """Each row yields name, version and the remaining words as summary."""
        packages = parse_show_output(_SHOW_OUTPUT)
        assert len(packages) == 6
        assert packages[0] == InstalledPackage('colorama', '0.4.6', 'colorama desc')
        assert packages[3] == InstalledPackage('pluggy', '1.5.0', 'pluggy des')

    def test_not_installed_marker_dropped(self) -> None:
        """The (!) marker is removed and the row kept."""
        packages = parse_show_output('requests (!) 2.32.3 Python HTTP for Humans.\n')
        assert packages == [InstalledPackage('requests', '2.32.3', 'Python HTTP for Humans.')]

    def test_short_and_blank_rows_ignored(self) -> None:
        """Rows with fewer than two fields are skipped."""
        assert parse_show_output('\n   \nlonely\nsix 1.17.0\n') == [InstalledPackage('six', '1.17.0', '')]


class TestParseEnvInfo:
    """Tests for parse_env_info()."""

    def test_virtualenv_section(self) -> None:
        """Python is cut to major.minor and the virtualenv path is used."""
        env = parse_env_info(_ENV_INFO_OUTPUT)
        assert env.python_version == '3.12'
        assert env.root == Path('/Users/ed/Library/Caches/pypoetry/virtualenvs/epa-insights-o1nysRTv-py3.12')
        assert env.site_packages() == env.root / 'lib' / 'python3.12' / 'site-packages'

    def test_base_section_is_ignored(self) -> None:
        """Without a virtualenv section the base interpreter is not used."""
        text = 'Virtualenv\nValid: False\n\nBase\nPython: 3.12.7\nPath: /usr\n'
        with pytest.raises(EnvironmentUnavailable):
            parse_env_info(text)

    def test_path_not_available(self) -> None:
        """Poetry reports NA when no virtualenv exists."""
        text = 'Virtualenv\nPython:         3.11.4\nPath:           NA\n'
        with pytest.raises(EnvironmentUnavailable, match='no virtualenv'):
            parse_env_info(text)


# ── PoetryCli ────────────────────────────────────────────────────────


class TestPoetryCli:
    """Tests for PoetryCli."""

    def test_list_installed(self, tmp_path: Path) -> None:
        """poetry show runs in the project directory."""
        runner = _FakeRunner(stdout=_SHOW_OUTPUT)
        packages = PoetryCli(tmp_path, runner).list_installed()
        assert [p.name for p in packages] == ['colorama', 'iniconfig', 'packaging', 'pluggy', 'pytest', 'six']
        assert runner.calls == [(SHOW_COMMAND, tmp_path)]

    def test_list_installed_nonzero_exit(self, tmp_path: Path) -> None:
        """A failing poetry show raises PackageListingFailed with stderr."""
        runner = _FakeRunner(returncode=1, stderr='Poetry could not find a pyproject.toml file\n')
        with pytest.raises(PackageListingFailed, match='could not find') as excinfo:
            PoetryCli(tmp_path, runner).list_installed()
        assert excinfo.value.command == 'poetry show --no-ansi'

    def test_list_installed_missing_binary(self, tmp_path: Path) -> None:
        """A missing poetry executable raises PackageListingFailed."""
        runner = _FakeRunner(error=FileNotFoundError(2, 'No such file or directory', 'poetry'))
        with pytest.raises(PackageListingFailed):
            PoetryCli(tmp_path, runner).list_installed()

    def test_list_installed_timeout(self, tmp_path: Path) -> None:
        """A hung poetry process raises PackageListingFailed."""
        runner = _FakeRunner(error=subprocess.TimeoutExpired(['poetry', 'show'], 120))
        with pytest.raises(PackageListingFailed):
            PoetryCli(tmp_path, runner).list_installed()

    def test_env_info(self, tmp_path: Path) -> None:
        """poetry env info is parsed into an EnvironmentInfo."""
        runner = _FakeRunner(stdout=_ENV_INFO_OUTPUT)
        env = PoetryCli(tmp_path, runner).env_info()
        assert env.python_version == '3.12'
        assert runner.calls == [(ENV_INFO_COMMAND, tmp_path)]

    def test_env_info_failure(self, tmp_path: Path) -> None:
        """A failing command raises EnvironmentUnavailable."""
        with pytest.raises(EnvironmentUnavailable, match='exit status 1'):
            PoetryCli(tmp_path, _FakeRunner(returncode=1)).env_info()
