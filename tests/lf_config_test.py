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


"""Tests for scan configuration loading."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest
from licensefinder.config import DEFAULT_CONCURRENCY, ScanConfig, load_config
from licensefinder.errors import ConfigError


def _write_pyproject(path: Path, body: str) -> Path:
    (path / 'pyproject.toml').write_text(body, encoding='utf-8')
    return path


class TestScanConfig:
    """Tests for the ScanConfig dataclass."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Defaults are strict and resolve every group."""
        config = ScanConfig(project_path=tmp_path)
        assert config.best_effort is False
        assert config.ignored_groups == frozenset()
        assert config.concurrency == DEFAULT_CONCURRENCY
        assert config.max_redirects == 10
        assert config.lockfile_path == tmp_path / 'poetry.lock'
        assert config.manifest_path == tmp_path / 'pyproject.toml'

    def test_frozen(self) -> None:
        """Settings cannot change after construction."""
        config = ScanConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.best_effort = True  # type: ignore[misc]

    def test_token_not_in_repr(self) -> None:
        """The API token never shows up in a repr."""
        assert 'ghp_secret' not in repr(ScanConfig(github_token='ghp_secret'))


class TestLoadConfig:
    """Tests for load_config()."""

    def test_no_pyproject(self, tmp_path: Path) -> None:
        """A directory without pyproject.toml gives the defaults."""
        config = load_config(tmp_path, environ={})
        assert config == ScanConfig(project_path=tmp_path)

    def test_pyproject_table(self, tmp_path: Path) -> None:
        """[tool.licensefinder] values are read and coerced."""
        _write_pyproject(
            tmp_path,
            '[tool.licensefinder]\nbest_effort = true\nignored-groups = ["dev", "docs"]\nconcurrency = 4\ntimeout = 2\n',
        )
        config = load_config(tmp_path, environ={})
        assert config.best_effort is True
        assert config.ignored_groups == frozenset({'dev', 'docs'})
        assert config.concurrency == 4
        assert config.timeout == 2.0

    def test_unknown_pyproject_key_is_ignored(self, tmp_path: Path) -> None:
        """Unknown keys in the table do not fail the load."""
        _write_pyproject(tmp_path, '[tool.licensefinder]\ncolour = "blue"\n')
        assert load_config(tmp_path, environ={}) == ScanConfig(project_path=tmp_path)

    def test_environment_beats_pyproject(self, tmp_path: Path) -> None:
        """LICENSEFINDER_* variables override the file."""
        _write_pyproject(tmp_path, '[tool.licensefinder]\nbest_effort = false\nconcurrency = 4\n')
        environ = {
            'LICENSEFINDER_BEST_EFFORT': 'yes',
            'LICENSEFINDER_CONCURRENCY': '2',
            'LICENSEFINDER_IGNORED_GROUPS': 'dev, test,',
        }
        config = load_config(tmp_path, environ=environ)
        assert config.best_effort is True
        assert config.concurrency == 2
        assert config.ignored_groups == frozenset({'dev', 'test'})

    def test_overrides_beat_everything(self, tmp_path: Path) -> None:
        """Keyword overrides have the final say."""
        _write_pyproject(tmp_path, '[tool.licensefinder]\nbest_effort = true\n')
        config = load_config(tmp_path, environ={'LICENSEFINDER_BEST_EFFORT': '1'}, best_effort=False)
        assert config.best_effort is False

    @pytest.mark.parametrize('name', ['LICENSEFINDER_GITHUB_TOKEN', 'GITHUB_TOKEN', 'GH_TOKEN'])
    def test_token_from_environment(self, tmp_path: Path, name: str) -> None:
        """Any of the usual token variables is picked up."""
        assert load_config(tmp_path, environ={name: 'ghp_token'}).github_token == 'ghp_token'

    def test_unknown_override_raises(self, tmp_path: Path) -> None:
        """A misspelled keyword is an error."""
        with pytest.raises(ConfigError, match='besteffort'):
            load_config(tmp_path, environ={}, besteffort=True)

    @pytest.mark.parametrize(
        ('body', 'key'),
        [
            ('concurrency = 0', 'concurrency'),
            ('concurrency = "many"', 'concurrency'),
            ('max_redirects = -1', 'max_redirects'),
            ('timeout = 0', 'timeout'),
            ('best_effort = 3', 'best_effort'),
            ('pypi_url = 5', 'pypi_url'),
            ('ignored_groups = 5', 'ignored_groups'),
        ],
    )
    def test_invalid_values(self, tmp_path: Path, body: str, key: str) -> None:
        """Bad values raise ConfigError naming the setting."""
        _write_pyproject(tmp_path, f'[tool.licensefinder]\n{body}\n')
        with pytest.raises(ConfigError) as excinfo:
            load_config(tmp_path, environ={})
        assert excinfo.value.key == key

    def test_broken_pyproject_is_skipped(self, tmp_path: Path) -> None:
        """An unreadable manifest leaves the defaults in place."""
        _write_pyproject(tmp_path, '[tool.licensefinder\n')
        assert load_config(tmp_path, environ={}) == ScanConfig(project_path=tmp_path)
