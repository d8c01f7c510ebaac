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


"""Tests for installed-metadata license discovery."""

from __future__ import annotations

from pathlib import Path

import pytest
from licensefinder._types import EnvironmentInfo
from licensefinder.installed import dist_info_path, find_license_files, license_names_at

_MIT_TEXT = """\
MIT License

Copyright (c) 2010-2024 Benjamin Peterson

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction.
"""

_APACHE_TEXT = """\
                                 Apache License
                           Version 2.0, January 2004
                        http://www.apache.org/licenses/
"""


def _dist_info(tmp_path: Path, name: str = 'six', version: str = '1.17.0') -> Path:
    env = EnvironmentInfo(python_version='3.12', root=tmp_path / 'venv')
    path = dist_info_path(env, name, version)
    path.mkdir(parents=True)
    return path


class TestDistInfoPath:
    """Tests for dist_info_path()."""

    def test_layout(self, tmp_path: Path) -> None:
        """Dashes in the name become underscores."""
        env = EnvironmentInfo(python_version='3.12', root=tmp_path)
        assert dist_info_path(env, 'typing-extensions', '4.12.2') == (
            tmp_path / 'lib' / 'python3.12' / 'site-packages' / 'typing_extensions-4.12.2.dist-info'
        )


class TestFindLicenseFiles:
    """Tests for find_license_files()."""

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A package that is not installed has no license files."""
        assert find_license_files(tmp_path / 'absent.dist-info') == []

    def test_top_level_and_licenses_dir(self, tmp_path: Path) -> None:
        """Top-level LICENSE/COPYING files and everything in licenses/ count."""
        path = _dist_info(tmp_path)
        (path / 'LICENSE').write_text(_MIT_TEXT, encoding='utf-8')
        (path / 'COPYING.txt').write_text(_MIT_TEXT, encoding='utf-8')
        (path / 'METADATA').write_text('Name: six\n', encoding='utf-8')
        (path / 'licenses' / 'vendor').mkdir(parents=True)
        (path / 'licenses' / 'vendor' / 'NOTICE').write_text(_APACHE_TEXT, encoding='utf-8')
        names = [p.relative_to(path).as_posix() for p in find_license_files(path)]
        assert names == ['COPYING.txt', 'LICENSE', 'licenses/vendor/NOTICE']

    def test_unreadable_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A dist-info directory that cannot be listed yields no files."""
        path = _dist_info(tmp_path)
        (path / 'LICENSE').write_text(_MIT_TEXT, encoding='utf-8')

        def denied(self: Path) -> None:
            raise PermissionError(13, 'Permission denied', str(self))

        monkeypatch.setattr(Path, 'iterdir', denied)
        assert find_license_files(path) == []
        assert license_names_at(path) == []

    def test_unreadable_licenses_subdirectory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failure walking licenses/ is treated the same way."""
        path = _dist_info(tmp_path)
        (path / 'licenses').mkdir()

        def denied(self: Path, pattern: str) -> None:
            raise PermissionError(13, 'Permission denied', str(self))

        monkeypatch.setattr(Path, 'rglob', denied)
        assert find_license_files(path) == []


class TestLicenseNamesAt:
    """Tests for license_names_at()."""

    def test_recognized_names_deduplicated(self, tmp_path: Path) -> None:
        """Each recognized license is reported once."""
        path = _dist_info(tmp_path)
        (path / 'LICENSE').write_text(_MIT_TEXT, encoding='utf-8')
        (path / 'LICENSE.md').write_text(_MIT_TEXT, encoding='utf-8')
        (path / 'licenses').mkdir()
        (path / 'licenses' / 'APACHE').write_text(_APACHE_TEXT, encoding='utf-8')
        assert license_names_at(path) == ['MIT', 'Apache 2.0']

    def test_unrecognized_text_ignored(self, tmp_path: Path) -> None:
        """Files whose text matches no license contribute nothing."""
        path = _dist_info(tmp_path)
        (path / 'LICENSE').write_text('All rights reserved.\n', encoding='utf-8')
        assert license_names_at(path) == []

    def test_not_installed(self, tmp_path: Path) -> None:
        """No directory means no names."""
        assert license_names_at(tmp_path / 'nothing-1.0.dist-info') == []
