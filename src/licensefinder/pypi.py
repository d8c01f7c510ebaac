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


"""Package-index client for the PyPI JSON API.

``definition(name, version)`` returns the ``info`` object of
``GET {pypi_url}/pypi/{name}/{version}/json``: ``author``,
``description``, ``home_page``, ``project_urls``, ``license``,
``classifiers``, ``name`` and friends. Any failure, from a refused
connection to a 404 to a garbled body, surfaces as
:class:`~licensefinder.errors.PackageIndexUnavailable`.
"""

from __future__ import annotations

import json
import urllib.parse
from contextlib import AsyncExitStack
from typing import Any, Final

import httpx

from licensefinder.config import ScanConfig
from licensefinder.errors import PackageIndexUnavailable
from licensefinder.logging import get_logger
from licensefinder.net import DEFAULT_TIMEOUT, MAX_RETRIES, http_client, request_with_retry

log = get_logger('licensefinder.pypi')

__all__ = [
    'PYPI_URL',
    'PyPIClient',
]

PYPI_URL: Final[str] = 'https://pypi.org'


class PyPIClient:
    """Fetches release metadata from a PyPI-compatible index.

    Like :class:`~licensefinder.github.GitHubClient`, it either reuses
    the given HTTP client or owns one while used as an async context
    manager.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str = PYPI_URL,
        max_retries: int = MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        pool_size: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip('/')
        self._max_retries = max_retries
        self._timeout = timeout
        self._pool_size = pool_size
        self._transport = transport
        self._owned: AsyncExitStack | None = None

    @classmethod
    def from_config(
        cls,
        config: ScanConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> PyPIClient:
        """Build a client from the scan settings."""
        return cls(
            base_url=config.pypi_url,
            max_retries=config.max_retries,
            timeout=config.timeout,
            pool_size=config.concurrency,
            transport=transport,
        )

    async def __aenter__(self) -> PyPIClient:
        if self._client is None:
            self._owned = AsyncExitStack()
            self._client = await self._owned.enter_async_context(
                http_client(
                    timeout=self._timeout,
                    pool_size=self._pool_size,
                    headers={'Accept': 'application/json'},
                    transport=self._transport,
                ),
            )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owned is not None:
            await self._owned.aclose()
            self._owned = None
            self._client = None

    def definition_url(self, name: str, version: str) -> str:
        """JSON API URL for one release."""
        quoted_name = urllib.parse.quote(name, safe='')
        quoted_version = urllib.parse.quote(version, safe='')
        return f'{self._base_url}/pypi/{quoted_name}/{quoted_version}/json'

    async def definition(self, name: str, version: str) -> dict[str, Any]:
        """Return the ``info`` mapping for ``name==version``.

        Raises:
            PackageIndexUnavailable: If the index cannot be reached, has
                no such release, or answers with something unusable.
        """
        if self._client is None:
            raise RuntimeError('PyPIClient must be entered with "async with" before use')
        if not version:
            raise PackageIndexUnavailable(name, version, 'no version to look up')

        url = self.definition_url(name, version)
        try:
            response = await request_with_retry(self._client, 'GET', url, max_retries=self._max_retries)
        except httpx.HTTPError as exc:
            raise PackageIndexUnavailable(name, version, f'{type(exc).__name__}: {exc}') from exc

        if response.status_code != 200:
            raise PackageIndexUnavailable(name, version, f'HTTP {response.status_code}')
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PackageIndexUnavailable(name, version, 'response is not JSON') from exc

        info = data.get('info') if isinstance(data, dict) else None
        if not isinstance(info, dict):
            raise PackageIndexUnavailable(name, version, 'response has no "info" object')
        log.debug('pypi_definition', package=name, version=version)
        return info
