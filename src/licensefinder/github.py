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


"""Source-host license lookup against the GitHub REST API.

Asks ``GET /repos/{owner}/{repo}/license`` for the license GitHub
detected in a repository. Redirects (renamed or transferred repos) are
followed by hand so the bound is exact: with the default limit of 10, a
chain of 10 redirects still yields the final body and an 11th redirect
gives up with an empty result.

Connectivity failures (timeouts, refused or reset connections, TLS and
DNS errors, malformed responses, HTTP 429) raise
:class:`~licensefinder.errors.RemoteLookupFailed`, unless the client was
built with ``best_effort=True``, in which case they yield ``{}``.

Usage::

    async with GitHubClient.from_config(config) as github:
        data = await github.license('https://github.com/benjaminp/six')
        spdx_id = spdx_id_from(data)  # 'MIT'
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from contextlib import AsyncExitStack
from typing import Any, Final

import httpx

from licensefinder.config import ScanConfig
from licensefinder.errors import RemoteLookupFailed
from licensefinder.logging import get_logger
from licensefinder.net import DEFAULT_TIMEOUT, http_client

log = get_logger('licensefinder.github')

__all__ = [
    'GITHUB_API_URL',
    'GitHubClient',
    'NOASSERTION',
    'is_github_repo_url',
    'spdx_id_from',
]

GITHUB_API_URL: Final[str] = 'https://api.github.com'
GITHUB_HOST_PREFIX: Final[str] = 'https://github.com/'

#: SPDX id GitHub reports when it found a license file it cannot classify.
NOASSERTION: Final[str] = 'NOASSERTION'

_REDIRECT_STATUSES: Final[frozenset[int]] = frozenset({301, 302, 303, 307, 308})
_TOO_MANY_REQUESTS: Final[int] = 429


def is_github_repo_url(url: object) -> bool:
    """``True`` for ``https://github.com/<owner>/<repo>`` with no extra path."""
    return isinstance(url, str) and GITHUB_HOST_PREFIX in url and url.count('/') == 4


def spdx_id_from(data: Mapping[str, Any]) -> str:
    """Return the usable SPDX id in a license response, or ``''``.

    ``NOASSERTION`` is GitHub's "unclassified license" marker and is
    treated as no answer.
    """
    lic = data.get('license')
    spdx_id = lic.get('spdx_id') if isinstance(lic, dict) else None
    if not isinstance(spdx_id, str) or not spdx_id or spdx_id == NOASSERTION:
        return ''
    return spdx_id


class GitHubClient:
    """Client for the repository license endpoint.

    Either pass an open :class:`httpx.AsyncClient` (which must not follow
    redirects itself), or leave *client* unset and use the instance as an
    async context manager so it opens and closes its own pool.

    Args:
        client: An open HTTP client to reuse.
        api_url: Base URL of the API.
        best_effort: Return ``{}`` instead of raising on connectivity
            failures. Fixed for the client's lifetime.
        max_redirects: How many redirects to follow before giving up.
        timeout: Per-request timeout for an owned pool.
        pool_size: Connection limit for an owned pool.
        token: Optional API token.
        transport: Transport override for an owned pool.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_url: str = GITHUB_API_URL,
        best_effort: bool = False,
        max_redirects: int = 10,
        timeout: float = DEFAULT_TIMEOUT,
        pool_size: int = 10,
        token: str = '',
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = client
        self._api_url = api_url.rstrip('/')
        self._best_effort = best_effort
        self._max_redirects = max_redirects
        self._timeout = timeout
        self._pool_size = pool_size
        self._token = token
        self._transport = transport
        self._owned: AsyncExitStack | None = None

    @classmethod
    def from_config(
        cls,
        config: ScanConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GitHubClient:
        """Build a client from the scan settings."""
        return cls(
            api_url=config.github_api_url,
            best_effort=config.best_effort,
            max_redirects=config.max_redirects,
            timeout=config.timeout,
            pool_size=config.concurrency,
            token=config.github_token,
            transport=transport,
        )

    @property
    def best_effort(self) -> bool:
        """Whether connectivity failures are swallowed."""
        return self._best_effort

    async def __aenter__(self) -> GitHubClient:
        if self._client is None:
            headers = {'Accept': 'application/vnd.github+json', 'X-GitHub-Api-Version': '2022-11-28'}
            if self._token:
                headers['Authorization'] = f'Bearer {self._token}'
            self._owned = AsyncExitStack()
            self._client = await self._owned.enter_async_context(
                http_client(
                    timeout=self._timeout,
                    pool_size=self._pool_size,
                    headers=headers,
                    follow_redirects=False,
                    transport=self._transport,
                ),
            )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owned is not None:
            await self._owned.aclose()
            self._owned = None
            self._client = None

    def license_url(self, repo_url: str) -> str:
        """API URL for the license of the repository at *repo_url*."""
        owner, repo = repo_url.rstrip('/').split('/')[-2:]
        return f'{self._api_url}/repos/{owner}/{repo}/license'

    async def license(self, repo_url: str) -> dict[str, Any]:
        """Fetch GitHub's license data for the repository at *repo_url*.

        Args:
            repo_url: Repository URL; owner and repo are its last two
                path segments.

        Returns:
            The decoded JSON body on a 2xx response, ``{}`` on any other
            status, an undecodable body, or a redirect chain longer than
            the limit.

        Raises:
            RemoteLookupFailed: On a connectivity or protocol failure,
                unless the client is in best-effort mode.
        """
        url = self.license_url(repo_url)
        try:
            response = await self._request(url)
        except RemoteLookupFailed as exc:
            if not self._best_effort:
                raise
            log.warning('github_lookup_failed', url=exc.url, reason=exc.reason, best_effort=True)
            return {}

        if not response.is_success:
            log.debug('github_no_license', url=url, status=response.status_code)
            return {}
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            log.debug('github_bad_json', url=url)
            return {}
        return data if isinstance(data, dict) else {}

    async def _request(self, url: str) -> httpx.Response:
        """GET *url*, following up to ``max_redirects`` redirects.

        The response returned is the last one received, so exceeding the
        limit hands back the redirect itself.
        """
        if self._client is None:
            raise RuntimeError('GitHubClient must be entered with "async with" before use')
        location = url
        remaining = self._max_redirects
        while True:
            try:
                response = await self._client.get(location, follow_redirects=False)
            except httpx.RequestError as exc:
                raise RemoteLookupFailed(location, f'{type(exc).__name__}: {exc}') from exc
            if response.status_code == _TOO_MANY_REQUESTS:
                raise RemoteLookupFailed(location, 'HTTP 429 Too Many Requests')
            if response.status_code not in _REDIRECT_STATUSES or remaining <= 0:
                return response
            target = response.headers.get('location')
            if not target:
                raise RemoteLookupFailed(location, f'HTTP {response.status_code} redirect without a Location header')
            location = str(response.url.join(target))
            remaining -= 1
            log.debug('github_redirect', location=location, remaining=remaining)
