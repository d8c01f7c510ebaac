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


"""HTTP plumbing shared by the package-index and source-host clients.

Thin wrappers over :class:`httpx.AsyncClient`:

- :func:`http_client` builds a configured client as an async context
  manager. Tests pass ``transport=httpx.MockTransport(...)``.
- :func:`request_with_retry` retries transport errors and 5xx responses
  with exponential backoff and jitter. 4xx responses are returned to the
  caller untouched.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any, Final

import httpx

from licensefinder.logging import get_logger

log = get_logger('licensefinder.net')

__all__ = [
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'MAX_RETRIES',
    'USER_AGENT',
    'http_client',
    'request_with_retry',
]

DEFAULT_POOL_SIZE: Final[int] = 10
DEFAULT_TIMEOUT: Final[float] = 10.0
MAX_RETRIES: Final[int] = 3
USER_AGENT: Final[str] = 'licensefinder (+https://pypi.org/project/licensefinder/)'

# Base delay (seconds) for exponential backoff; doubled per attempt.
_BACKOFF_BASE: Final[float] = 0.5
_BACKOFF_CAP: Final[float] = 8.0


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    headers: Mapping[str, str] | None = None,
    follow_redirects: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured :class:`httpx.AsyncClient`.

    Args:
        pool_size: Maximum number of pooled connections.
        timeout: Timeout in seconds applied to connect, read, write and
            pool acquisition.
        headers: Extra default headers.
        follow_redirects: Let httpx follow redirects itself.
        transport: Optional transport override.
    """
    merged = {'User-Agent': USER_AGENT}
    if headers:
        merged.update(headers)
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(max_connections=pool_size, max_keepalive_connections=pool_size),
        headers=merged,
        follow_redirects=follow_redirects,
        transport=transport,
    ) as client:
        yield client


def _backoff_delay(attempt: int) -> float:
    """Full-jitter exponential backoff for the given 0-based attempt."""
    return random.uniform(0, min(_BACKOFF_CAP, _BACKOFF_BASE * (2**attempt)))  # noqa: S311


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any,  # noqa: ANN401
) -> httpx.Response:
    """Send a request, retrying transport errors and 5xx responses.

    Args:
        client: The client to send the request with.
        method: HTTP method.
        url: Target URL.
        max_retries: Retries after the first attempt.
        **kwargs: Passed through to :meth:`httpx.AsyncClient.request`.

    Returns:
        The last response received. A 5xx response is returned once the
        retries are used up.

    Raises:
        httpx.TransportError: If the final attempt fails at the
            transport level.
    """
    attempt = 0
    while True:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            if attempt >= max_retries:
                raise
            log.debug('http_retry', url=url, attempt=attempt + 1, error=type(exc).__name__)
        else:
            if response.status_code < 500 or attempt >= max_retries:
                return response
            log.debug('http_retry', url=url, attempt=attempt + 1, status=response.status_code)
        await asyncio.sleep(_backoff_delay(attempt))
        attempt += 1
