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


"""Tests for the shared HTTP helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TypeVar
from unittest.mock import patch

import httpx
import pytest
from licensefinder.net import USER_AGENT, _backoff_delay, http_client, request_with_retry

_T = TypeVar('_T')


def _run(coro: Coroutine[object, object, _T]) -> _T:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


class TestHttpClient:
    """Tests for http_client()."""

    def test_default_headers(self) -> None:
        """The user agent is always sent; extra headers are merged in."""
        seen: list[httpx.Headers] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers)
            return httpx.Response(204)

        async def go() -> None:
            async with http_client(headers={'Accept': 'application/json'}, transport=httpx.MockTransport(handler)) as c:
                await c.get('https://pypi.org/simple/')

        _run(go())
        assert seen[0]['User-Agent'] == USER_AGENT
        assert seen[0]['Accept'] == 'application/json'

    def test_closed_on_exit(self) -> None:
        """The client is closed when the context exits."""

        async def go() -> httpx.AsyncClient:
            async with http_client(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as c:
                return c

        assert _run(go()).is_closed


class TestRequestWithRetry:
    """Tests for request_with_retry()."""

    def _send(self, handler: object, max_retries: int = 3) -> tuple[httpx.Response, int]:
        calls: list[int] = []

        def counting(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return handler(request, len(calls))  # type: ignore[operator]

        async def go() -> httpx.Response:
            async with httpx.AsyncClient(transport=httpx.MockTransport(counting)) as client:
                return await request_with_retry(client, 'GET', 'https://pypi.org/pypi/six/json', max_retries=max_retries)

        with patch('licensefinder.net._backoff_delay', return_value=0.0):
            return _run(go()), len(calls)

    def test_success_first_try(self) -> None:
        """A 200 is returned immediately."""
        response, calls = self._send(lambda request, n: httpx.Response(200))
        assert response.status_code == 200
        assert calls == 1

    def test_client_errors_not_retried(self) -> None:
        """4xx responses go straight back to the caller."""
        response, calls = self._send(lambda request, n: httpx.Response(404))
        assert response.status_code == 404
        assert calls == 1

    def test_server_errors_retried(self) -> None:
        """5xx responses are retried until one succeeds."""
        response, calls = self._send(lambda request, n: httpx.Response(503 if n < 3 else 200))
        assert response.status_code == 200
        assert calls == 3

    def test_last_server_error_returned(self) -> None:
        """Once retries run out the final 5xx is returned."""
        response, calls = self._send(lambda request, n: httpx.Response(500), max_retries=2)
        assert response.status_code == 500
        assert calls == 3

    def test_transport_error_retried_then_raised(self) -> None:
        """Transport errors are retried and re-raised at the end."""

        def handler(request: httpx.Request, n: int) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        with pytest.raises(httpx.ConnectError):
            self._send(handler, max_retries=1)

    def test_transport_error_recovers(self) -> None:
        """A transient transport error is followed by a good response."""

        def handler(request: httpx.Request, n: int) -> httpx.Response:
            if n == 1:
                raise httpx.ReadTimeout('slow', request=request)
            return httpx.Response(200)

        response, calls = self._send(handler)
        assert response.status_code == 200
        assert calls == 2


class TestBackoffDelay:
    """Tests for _backoff_delay()."""

    @pytest.mark.parametrize('attempt', [0, 1, 2, 5, 20])
    def test_bounded(self, attempt: int) -> None:
        """Delays are non-negative and capped."""
        delay = _backoff_delay(attempt)
        assert 0.0 <= delay <= 8.0
