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


"""License resolution orchestrator.

Each reconciled package walks a fallback chain and stops at the first
step that yields an answer::

    ┌──────────────┐  all groups   ┌─────────┐
    │ group filter │──── ignored ──→│ skipped │
    └──────┬───────┘               └─────────┘
           ▼
    ┌──────────────────────┐  license files found
    │ 1. installed metadata │──────────────────────→ done (installed)
    └──────┬───────────────┘
           ▼   PyPI definition (missing → {})
    ┌──────────────────────┐  usable SPDX id
    │ 2. GitHub license API │──────────────────────→ done (github)
    └──────┬───────────────┘
           ▼
    ┌──────────────────────┐
    │ 3. PyPI license spec  │──────────────────────→ done (spec)
    └──────────────────────┘

Packages are independent, so :meth:`LicenseOrchestrator.resolve_all`
resolves them concurrently under a semaphore. The virtualenv descriptor
is computed once and shared read-only by every package.
"""

from __future__ import annotations

import asyncio
import sys
from collections import Counter
from collections.abc import Callable, Collection, Mapping, Sequence
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from licensefinder._types import EnvironmentInfo, LicenseSourceResult, ResolutionStep
from licensefinder.config import DEFAULT_CONCURRENCY
from licensefinder.errors import EnvironmentUnavailable, PackageIndexUnavailable
from licensefinder.github import GitHubClient, is_github_repo_url, spdx_id_from
from licensefinder.installed import dist_info_path, license_names_at
from licensefinder.license_spec import license_names_from_spec
from licensefinder.licenses import UNKNOWN
from licensefinder.logging import get_logger
from licensefinder.package import Package
from licensefinder.pypi import PyPIClient

log = get_logger('licensefinder.resolve')

__all__ = [
    'EnvironmentProvider',
    'LicenseOrchestrator',
    'github_url',
    'step_counts',
]

#: Zero-argument callable describing the local virtualenv; raises
#: :class:`~licensefinder.errors.EnvironmentUnavailable` when there is none.
EnvironmentProvider = Callable[[], EnvironmentInfo]


def github_url(definition: Mapping[str, Any]) -> str:
    """Pick the GitHub repository URL out of a package-index record.

    The homepage wins when it is a bare ``https://github.com/owner/repo``
    URL; otherwise the first such value among ``project_urls`` is used.

    Returns:
        The URL, or ``''`` if none qualifies.
    """
    home_page = definition.get('home_page')
    if is_github_repo_url(home_page):
        return str(home_page)
    project_urls = definition.get('project_urls') or {}
    if isinstance(project_urls, Mapping):
        for url in project_urls.values():
            if is_github_repo_url(url):
                return str(url)
    return ''


def step_counts(packages: Sequence[Package]) -> Counter[ResolutionStep]:
    """Count resolved packages per terminating step."""
    return Counter(p.resolution_step for p in packages if p.resolution_step is not None)


def _text(definition: Mapping[str, Any], key: str) -> str:
    value = definition.get(key)
    return value if isinstance(value, str) else ''


class LicenseOrchestrator:
    """Resolves license data for reconciled packages.

    Args:
        pypi: Open package-index client.
        github: Open source-host client; its best-effort setting decides
            whether connectivity failures abort the scan.
        environment: Describes the local virtualenv. ``None`` disables the
            installed-metadata step.
        concurrency: Maximum number of packages resolved at once.
    """

    def __init__(
        self,
        *,
        pypi: PyPIClient,
        github: GitHubClient,
        environment: EnvironmentProvider | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._pypi = pypi
        self._github = github
        self._environment_provider = environment
        self._concurrency = max(1, concurrency)
        self._environment: EnvironmentInfo | None = None
        self._environment_checked = False
        self._environment_lock = asyncio.Lock()

    async def environment(self) -> EnvironmentInfo | None:
        """Return the virtualenv descriptor, computing it on first use.

        A failure is remembered, so the provider runs at most once.
        """
        async with self._environment_lock:
            if not self._environment_checked:
                self._environment_checked = True
                if self._environment_provider is not None:
                    try:
                        self._environment = await asyncio.to_thread(self._environment_provider)
                    except EnvironmentUnavailable as exc:
                        log.info('environment_unavailable', reason=exc.reason)
                    else:
                        log.debug(
                            'environment_found',
                            python=self._environment.python_version,
                            root=str(self._environment.root),
                        )
        return self._environment

    # ── Steps ────────────────────────────────────────────────────────

    async def _from_installed(self, package: Package) -> LicenseSourceResult | None:
        env = await self.environment()
        if env is None:
            return None
        path = dist_info_path(env, package.name, package.version)
        names = await asyncio.to_thread(license_names_at, path)
        if not names:
            return None
        return LicenseSourceResult(
            step=ResolutionStep.INSTALLED,
            licenses=tuple(names),
            authors=package.authors,
            description=package.description,
            homepage=package.homepage,
            install_path=path,
        )

    async def _definition(self, package: Package) -> dict[str, Any]:
        try:
            return await self._pypi.definition(package.name, package.version)
        except PackageIndexUnavailable as exc:
            log.debug('pypi_unavailable', package=package.name, version=package.version, reason=exc.reason)
            return {}

    async def _from_github(self, definition: Mapping[str, Any]) -> LicenseSourceResult | None:
        url = github_url(definition)
        if not url:
            return None
        spdx_id = spdx_id_from(await self._github.license(url))
        if not spdx_id:
            return None
        return LicenseSourceResult(
            step=ResolutionStep.GITHUB,
            licenses=(spdx_id,),
            authors=_text(definition, 'author'),
            description=_text(definition, 'description'),
            homepage=url,
        )

    @staticmethod
    def _from_spec(definition: Mapping[str, Any]) -> LicenseSourceResult:
        return LicenseSourceResult(
            step=ResolutionStep.SPEC,
            licenses=tuple(license_names_from_spec(definition)),
            authors=_text(definition, 'author'),
            description=_text(definition, 'description'),
            homepage=_text(definition, 'home_page'),
        )

    # ── Public API ───────────────────────────────────────────────────

    async def resolve(self, package: Package, ignored_groups: Collection[str] = ()) -> Package | None:
        """Resolve one package, or skip it.

        Args:
            package: A reconciled, not yet resolved package.
            ignored_groups: Groups to ignore. A package none of whose
                groups survive is skipped without any lookup.

        Returns:
            The same package, enriched, or ``None`` if it was skipped.

        Raises:
            RemoteLookupFailed: If GitHub is unreachable and the client
                is not in best-effort mode.
        """
        if not package.groups - set(ignored_groups):
            log.debug('package_skipped', package=package.name, groups=package.sorted_groups)
            return None

        result = await self._from_installed(package)
        if result is None:
            definition = await self._definition(package)
            result = await self._from_github(definition) or self._from_spec(definition)

        package.apply(result)
        log.info(
            'package_resolved',
            package=package.name,
            version=package.version,
            step=result.step.value,
            licenses=[lic.name for lic in package.licenses],
        )
        return package

    async def resolve_all(
        self,
        packages: Sequence[Package],
        ignored_groups: Collection[str] = (),
        *,
        show_progress: bool | None = None,
    ) -> list[Package]:
        """Resolve *packages* concurrently, keeping their order.

        Args:
            packages: Reconciled packages.
            ignored_groups: Groups to ignore (see :meth:`resolve`).
            show_progress: Draw a progress bar on stderr. Defaults to
                whether stderr is a terminal.

        Returns:
            The resolved packages; skipped ones are left out.

        Raises:
            RemoteLookupFailed: As :meth:`resolve`. Outstanding work is
                cancelled first.
        """
        if show_progress is None:
            show_progress = sys.stderr.isatty()
        sem = asyncio.Semaphore(self._concurrency)
        ignored = frozenset(ignored_groups)

        console = Console(stderr=True)
        progress = Progress(
            SpinnerColumn(),
            TextColumn('[bold blue]Resolving licenses'),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TextColumn('•'),
            TextColumn('[dim]{task.fields[current]}'),
            TextColumn('•'),
            TimeElapsedColumn(),
            console=console,
            transient=True,
            disable=not show_progress,
        )

        with progress:
            task_id = progress.add_task('Resolving', total=len(packages), current='starting…')

            async def _do_one(package: Package) -> Package | None:
                async with sem:
                    progress.update(task_id, current=package.name)
                    try:
                        return await self.resolve(package, ignored)
                    finally:
                        progress.advance(task_id)

            tasks = [asyncio.ensure_future(_do_one(p)) for p in packages]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for t in tasks:
                    t.cancel()
                raise

        resolved = [p for p in results if p is not None]
        if show_progress:
            self._print_summary(console, len(packages), resolved)
        return resolved

    @staticmethod
    def _print_summary(console: Console, total: int, resolved: Sequence[Package]) -> None:
        counts = step_counts(resolved)
        parts: list[str] = [f'[bold]License scan:[/] {total} packages']
        skipped = total - len(resolved)
        if skipped:
            parts.append(f'[dim]{skipped} skipped[/]')
        for step, colour in (
            (ResolutionStep.INSTALLED, 'green'),
            (ResolutionStep.GITHUB, 'cyan'),
            (ResolutionStep.SPEC, 'yellow'),
        ):
            if counts[step]:
                parts.append(f'[{colour}]{counts[step]} via {step.value}[/]')
        unknown = sum(1 for p in resolved if p.licenses == [UNKNOWN])
        if unknown:
            parts.append(f'[red]{unknown} unknown[/]')
        console.print(' • '.join(parts), highlight=False)
