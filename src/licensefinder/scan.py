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


"""End-to-end license scan of a Poetry project.

Wires the pieces together::

    poetry.lock + pyproject.toml ──→ reconcile ──→ packages
    poetry show ─────────────────────────────────→ summaries
    packages ──→ LicenseOrchestrator (PyPI, GitHub, virtualenv) ──→ result

Usage::

    from licensefinder.config import load_config
    from licensefinder.logging import configure_logging
    from licensefinder.scan import scan

    configure_logging(verbose=True)
    packages = scan(load_config(Path('.'), best_effort=True))
    for pkg in packages:
        print(pkg.name, pkg.version, [str(l) for l in pkg.licenses], pkg.sorted_groups)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import httpx

from licensefinder._types import InstalledPackage
from licensefinder.config import ScanConfig
from licensefinder.github import GitHubClient
from licensefinder.lockfile import load_lock_table, load_manifest_groups, normalize_name, reconcile
from licensefinder.logging import get_logger
from licensefinder.package import Package
from licensefinder.poetry import CommandRunner, PoetryCli, run_command
from licensefinder.pypi import PyPIClient
from licensefinder.resolve import LicenseOrchestrator

log = get_logger('licensefinder.scan')

__all__ = [
    'apply_listing',
    'scan',
    'scan_project',
]


def apply_listing(packages: Sequence[Package], listing: Sequence[InstalledPackage]) -> None:
    """Seed each package's description with its ``poetry show`` summary.

    Listing rows with no matching package, duplicate rows and packages
    missing from the listing are all tolerated; the first row for a
    name wins.
    """
    summaries: dict[str, str] = {}
    for row in listing:
        summaries.setdefault(normalize_name(row.name), row.summary)
    for package in packages:
        summary = summaries.get(normalize_name(package.name), '')
        if summary and not package.description:
            package.description = summary


def _load_packages(config: ScanConfig) -> list[Package]:
    table = load_lock_table(config.lockfile_path)
    groups = load_manifest_groups(config.manifest_path)
    allowed = config.only_groups or None
    return reconcile(table, groups, allowed)


async def scan_project(
    config: ScanConfig,
    *,
    runner: CommandRunner = run_command,
    transport: httpx.AsyncBaseTransport | None = None,
    show_progress: bool | None = None,
) -> list[Package]:
    """Scan the project described by *config*.

    Args:
        config: Scan settings.
        runner: Runs ``poetry`` commands.
        transport: HTTP transport override shared by the PyPI and GitHub
            clients.
        show_progress: Draw a progress bar (defaults to TTY detection).

    Returns:
        Resolved packages in reconciliation order.

    Raises:
        MalformedLockfile: If the lockfile or manifest is unusable.
        PackageListingFailed: If ``poetry show`` fails.
        RemoteLookupFailed: If GitHub is unreachable outside best-effort
            mode.
    """
    packages = _load_packages(config)
    cli = PoetryCli(config.project_path, runner)
    if config.list_installed:
        apply_listing(packages, await asyncio.to_thread(cli.list_installed))

    log.info('scan_started', project=str(config.project_path), packages=len(packages), best_effort=config.best_effort)
    async with (
        PyPIClient.from_config(config, transport=transport) as pypi,
        GitHubClient.from_config(config, transport=transport) as github,
    ):
        orchestrator = LicenseOrchestrator(
            pypi=pypi,
            github=github,
            environment=cli.env_info if config.use_installed_metadata else None,
            concurrency=config.concurrency,
        )
        return await orchestrator.resolve_all(packages, config.ignored_groups, show_progress=show_progress)


def scan(config: ScanConfig, **kwargs: object) -> list[Package]:
    """Synchronous wrapper around :func:`scan_project`."""
    return asyncio.run(scan_project(config, **kwargs))  # type: ignore[arg-type]
