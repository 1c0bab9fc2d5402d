# SPDX-License-Identifier: GPL-3.0-or-later
#
# Copyright (C) 2025 Mark Sholund
#
# This file is part of the Cooldown Proxy project.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional
import asyncio
import logging

from cooldown.cache import VersionCache
from cooldown.errors import NoEligibleVersion, UpstreamError
from cooldown.models import VersionInfo
from cooldown.upstream import UpstreamClient

logger = logging.getLogger("uvicorn")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_eligible(info: VersionInfo, cutoff: datetime) -> bool:
    """A version is visible once it was published at or before the cutoff."""
    return info.published_at <= cutoff


class CooldownFilter:
    """
    Applies a cooldown window to upstream module metadata.

    Every per-version lookup goes through the shared VersionCache; the
    upstream is only asked for (module, version) pairs not seen before.
    """

    def __init__(
        self,
        upstream: UpstreamClient,
        cache: VersionCache,
        clock: Callable[[], datetime] = utc_now,
        max_concurrency: int = 16,
    ):
        self.upstream = upstream
        self.cache = cache
        self._clock = clock
        self._max_concurrency = max(1, max_concurrency)

    def cutoff(self, cooldown: timedelta) -> datetime:
        """
        Latest publish time still visible under the cooldown. Windows that
        reach past the datetime range clamp to its ends: nothing is visible
        for a cooldown older than year 1, everything for a negative one
        past year 9999.
        """
        now = self._clock()
        try:
            return now - cooldown
        except OverflowError:
            if cooldown > timedelta(0):
                return datetime.min.replace(tzinfo=timezone.utc)
            return datetime.max.replace(tzinfo=timezone.utc)

    async def version_info(self, module: str, version: str) -> VersionInfo:
        """
        Metadata for one version, from the cache when possible.
        Upstream failures propagate to the caller.
        """
        key = (module, version)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s@%s", module, version)
            return cached

        logger.debug("Cache miss: %s@%s", module, version)
        info = await self.upstream.fetch_info(module, version)
        self.cache.put(key, info)
        return info

    async def _lookup_or_skip(self, module: str, version: str) -> Optional[VersionInfo]:
        try:
            return await self.version_info(module, version)
        except UpstreamError as e:
            logger.warning("Failed to fetch version info for %s@%s, skipping: %s",
                           module, version, e)
            return None

    async def filter_versions(
        self, module: str, versions: Iterable[str], cooldown: timedelta
    ) -> List[str]:
        """
        Keep the versions old enough for the cooldown, in their original order.
        Versions whose metadata cannot be fetched are dropped.
        """
        versions = [v for v in versions if v]
        cutoff = self.cutoff(cooldown)
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def lookup(version: str) -> Optional[VersionInfo]:
            async with semaphore:
                return await self._lookup_or_skip(module, version)

        infos = await asyncio.gather(*(lookup(v) for v in versions))

        eligible = []
        for version, info in zip(versions, infos):
            if info is None:
                continue
            if is_eligible(info, cutoff):
                logger.debug("Version included: %s@%s (%s)",
                             module, version, info.published_at.isoformat())
                eligible.append(version)
            else:
                logger.info("Version filtered out: %s@%s (published %s, cutoff %s)",
                            module, version, info.published_at.isoformat(), cutoff.isoformat())
        return eligible

    async def list_eligible(self, module: str, cooldown: timedelta) -> List[str]:
        """
        Filtered /@v/list. Failure to fetch the list itself propagates.
        """
        versions = await self.upstream.fetch_list(module)
        return await self.filter_versions(module, versions, cooldown)

    async def check_version(self, module: str, version: str, cooldown: timedelta) -> VersionInfo:
        """
        Filtered /@v/<version>.info.

        Raises:
            NoEligibleVersion: the version exists but is too new. Callers must
                present this exactly like a version that does not exist.
        """
        info = await self.version_info(module, version)
        cutoff = self.cutoff(cooldown)
        if not is_eligible(info, cutoff):
            logger.info("Version too new: %s@%s (published %s, cutoff %s)",
                        module, version, info.published_at.isoformat(), cutoff.isoformat())
            raise NoEligibleVersion(module, version)
        return info

    async def latest_eligible(self, module: str, cooldown: timedelta) -> VersionInfo:
        """
        Filtered /@latest.

        If upstream's latest is too new, walk the version list backwards
        (newest last) and return the first version old enough.

        Raises:
            NoEligibleVersion: no listed version is old enough.
        """
        cutoff = self.cutoff(cooldown)
        latest = await self.upstream.fetch_latest(module)
        self.cache.put((module, latest.version), latest)
        if is_eligible(latest, cutoff):
            return latest

        logger.info("Latest version too new, searching older versions: %s@%s (published %s, cutoff %s)",
                    module, latest.version, latest.published_at.isoformat(), cutoff.isoformat())

        versions = await self.upstream.fetch_list(module)
        for version in reversed(versions):
            info = await self._lookup_or_skip(module, version)
            if info is not None and is_eligible(info, cutoff):
                return info

        logger.info("No versions of %s old enough for cutoff %s", module, cutoff.isoformat())
        raise NoEligibleVersion(module)
