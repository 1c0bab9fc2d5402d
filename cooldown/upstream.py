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

from typing import List
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from cooldown.errors import (
    MetadataParseFailure,
    UpstreamNonSuccess,
    UpstreamUnreachable,
)
from cooldown.models import VersionInfo

logger = logging.getLogger("uvicorn")


class UpstreamClient:
    """
    Reads module metadata from the upstream Go module proxy.

    Failures are never retried here; they surface as UpstreamUnreachable,
    UpstreamNonSuccess or MetadataParseFailure and the caller picks policy.
    The httpx client is owned by the application lifespan.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self._client = client

    def url_for(self, path: str) -> str:
        """Upstream URL equivalent to a (prefix-stripped) request path."""
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    async def get_raw(self, path: str) -> httpx.Response:
        """
        GET a path upstream and hand back the response whatever its status.
        Only transport failures raise.
        """
        url = self.url_for(path)
        try:
            return await self._client.get(url)
        except httpx.RequestError as e:
            logger.error("Upstream request failed: %s (%s)", url, e)
            raise UpstreamUnreachable(url, f"upstream unreachable ({e.__class__.__name__})") from e

    async def _get_ok(self, path: str) -> httpx.Response:
        resp = await self.get_raw(path)
        if resp.status_code != httpx.codes.OK:
            raise UpstreamNonSuccess(
                self.url_for(path),
                resp.status_code,
                content=resp.content,
                media_type=resp.headers.get("content-type"),
            )
        return resp

    async def _get_info(self, path: str) -> VersionInfo:
        resp = await self._get_ok(path)
        try:
            return VersionInfo.model_validate_json(resp.content)
        except PydanticValidationError as e:
            raise MetadataParseFailure(self.url_for(path)) from e

    async def fetch_info(self, module: str, version: str) -> VersionInfo:
        """GET /<module>/@v/<version>.info"""
        return await self._get_info(f"/{module}/@v/{version}.info")

    async def fetch_latest(self, module: str) -> VersionInfo:
        """GET /<module>/@latest"""
        return await self._get_info(f"/{module}/@latest")

    async def fetch_list(self, module: str) -> List[str]:
        """
        GET /<module>/@v/list

        Returns the version identifiers in upstream order, blank lines dropped.
        """
        resp = await self._get_ok(f"/{module}/@v/list")
        return [line.strip() for line in resp.text.splitlines() if line.strip()]
