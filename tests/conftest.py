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

import json
from collections import Counter
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from cooldown.cache import VersionCache
from cooldown.filtering import CooldownFilter
from cooldown.upstream import UpstreamClient

UPSTREAM = "https://proxy.test"
MODULE = "example.com/module"

# Frozen "now" for engine tests
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

# Upstream order is oldest first, newest last
EXAMPLE_AGES = {
    "v1.0.0": timedelta(days=30),
    "v1.1.0": timedelta(days=14),
    "v1.2.0": timedelta(days=5),
    "v2.0.0": timedelta(days=1),
}


def info_body(version: str, published_at: datetime) -> str:
    return json.dumps({"Version": version, "Time": published_at.isoformat()})


class FakeUpstream:
    """
    In-memory Go module proxy served through httpx.MockTransport.
    Unknown paths answer 404 like proxy.golang.org.
    """

    def __init__(self, now: datetime):
        self.now = now
        self.routes = {}
        self.calls = Counter()
        self.unreachable = False

    def add(self, path, body, status=200, headers=None):
        self.routes[path] = (status, body, headers or {})

    def add_module(self, module, ages, latest=None):
        versions = list(ages)
        self.add(f"/{module}/@v/list", "".join(f"{v}\n" for v in versions))
        for version, age in ages.items():
            self.add(f"/{module}/@v/{version}.info", info_body(version, self.now - age))
        latest = latest or versions[-1]
        self.add(f"/{module}/@latest", info_body(latest, self.now - ages[latest]))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if path not in self.routes:
            return httpx.Response(404, text=f"not found: {path}")
        status, body, headers = self.routes[path]
        return httpx.Response(status, text=body, headers=headers)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_upstream():
    upstream = FakeUpstream(NOW)
    upstream.add_module(MODULE, EXAMPLE_AGES)
    return upstream


@pytest_asyncio.fixture
async def http_client(fake_upstream):
    async with httpx.AsyncClient(transport=fake_upstream.transport()) as client:
        yield client


@pytest.fixture
def upstream_client(http_client):
    return UpstreamClient(UPSTREAM, http_client)


@pytest.fixture
def cooldown_filter(upstream_client):
    return CooldownFilter(upstream_client, VersionCache(100), clock=lambda: NOW)
