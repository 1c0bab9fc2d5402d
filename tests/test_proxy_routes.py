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
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from cooldown.config import Config
from cooldown.main import create_app
from cooldown.models import Operation, ProxyRequest
from cooldown.routes import proxy_routes
from conftest import EXAMPLE_AGES, MODULE, UPSTREAM, FakeUpstream


@pytest.fixture
def live_upstream():
    # Real clock: the app filters against datetime.now()
    upstream = FakeUpstream(datetime.now(timezone.utc))
    upstream.add_module(MODULE, EXAMPLE_AGES)
    return upstream


@pytest.fixture
def client(live_upstream):
    config = Config(upstream_proxy=UPSTREAM, default_cooldown=timedelta(days=7))
    with TestClient(create_app(config, transport=live_upstream.transport())) as test_client:
        yield test_client


# -----------------------
# @v/list
# -----------------------

def test_list_filters_recent_versions(client):
    response = client.get(f"/{MODULE}/@v/list")
    assert response.status_code == 200
    assert response.text == "v1.0.0\nv1.1.0\n"
    assert response.headers["content-type"].startswith("text/plain")


def test_list_with_cooldown_override(client):
    response = client.get(f"/2d/{MODULE}/@v/list")
    assert response.status_code == 200
    assert response.text.splitlines() == ["v1.0.0", "v1.1.0", "v1.2.0"]


def test_list_everything_filtered_is_empty_200(client):
    response = client.get(f"/1y/{MODULE}/@v/list")
    assert response.status_code == 200
    assert response.text == ""


def test_list_upstream_status_passed_through(client, live_upstream):
    live_upstream.add(f"/{MODULE}/@v/list", "gone for good", status=410)
    response = client.get(f"/{MODULE}/@v/list")
    assert response.status_code == 410
    assert response.text == "gone for good"


def test_list_upstream_unreachable_is_bad_gateway(client, live_upstream):
    live_upstream.unreachable = True
    response = client.get(f"/{MODULE}/@v/list")
    assert response.status_code == 502


# -----------------------
# @v/<version>.info
# -----------------------

def test_old_version_info_is_allowed(client):
    response = client.get(f"/{MODULE}/@v/v1.0.0.info")
    assert response.status_code == 200
    data = response.json()
    assert data["Version"] == "v1.0.0"
    assert "Time" in data


def test_recent_version_info_is_hidden(client):
    response = client.get(f"/{MODULE}/@v/v2.0.0.info")
    assert response.status_code == 404


def test_hidden_version_looks_like_missing_version(client):
    hidden = client.get(f"/{MODULE}/@v/v2.0.0.info")
    missing = client.get(f"/{MODULE}/@v/v9.9.9.info")
    assert hidden.status_code == missing.status_code == 404
    assert hidden.text == missing.text


def test_recent_version_visible_with_short_override(client):
    response = client.get(f"/12h/{MODULE}/@v/v2.0.0.info")
    assert response.status_code == 200
    assert response.json()["Version"] == "v2.0.0"


def test_info_upstream_error_passed_through(client, live_upstream):
    live_upstream.add(f"/{MODULE}/@v/v1.0.0.info", "try later", status=503)
    response = client.get(f"/{MODULE}/@v/v1.0.0.info")
    assert response.status_code == 503
    assert response.text == "try later"


def test_info_unreachable_is_bad_gateway(client, live_upstream):
    live_upstream.unreachable = True
    response = client.get(f"/{MODULE}/@v/v1.0.0.info")
    assert response.status_code == 502


# -----------------------
# @latest
# -----------------------

def test_latest_returns_older_version_when_latest_too_new(client):
    response = client.get(f"/{MODULE}/@latest")
    assert response.status_code == 200
    assert response.json()["Version"] == "v1.1.0"


def test_latest_returns_upstream_latest_when_old_enough(client):
    response = client.get(f"/1h/{MODULE}/@latest")
    assert response.status_code == 200
    assert response.json()["Version"] == "v2.0.0"


def test_latest_no_versions_available(client):
    response = client.get(f"/1y/{MODULE}/@latest")
    assert response.status_code == 404


# -----------------------
# Out-of-range cooldowns
# -----------------------

def test_cooldown_before_year_one_hides_list(client):
    response = client.get(f"/3000y/{MODULE}/@v/list")
    assert response.status_code == 200
    assert response.text == ""


def test_cooldown_before_year_one_hides_latest(client):
    response = client.get(f"/3000y/{MODULE}/@latest")
    assert response.status_code == 404


def test_cooldown_before_year_one_hides_info(client):
    response = client.get(f"/3000y/{MODULE}/@v/v1.0.0.info")
    assert response.status_code == 404


def test_oversized_first_segment_is_module_path(client):
    response = client.get("/99999999999d/foo/@v/list")
    assert response.status_code == 404
    assert response.text == "not found: /99999999999d/foo/@v/list"


def test_latest_upstream_status_passed_through(client):
    response = client.get("/example.com/unknown/@latest")
    assert response.status_code == 404
    assert response.text == "not found: /example.com/unknown/@latest"


def test_latest_bad_metadata_is_bad_gateway(client, live_upstream):
    live_upstream.add(f"/{MODULE}/@latest", "<html>oops</html>")
    response = client.get(f"/{MODULE}/@latest")
    assert response.status_code == 502


# -----------------------
# Downloads and pass-through
# -----------------------

@pytest.mark.parametrize("path", [
    f"/{MODULE}/@v/v1.0.0.zip",
    f"/{MODULE}/@v/v1.0.0.mod",
    f"/{MODULE}/@v/v2.0.0.zip",
])
def test_downloads_redirect_to_upstream(client, live_upstream, path):
    response = client.get(path, follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == f"{UPSTREAM}{path}"
    assert sum(live_upstream.calls.values()) == 0


def test_download_redirect_drops_cooldown_prefix(client):
    response = client.get(f"/30d/{MODULE}/@v/v1.0.0.zip", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == f"{UPSTREAM}/{MODULE}/@v/v1.0.0.zip"


def test_unknown_path_is_proxied_verbatim(client, live_upstream):
    live_upstream.add(
        "/sumdb/sum.golang.org/supported", "", status=200, headers={"X-Upstream": "yes"}
    )
    response = client.get("/sumdb/sum.golang.org/supported")
    assert response.status_code == 200
    assert response.headers["x-upstream"] == "yes"


def test_unknown_path_upstream_status_is_kept(client):
    response = client.get(f"/{MODULE}/@v/v1.0.0.txt")
    assert response.status_code == 404
    assert response.text == f"not found: /{MODULE}/@v/v1.0.0.txt"


def test_passthrough_unreachable_is_bad_gateway(client, live_upstream):
    live_upstream.unreachable = True
    response = client.get("/sumdb/sum.golang.org/supported")
    assert response.status_code == 502


# -----------------------
# Validation
# -----------------------

def _request(operation, module, version=""):
    return ProxyRequest(
        cooldown=timedelta(days=7), operation=operation, path="/", module=module, version=version
    )


@pytest.mark.asyncio
async def test_list_rejects_traversal():
    with pytest.raises(HTTPException) as exc_info:
        await proxy_routes.handle_list(MagicMock(), _request(Operation.LIST, "../../etc/passwd"))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_info_rejects_bad_version():
    with pytest.raises(HTTPException) as exc_info:
        await proxy_routes.handle_info(MagicMock(), _request(Operation.INFO, MODULE, "v1\0"))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_latest_rejects_empty_module():
    with pytest.raises(HTTPException) as exc_info:
        await proxy_routes.handle_latest(MagicMock(), _request(Operation.LATEST, ""))
    assert exc_info.value.status_code == 400
