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

import logging

from fastapi import APIRouter, HTTPException, Request, Response

import cooldown.utils as utils
from cooldown.classifier import classify
from cooldown.duration import format_duration
from cooldown.errors import (
    NoEligibleVersion,
    UpstreamError,
    UpstreamNonSuccess,
    UpstreamUnreachable,
)
from cooldown.filtering import CooldownFilter
from cooldown.models import Operation, ProxyRequest
from cooldown.validators import ValidationError, ensure_valid_target

logger = logging.getLogger("uvicorn")

router = APIRouter(tags=["Go modules"])

# Upstream statuses that mean "no such version"
MISSING_STATUSES = (404, 410)


def _validate(proxy_request: ProxyRequest, with_version: bool = False) -> None:
    version = proxy_request.version if with_version else None
    try:
        ensure_valid_target(proxy_request.module, version)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def handle_list(cooldown_filter: CooldownFilter, proxy_request: ProxyRequest) -> Response:
    """
    Serve /<module>/@v/list with every too-new version removed.
    """
    _validate(proxy_request)
    try:
        versions = await cooldown_filter.list_eligible(proxy_request.module, proxy_request.cooldown)
    except UpstreamNonSuccess as e:
        logger.warning("Upstream list returned non-200: %s", e)
        return utils.upstream_error_response(e)
    except UpstreamError as e:
        logger.error("Failed to fetch version list: %s", e)
        raise HTTPException(status_code=502, detail="Failed to fetch version list")

    return utils.version_list_response(versions)


async def handle_info(cooldown_filter: CooldownFilter, proxy_request: ProxyRequest) -> Response:
    """
    Serve /<module>/@v/<version>.info.

    A version that is too new gets the same 404 as one that does not exist.
    """
    _validate(proxy_request, with_version=True)
    try:
        info = await cooldown_filter.check_version(
            proxy_request.module, proxy_request.version, proxy_request.cooldown
        )
    except NoEligibleVersion:
        raise HTTPException(status_code=404, detail="version not found")
    except UpstreamNonSuccess as e:
        if e.status_code in MISSING_STATUSES:
            raise HTTPException(status_code=404, detail="version not found")
        logger.warning("Upstream info returned non-200: %s", e)
        return utils.upstream_error_response(e)
    except UpstreamError as e:
        logger.error("Failed to fetch version info: %s", e)
        raise HTTPException(status_code=502, detail="Failed to fetch version info")

    return utils.version_info_response(info)


async def handle_latest(cooldown_filter: CooldownFilter, proxy_request: ProxyRequest) -> Response:
    """
    Serve /<module>/@latest, falling back to the newest version old enough.
    """
    _validate(proxy_request)
    try:
        info = await cooldown_filter.latest_eligible(proxy_request.module, proxy_request.cooldown)
    except NoEligibleVersion:
        raise HTTPException(status_code=404, detail="no versions available")
    except UpstreamNonSuccess as e:
        logger.warning("Upstream latest returned non-200: %s", e)
        return utils.upstream_error_response(e)
    except UpstreamError as e:
        logger.error("Failed to fetch latest: %s", e)
        raise HTTPException(status_code=502, detail="Failed to fetch latest")

    return utils.version_info_response(info)


async def handle_passthrough(cooldown_filter: CooldownFilter, proxy_request: ProxyRequest) -> Response:
    """
    Forward any other path upstream unchanged: no filtering, no caching.
    """
    upstream = cooldown_filter.upstream
    logger.info("Proxying request: %s", upstream.url_for(proxy_request.path))
    try:
        resp = await upstream.get_raw(proxy_request.path)
    except UpstreamUnreachable:
        raise HTTPException(status_code=502, detail="Failed to proxy request")
    return utils.passthrough_response(resp)


@router.get("/{path:path}")
async def module_proxy(path: str, request: Request):
    """
    Single entry point for the Go module proxy protocol.

    Example: GET /golang.org/x/text/@v/list
             GET /30d/golang.org/x/text/@latest  (30 day cooldown)
    """
    config = request.app.state.config
    cooldown_filter: CooldownFilter = request.app.state.cooldown_filter

    proxy_request = classify("/" + path, config.default_cooldown)
    logger.info(
        "Request: /%s (operation=%s, module=%s, cooldown=%s)",
        path,
        proxy_request.operation.value,
        proxy_request.module or "-",
        format_duration(proxy_request.cooldown),
    )

    operation = proxy_request.operation
    if operation is Operation.DOWNLOAD:
        return utils.redirect_response(cooldown_filter.upstream.url_for(proxy_request.path))
    if operation is Operation.LIST:
        return await handle_list(cooldown_filter, proxy_request)
    if operation is Operation.INFO:
        return await handle_info(cooldown_filter, proxy_request)
    if operation is Operation.LATEST:
        return await handle_latest(cooldown_filter, proxy_request)
    return await handle_passthrough(cooldown_filter, proxy_request)
