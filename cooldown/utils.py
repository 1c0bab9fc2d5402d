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

from typing import Iterable
import logging

import httpx
from fastapi import Response
from fastapi.responses import RedirectResponse

from cooldown.errors import UpstreamNonSuccess
from cooldown.models import VersionInfo

logger = logging.getLogger("uvicorn")

# httpx hands us a decoded body, so length/encoding headers no longer apply
EXCLUDED_HEADERS = frozenset({
    "connection",
    "content-encoding",
    "content-length",
    "keep-alive",
    "transfer-encoding",
})


# ----------------------------------------------------------------------
# Filtered responses
# ----------------------------------------------------------------------
def version_list_response(versions: Iterable[str]) -> Response:
    """One version per line, every line newline-terminated."""
    body = "".join(f"{v}\n" for v in versions)
    return Response(content=body, media_type="text/plain; charset=utf-8")


def version_info_response(info: VersionInfo) -> Response:
    return Response(content=info.to_json() + "\n", media_type="application/json")


# ----------------------------------------------------------------------
# Verbatim upstream responses
# ----------------------------------------------------------------------
def upstream_error_response(error: UpstreamNonSuccess) -> Response:
    """Replay an upstream non-200 answer (status and body) to the client."""
    return Response(
        content=error.content,
        status_code=error.status_code,
        media_type=error.media_type,
    )


def passthrough_response(resp: httpx.Response) -> Response:
    """
    Copy an upstream response: status, body and headers.
    Hop-by-hop and length/encoding headers are recomputed locally.
    """
    response = Response(content=resp.content, status_code=resp.status_code)
    for name, value in resp.headers.multi_items():
        if name.lower() not in EXCLUDED_HEADERS:
            response.headers.append(name, value)
    return response


def redirect_response(url: str) -> RedirectResponse:
    """307 to the upstream copy of a .mod or .zip, nothing is transferred locally."""
    logger.info("Redirecting to upstream: %s", url)
    return RedirectResponse(url=url, status_code=307)
