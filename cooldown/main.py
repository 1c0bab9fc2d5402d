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

from contextlib import asynccontextmanager
from typing import Optional
import logging

import httpx
from fastapi import FastAPI

from cooldown.cache import VersionCache
from cooldown.config import Config
from cooldown.duration import format_duration
from cooldown.filtering import CooldownFilter
from cooldown.routes import proxy_routes
from cooldown.upstream import UpstreamClient

logger = logging.getLogger('uvicorn')


def create_app(
    config: Optional[Config] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the proxy application.

    The upstream httpx client lives as long as the app; `transport` lets
    tests swap the network for an httpx.MockTransport.
    """
    config = config or Config.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting cooldown proxy: upstream={config.upstream_proxy} "
            f"port={config.port} default_cooldown={format_duration(config.default_cooldown)} "
            f"cache_size={config.cache_size}"
        )
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=config.request_timeout_seconds,
            transport=transport,
        ) as client:
            app.state.cooldown_filter = CooldownFilter(
                UpstreamClient(config.upstream_proxy, client),
                VersionCache(config.cache_size),
                max_concurrency=config.max_concurrent_fetches,
            )
            yield
        logger.info("Shutting down FastAPI app")

    app = FastAPI(title="Cooldown Proxy", lifespan=lifespan)
    app.state.config = config

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "status": "ok",
            "message": "Go module proxy with release cooldown",
            "upstream": config.upstream_proxy,
            "default_cooldown": format_duration(config.default_cooldown),
        }

    app.include_router(proxy_routes.router)
    return app


app = create_app()
