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

from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional
import os

from cooldown.duration import parse_duration

DEFAULT_UPSTREAM = "https://proxy.golang.org"
DEFAULT_COOLDOWN = "7d"


@dataclass(frozen=True)
class Config:
    """
    Process-wide settings. Built once at startup and handed to create_app().
    """
    # Listener
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    # Upstream Go module proxy
    upstream_proxy: str = DEFAULT_UPSTREAM
    request_timeout_seconds: float = 30.0
    max_concurrent_fetches: int = 16

    # Version metadata cache (number of entries)
    cache_size: int = 10000

    # Applied when the request path carries no duration prefix
    default_cooldown: timedelta = timedelta(days=7)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Read settings from environment variables.

        Raises:
            ValueError: on a non-numeric number or an invalid DEFAULT_COOLDOWN
                (MalformedDuration is a ValueError), so startup aborts.
        """
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "8080")),
            log_level=env.get("LOG_LEVEL", "info").lower(),
            upstream_proxy=env.get("UPSTREAM_PROXY", DEFAULT_UPSTREAM).rstrip("/"),
            request_timeout_seconds=float(env.get("REQUEST_TIMEOUT_SECONDS", "30")),
            max_concurrent_fetches=int(env.get("MAX_CONCURRENT_FETCHES", "16")),
            cache_size=int(env.get("CACHE_SIZE", "10000")),
            default_cooldown=parse_duration(env.get("DEFAULT_COOLDOWN", DEFAULT_COOLDOWN)),
        )
