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

from typing import Optional


class CooldownError(Exception):
    """Base class for all cooldown proxy failures"""
    pass


class MalformedDuration(ValueError):
    """Text does not describe a duration"""
    pass


class UpstreamError(CooldownError):
    """
    Any failure talking to the upstream module proxy.

    Per-version lookups inside a list or latest scan catch this base class
    and skip the version; everything else maps it to a response.
    """

    def __init__(self, url: str, message: str):
        super().__init__(f"{message}: {url}")
        self.url = url


class UpstreamUnreachable(UpstreamError):
    """Transport-level failure (connection refused, DNS, timeout...)"""

    def __init__(self, url: str, reason: str = "upstream unreachable"):
        super().__init__(url, reason)


class UpstreamNonSuccess(UpstreamError):
    """Upstream answered with a status other than 200 OK"""

    def __init__(
        self,
        url: str,
        status_code: int,
        content: bytes = b"",
        media_type: Optional[str] = None,
    ):
        super().__init__(url, f"upstream returned status {status_code}")
        self.status_code = status_code
        self.content = content
        self.media_type = media_type


class MetadataParseFailure(UpstreamError):
    """Upstream body could not be decoded into a VersionInfo"""

    def __init__(self, url: str, reason: str = "failed to parse version info"):
        super().__init__(url, reason)


class NoEligibleVersion(CooldownError):
    """No version of the module is old enough for the requested cooldown"""

    def __init__(self, module: str, version: Optional[str] = None):
        target = f"{module}@{version}" if version else module
        super().__init__(f"no version old enough: {target}")
        self.module = module
        self.version = version
