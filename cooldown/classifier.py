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

from datetime import timedelta
from typing import Optional, Tuple

from cooldown.duration import parse_duration
from cooldown.errors import MalformedDuration
from cooldown.models import Operation, ProxyRequest

LATEST_SUFFIX = "/@latest"
VERSION_MARKER = "/@v/"
DOWNLOAD_SUFFIXES = (".mod", ".zip")


def split_cooldown_prefix(path: str) -> Tuple[Optional[str], Optional[timedelta], str]:
    """
    Detect a duration in the first path segment.

    The first segment only counts when something follows it, so
    "/7d" alone is an ordinary path.

    Returns:
        (prefix, cooldown, remaining path) where prefix and cooldown are None
        when no duration was found. The remaining path always starts with "/".

    Examples:
        >>> split_cooldown_prefix("/30d/golang.org/x/text/@v/list")
        ('30d', datetime.timedelta(days=30), '/golang.org/x/text/@v/list')
        >>> split_cooldown_prefix("/golang.org/x/text/@v/list")
        (None, None, '/golang.org/x/text/@v/list')
    """
    if not path.startswith("/"):
        path = "/" + path

    parts = path[1:].split("/", 1)
    if len(parts) < 2:
        return None, None, path

    segment, rest = parts
    try:
        cooldown = parse_duration(segment)
    except MalformedDuration:
        return None, None, path
    return segment, cooldown, "/" + rest


def classify(path: str, default_cooldown: timedelta) -> ProxyRequest:
    """
    Turn a request path into a ProxyRequest.

    Recognised shapes (after stripping an optional duration prefix):
        /<module>/@latest
        /<module>/@v/list
        /<module>/@v/<version>.info
        /<module>/@v/<version>.mod
        /<module>/@v/<version>.zip
    Anything else is PASSTHROUGH.
    """
    prefix, cooldown, path = split_cooldown_prefix(path)
    if cooldown is None:
        cooldown = default_cooldown

    def make(operation: Operation, module: str = "", version: str = "") -> ProxyRequest:
        return ProxyRequest(
            cooldown=cooldown,
            operation=operation,
            path=path,
            module=module,
            version=version,
            cooldown_prefix=prefix,
        )

    if path.endswith(LATEST_SUFFIX):
        return make(Operation.LATEST, module=path[1:-len(LATEST_SUFFIX)])

    parts = path[1:].split(VERSION_MARKER)
    if len(parts) != 2:
        return make(Operation.PASSTHROUGH)

    module, version_path = parts
    if version_path == "list":
        return make(Operation.LIST, module=module)
    if version_path.endswith(".info"):
        return make(Operation.INFO, module=module, version=version_path[:-len(".info")])
    if version_path.endswith(DOWNLOAD_SUFFIXES):
        return make(Operation.DOWNLOAD, module=module, version=version_path[:-len(".mod")])
    return make(Operation.PASSTHROUGH, module=module)
