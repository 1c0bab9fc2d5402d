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
from enum import Enum
from typing import Optional, Tuple

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

# (module path, version)
CacheKey = Tuple[str, str]


class VersionInfo(BaseModel):
    """
    One published version of a module, as served by <module>/@v/<version>.info.

    Wire format uses the Go proxy field names: {"Version": ..., "Time": ...}.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = Field(alias="Version")
    published_at: AwareDatetime = Field(alias="Time")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Operation(Enum):
    """What a proxied path asks for."""
    LIST = "list"                  # /<module>/@v/list
    INFO = "info"                  # /<module>/@v/<version>.info
    LATEST = "latest"              # /<module>/@latest
    DOWNLOAD = "download"          # /<module>/@v/<version>.mod|.zip
    PASSTHROUGH = "passthrough"    # anything else


@dataclass(frozen=True)
class ProxyRequest:
    """
    Classification of one inbound path. Threaded through a single request.
    """
    cooldown: timedelta
    operation: Operation
    path: str
    module: str = ""
    version: str = ""
    cooldown_prefix: Optional[str] = None

    @property
    def has_override(self) -> bool:
        return self.cooldown_prefix is not None
