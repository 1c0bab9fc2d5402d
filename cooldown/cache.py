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

from collections import OrderedDict
from threading import Lock
from typing import Optional

from cooldown.models import CacheKey, VersionInfo


class VersionCache:
    """
    Bounded in-memory LRU of version metadata, keyed by (module, version).

    There is no TTL: a version's publish time never changes upstream, so
    entries only leave the cache under capacity pressure.
    Safe to share between concurrent requests.
    """

    def __init__(self, capacity: int = 10000):
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._store: "OrderedDict[CacheKey, VersionInfo]" = OrderedDict()
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: CacheKey) -> Optional[VersionInfo]:
        """Return the cached value (refreshing its recency) or None."""
        with self._lock:
            value = self._store.get(key)
            if value is not None:
                self._store.move_to_end(key)
            return value

    def put(self, key: CacheKey, value: VersionInfo) -> None:
        with self._lock:
            self._store[key] = value
            self._store.move_to_end(key)
            while len(self._store) > self._capacity:
                self._store.popitem(last=False)

    def __contains__(self, key: CacheKey) -> bool:
        # Peek only, recency is left untouched
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
