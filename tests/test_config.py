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

import dataclasses
from datetime import timedelta

import pytest

from cooldown.config import Config
from cooldown.errors import MalformedDuration


def test_defaults():
    config = Config.from_env({})
    assert config.port == 8080
    assert config.upstream_proxy == "https://proxy.golang.org"
    assert config.cache_size == 10000
    assert config.default_cooldown == timedelta(days=7)
    assert config.request_timeout_seconds == 30.0


def test_reads_environment():
    config = Config.from_env({
        "PORT": "9090",
        "UPSTREAM_PROXY": "https://goproxy.example/",
        "CACHE_SIZE": "500",
        "DEFAULT_COOLDOWN": "1d12h",
        "REQUEST_TIMEOUT_SECONDS": "2.5",
        "MAX_CONCURRENT_FETCHES": "4",
        "LOG_LEVEL": "DEBUG",
    })
    assert config.port == 9090
    assert config.upstream_proxy == "https://goproxy.example"
    assert config.cache_size == 500
    assert config.default_cooldown == timedelta(hours=36)
    assert config.request_timeout_seconds == 2.5
    assert config.max_concurrent_fetches == 4
    assert config.log_level == "debug"


def test_reads_os_environ(monkeypatch):
    monkeypatch.setenv("DEFAULT_COOLDOWN", "2M")
    assert Config.from_env().default_cooldown == timedelta(days=60)


def test_invalid_default_cooldown_aborts():
    with pytest.raises(MalformedDuration):
        Config.from_env({"DEFAULT_COOLDOWN": "soon"})


def test_invalid_port_aborts():
    with pytest.raises(ValueError):
        Config.from_env({"PORT": "http"})


def test_config_is_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        Config().port = 1
